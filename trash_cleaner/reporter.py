"""
Progress Reporters - Receive lifecycle events of a cleanup run
"""

import logging
from typing import Dict, List, Optional, Protocol

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from trash_cleaner.models import Email


logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def on_start(self, dry_run: bool) -> None: ...
    def on_retrieving_unread_emails(self) -> None: ...
    def on_unread_emails_retrieved(self, emails: List[Email]) -> None: ...
    def on_trash_emails_identified(self, trash_emails: List[Email]) -> None: ...
    def on_deleting_trash(self) -> None: ...
    def on_trash_deleted(self) -> None: ...
    def on_stop(self) -> None: ...


class ProgressReporter:
    """Progress sink that ignores every event"""

    def on_start(self, dry_run: bool) -> None:
        pass

    def on_retrieving_unread_emails(self) -> None:
        pass

    def on_unread_emails_retrieved(self, emails: List[Email]) -> None:
        pass

    def on_trash_emails_identified(self, trash_emails: List[Email]) -> None:
        pass

    def on_deleting_trash(self) -> None:
        pass

    def on_trash_deleted(self) -> None:
        pass

    def on_stop(self) -> None:
        pass


class ConsoleProgressReporter:
    """Reports progress on the console and prints a summary when the run stops

    In CLI mode a spinner shows the current step. Otherwise (e.g. when running
    as a hosted function) step messages are written to the log instead.
    """

    def __init__(self, cli_mode: bool, console: Optional[Console] = None):
        self.cli_mode = cli_mode
        self.console = console or Console()
        self._progress: Optional[Progress] = None
        self._task = None
        self._reset(dry_run=False)

    def _reset(self, dry_run: bool) -> None:
        self.dry_run = dry_run
        self.unread_email_count = 0
        self.trash_emails: List[Email] = []

    # === Events ===

    def on_start(self, dry_run: bool) -> None:
        self._reset(dry_run)
        if self.cli_mode:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.console,
                transient=True
            )
            self._progress.start()
            self._task = self._progress.add_task('Starting cleaning...', total=None)
        else:
            logger.info(f"Starting cleaning (dry run: {dry_run})")

    def on_retrieving_unread_emails(self) -> None:
        self._update('Retrieving emails...')

    def on_unread_emails_retrieved(self, emails: List[Email]) -> None:
        self.unread_email_count = len(emails)
        self._update(f'Retrieved {len(emails)} emails.')

    def on_trash_emails_identified(self, trash_emails: List[Email]) -> None:
        self.trash_emails = list(trash_emails)
        self._update(f'Found {len(trash_emails)} trash emails.')

    def on_deleting_trash(self) -> None:
        self._update('Deleting trash emails...')

    def on_trash_deleted(self) -> None:
        self._update(f"Trash emails{' not' if self.dry_run else ''} deleted.")

    def on_stop(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task = None
        for email in self.trash_emails:
            self._print_email(email)
        self._print_summary()

    # === Output ===

    def summary(self) -> Dict[str, int]:
        return {
            "unread_emails": self.unread_email_count,
            "trash_emails": len(self.trash_emails),
        }

    def _update(self, message: str) -> None:
        if self._progress:
            self._progress.update(self._task, description=message)
        else:
            logger.info(message)

    def _print_summary(self) -> None:
        self._print(f'Total no. of unread emails: {self.unread_email_count}')
        self._print(f'Total no. of trash emails: {len(self.trash_emails)}')
        if self.dry_run:
            self._print('')
            self._print('Emails not deleted in dry-run mode.')

    def _print_email(self, email: Email) -> None:
        self._print(f'From: {email.sender}')
        self._print(f"Labels: {','.join(sorted(email.labels))}")
        self._print(f'Subject: {email.subject}')
        self._print(f'Snippet: {email.snippet}')
        self._print(f'Body: {email.body}')
        self._print('-' * 60)

    def _print(self, message: str) -> None:
        # Email text is arbitrary, never interpret it as rich markup
        self.console.print(message, markup=False, highlight=False)
