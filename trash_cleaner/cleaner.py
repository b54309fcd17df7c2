"""
Trash Cleaner - Finds and deletes trash among unread emails
"""

import logging
from typing import Dict, Iterable, List, Optional

from trash_cleaner.client import EmailClient
from trash_cleaner.errors import ConfigError, DeleteFailed, FetchFailed
from trash_cleaner.models import Email, TrashKeyword
from trash_cleaner.reporter import ProgressReporter, ProgressSink
from trash_cleaner.rules import RuleSet, normalize_email
from trash_cleaner.store import ConfigStore


logger = logging.getLogger(__name__)

# Keywords and labels used to find trash emails, kept in the config store
FILE_KEYWORDS = 'keywords.json'


class TrashCleaner:
    """Cleans trash emails from a mailbox using keyword rules"""

    def __init__(
        self,
        client: EmailClient,
        keywords: Iterable[TrashKeyword],
        reporter: Optional[ProgressSink] = None
    ):
        self.client = client
        self.reporter = reporter or ProgressReporter()
        # Compiled up front so bad keywords fail before anything is fetched
        self.rules = RuleSet.from_keywords(keywords)

    # === Main Entry Point ===

    async def clean_trash(self, dry_run: bool = False) -> Dict[str, int]:
        """Delete unread emails matching any rule, returns stats dict"""
        self.reporter.on_start(dry_run)
        try:
            emails = await self._get_unread_emails()
            self.reporter.on_unread_emails_retrieved(emails)

            trash_emails = self.find_trash_emails(emails)
            self.reporter.on_trash_emails_identified(trash_emails)

            if not trash_emails:
                logger.debug("No trash emails found, nothing to delete")
                return self._build_stats(len(emails), 0, 0)

            self.reporter.on_deleting_trash()
            if dry_run:
                logger.debug(f"Dry run, keeping {len(trash_emails)} trash emails")
            else:
                await self._delete_emails(trash_emails)
            self.reporter.on_trash_deleted()

            deleted = 0 if dry_run else len(trash_emails)
            return self._build_stats(len(emails), len(trash_emails), deleted)
        finally:
            self.reporter.on_stop()

    # === Classification ===

    def find_trash_emails(self, emails: List[Email]) -> List[Email]:
        """Normalize the emails and return the ones the rules mark as trash"""
        return [
            email for email in map(normalize_email, emails)
            if self.rules.is_trash_email(email)
        ]

    # === Mailbox Access ===

    async def _get_unread_emails(self) -> List[Email]:
        self.reporter.on_retrieving_unread_emails()
        try:
            return await self.client.get_unread_emails()
        except FetchFailed:
            raise
        except Exception as error:
            raise FetchFailed(f"Failed to get unread emails: {error}") from error

    async def _delete_emails(self, emails: List[Email]) -> None:
        try:
            await self.client.delete_emails(emails)
        except DeleteFailed:
            raise
        except Exception as error:
            raise DeleteFailed(f"Failed to delete trash emails: {error}") from error

    # === Results ===

    @staticmethod
    def _build_stats(unread: int, trash: int, deleted: int) -> Dict[str, int]:
        """Build result statistics dict"""
        return {
            "unread_emails": unread,
            "trash_emails": trash,
            "emails_deleted": deleted
        }


def load_keywords(config_store: ConfigStore) -> List[TrashKeyword]:
    """Read the trash keywords from the config store"""
    records = config_store.get(FILE_KEYWORDS)
    if records is None:
        raise ConfigError(f"Keywords file '{FILE_KEYWORDS}' not found in the config directory")
    if not isinstance(records, list):
        raise ConfigError(f"Keywords file '{FILE_KEYWORDS}' must contain a list of keywords")

    keywords = [TrashKeyword.from_record(record) for record in records]
    logger.debug(f"Loaded {len(keywords)} trash keywords")
    return keywords


def create_trash_cleaner(
    config_store: ConfigStore,
    client: EmailClient,
    reporter: Optional[ProgressSink] = None
) -> TrashCleaner:
    """Create a TrashCleaner with keywords from the config store"""
    return TrashCleaner(client, load_keywords(config_store), reporter)
