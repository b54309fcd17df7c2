#!/usr/bin/env python3
"""
Trash Cleaner CLI - Deletes unread trash emails from the command line
"""

import argparse
import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional

from rich.console import Console

from trash_cleaner.cleaner import create_trash_cleaner
from trash_cleaner.client import EmailService, get_client_factory
from trash_cleaner.errors import TrashCleanerError
from trash_cleaner.reporter import ConsoleProgressReporter
from trash_cleaner.settings import RunMode, Settings, configure_logging, detect_run_mode
from trash_cleaner.store import FileSystemConfigStore


logger = logging.getLogger(__name__)

console = Console(stderr=True)


def get_version() -> str:
    try:
        return version('trash-cleaner')
    except PackageNotFoundError:
        return 'unknown'


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='trash-cleaner',
        description='Delete unread trash emails matching keyword rules'
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {get_version()}')
    parser.add_argument('-r', '--reconfig', action='store_true', help='reconfigures the auth for a service')
    parser.add_argument('-t', '--dry-run', action='store_true', help='perform a dry-run cleanup without deleting the emails')
    parser.add_argument('-d', '--debug', action='store_true', help='output extra debugging info')
    parser.add_argument('-l', '--launch', action='store_true', help='launch the auth url in the browser')
    parser.add_argument('-c', '--config-dir', default=settings.config_dir,
                        help=f'the path to config directory (default: {settings.config_dir})')
    parser.add_argument('-s', '--service', default=settings.service.value,
                        choices=[service.value for service in EmailService],
                        help=f'the email service to use (default: {settings.service.value})')

    return parser


async def run(args: argparse.Namespace, run_mode: RunMode) -> dict:
    """Authorize with the mail service and clean its trash"""
    config_store = FileSystemConfigStore(args.config_dir)
    factory = get_client_factory(EmailService(args.service), config_store)
    client = factory.create_client(reconfig=args.reconfig, launch=args.launch)

    reporter = ConsoleProgressReporter(cli_mode=run_mode == RunMode.CLI)
    cleaner = create_trash_cleaner(config_store, client, reporter)
    return await cleaner.clean_trash(dry_run=args.dry_run)


def main(argv: Optional[List[str]] = None, run_mode: Optional[RunMode] = None) -> int:
    try:
        settings = Settings.from_env()
    except TrashCleanerError as error:
        console.print(str(error), style="red", markup=False, highlight=False)
        return 1

    args = build_parser(settings).parse_args(argv)
    configure_logging('DEBUG' if args.debug else settings.log_level)

    run_mode = run_mode or detect_run_mode()
    logger.debug(f"Running in {run_mode.value} mode with service {args.service}")

    try:
        asyncio.run(run(args, run_mode))
    except TrashCleanerError as error:
        if args.debug:
            logger.exception("Cleanup failed")
        console.print(str(error), style="red", markup=False, highlight=False)
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())
