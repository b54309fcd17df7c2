"""
Email Client - The mailbox capabilities the trash cleaner depends on
"""

from enum import Enum
from typing import List, Protocol

from trash_cleaner.models import Email
from trash_cleaner.store import ConfigStore


class EmailService(str, Enum):
    """Supported mail providers"""
    GMAIL = 'gmail'
    OUTLOOK = 'outlook'


class EmailClient(Protocol):
    async def get_unread_emails(self) -> List[Email]:
        """Return every unread email, raising FetchFailed on transport or auth errors"""
        ...

    async def delete_emails(self, emails: List[Email]) -> None:
        """Delete the emails in one batch, raising DeleteFailed when rejected"""
        ...


class EmailClientFactory(Protocol):
    def create_client(self, reconfig: bool = False, launch: bool = False) -> EmailClient:
        """Authorize against the provider and return a ready client

        reconfig ignores any stored token, launch opens the auth url in a browser.
        """
        ...


def get_client_factory(service: EmailService, config_store: ConfigStore) -> EmailClientFactory:
    """Return the client factory for a mail provider"""
    # Provider SDKs are only imported for the provider in use
    if service == EmailService.GMAIL:
        from trash_cleaner.gmail_client import GmailClientFactory
        return GmailClientFactory(config_store)
    if service == EmailService.OUTLOOK:
        from trash_cleaner.outlook_client import OutlookClientFactory
        return OutlookClientFactory(config_store)
    raise ValueError(f"Email service '{service}' not yet implemented.")
