"""
Shared test fixtures for Trash Cleaner tests
"""

import pytest

from tests.helpers import FakeEmailClient, MockGmailService, RecordingReporter, make_email, make_gmail_message
from trash_cleaner.models import Email


# === Fixtures ===

@pytest.fixture
def email() -> Email:
    """An empty email labeled spam"""
    return make_email()


@pytest.fixture
def client(email) -> FakeEmailClient:
    """Client whose mailbox holds the email fixture"""
    return FakeEmailClient([email])


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def sample_mailbox() -> dict:
    messages = [
        make_gmail_message('msg_001', labels=['UNREAD', 'SPAM']),
        make_gmail_message('msg_002', sender='Boss <boss@work.com>', subject='Q4 Review', body='See attached'),
        make_gmail_message('msg_003', sender=None, subject=None, body='', snippet=''),
        make_gmail_message('msg_004', labels=['INBOX']),  # already read
    ]
    return {'messages': messages}


@pytest.fixture
def mock_gmail_service(sample_mailbox) -> MockGmailService:
    return MockGmailService(sample_mailbox)
