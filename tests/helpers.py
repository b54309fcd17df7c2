"""
Test helpers: fake collaborators, mock Gmail service and data builders
"""

import base64
from typing import Dict, List, Optional

from googleapiclient.errors import HttpError

from trash_cleaner.models import Email


# === Fake Email Client ===

class FakeEmailClient:
    """In-memory email client that records deletions"""

    def __init__(
        self,
        emails: Optional[List[Email]] = None,
        fetch_error: Optional[Exception] = None,
        delete_error: Optional[Exception] = None
    ):
        self.emails = emails or []
        self.fetch_error = fetch_error
        self.delete_error = delete_error
        self.fetch_calls = 0
        self.deleted_batches: List[List[str]] = []

    async def get_unread_emails(self) -> List[Email]:
        self.fetch_calls += 1
        if self.fetch_error:
            raise self.fetch_error
        return list(self.emails)

    async def delete_emails(self, emails: List[Email]) -> None:
        if self.delete_error:
            raise self.delete_error
        self.deleted_batches.append([email.id for email in emails])


# === Recording Progress Sink ===

class RecordingReporter:
    """Progress sink that records every event with its payload"""

    def __init__(self):
        self.events = []

    def on_start(self, dry_run):
        self.events.append(('start', dry_run))

    def on_retrieving_unread_emails(self):
        self.events.append(('retrieving', None))

    def on_unread_emails_retrieved(self, emails):
        self.events.append(('retrieved', list(emails)))

    def on_trash_emails_identified(self, trash_emails):
        self.events.append(('identified', list(trash_emails)))

    def on_deleting_trash(self):
        self.events.append(('deleting', None))

    def on_trash_deleted(self):
        self.events.append(('deleted', None))

    def on_stop(self):
        self.events.append(('stop', None))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def payload(self, name: str):
        return next(data for event, data in self.events if event == name)


# === Mock Gmail API Service ===

class MockExecute:
    """Mock for the .execute() call that returns stored data"""
    def __init__(self, data=None, error: Optional[Exception] = None):
        self._data = data
        self._error = error

    def execute(self):
        if self._error:
            raise self._error
        return self._data


class MockHttpResponse:
    """Mock HTTP response for HttpError"""
    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason


def make_http_error(status: int = 500, reason: str = 'Backend Error') -> HttpError:
    return HttpError(resp=MockHttpResponse(status, reason), content=b'{}')


class MockMessages:
    """Mock for users().messages()"""
    def __init__(self, mailbox: dict, page_size: int, fail_list: bool, fail_delete: bool):
        self._messages = mailbox.get('messages', [])
        self._by_id = {m['id']: m for m in self._messages}
        self._page_size = page_size
        self._fail_list = fail_list
        self._fail_delete = fail_delete
        self.list_calls: List[Dict] = []
        self.deleted_batches: List[List[str]] = []

    def list(self, userId: str, labelIds: List[str] = None, includeSpamTrash: bool = False,
             pageToken: Optional[str] = None):
        self.list_calls.append({'labelIds': labelIds, 'includeSpamTrash': includeSpamTrash, 'pageToken': pageToken})
        if self._fail_list:
            return MockExecute(error=make_http_error())

        unread = [m for m in self._messages if 'UNREAD' in m.get('labelIds', [])]
        start_idx = int(pageToken) if pageToken else 0
        end_idx = min(start_idx + self._page_size, len(unread))

        result = {}
        # Like the real API, an empty page has no 'messages' key
        if unread[start_idx:end_idx]:
            result['messages'] = [{'id': m['id'], 'threadId': m['id']} for m in unread[start_idx:end_idx]]
        if end_idx < len(unread):
            result['nextPageToken'] = str(end_idx)

        return MockExecute(result)

    def get(self, userId: str, id: str):
        return MockExecute(self._by_id[id])

    def batchDelete(self, userId: str, body: Dict):
        if self._fail_delete:
            return MockExecute(error=make_http_error(403, 'Insufficient Permission'))
        self.deleted_batches.append(list(body['ids']))
        return MockExecute('')


class MockUsers:
    """Mock for service.users()"""
    def __init__(self, messages: MockMessages):
        self._messages = messages

    def messages(self):
        return self._messages


class MockGmailService:
    """Mock Gmail API service over a list of message resources"""

    def __init__(self, mailbox: dict, page_size: int = 100, fail_list: bool = False, fail_delete: bool = False):
        self.messages = MockMessages(mailbox, page_size, fail_list, fail_delete)

    def users(self):
        return MockUsers(self.messages)

    @property
    def deleted_ids(self) -> List[str]:
        return [message_id for batch in self.messages.deleted_batches for message_id in batch]


# === Helpers to create test data ===

def make_email(
    email_id: str = 'msg_001',
    labels=('spam',),
    snippet: str = '',
    subject: str = '',
    sender: str = '',
    body: str = ''
) -> Email:
    return Email(id=email_id, labels=set(labels), snippet=snippet, subject=subject, sender=sender, body=body)


def encode(text: str) -> str:
    """base64url without padding, the way Gmail returns body data"""
    return base64.urlsafe_b64encode(text.encode('utf-8')).decode('ascii').rstrip('=')


def make_gmail_message(
    message_id: str,
    sender: Optional[str] = 'Promo <promo@spam.com>',
    subject: Optional[str] = 'Buy now!',
    body: str = 'Limited offer',
    labels: List[str] = None,
    snippet: str = 'Limited offer'
) -> dict:
    """Helper to create a single-part message matching the Gmail API structure"""
    headers = []
    if sender is not None:
        headers.append({'name': 'From', 'value': sender})
    if subject is not None:
        headers.append({'name': 'Subject', 'value': subject})

    return {
        'id': message_id,
        'threadId': message_id,
        'labelIds': labels if labels is not None else ['UNREAD', 'INBOX'],
        'snippet': snippet,
        'payload': {
            'mimeType': 'text/plain',
            'headers': headers,
            'body': {'size': len(body), 'data': encode(body)} if body else {'size': 0}
        }
    }


