"""
Gmail Client - Reads and deletes unread Gmail messages
"""

import asyncio
import base64
import json
import logging
from typing import Dict, List, Optional, Tuple

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from trash_cleaner.errors import ClientCreationFailed, DeleteFailed, FetchFailed
from trash_cleaner.models import Email
from trash_cleaner.store import ConfigStore


logger = logging.getLogger(__name__)

# batchDelete requires the full mail scope. If modifying these scopes, delete gmail.token.json.
SCOPES = ['https://mail.google.com/']
# Stores the user's access and refresh tokens, created when the authorization flow first completes
FILE_TOKEN = 'gmail.token.json'
# Stores the OAuth client secrets downloaded from the Google Cloud console
FILE_CREDENTIALS = 'gmail.credentials.json'
# Max ids accepted by a single batchDelete call
BATCH_DELETE_LIMIT = 1000


class GmailClient:
    """Email client over the Gmail API"""

    def __init__(self, service):  # Gmail API service object
        self.service = service

    # === Email Client ===

    async def get_unread_emails(self) -> List[Email]:
        try:
            message_ids = await self._list_unread_message_ids()
            emails = []
            for message_id in message_ids:
                message = await self._get_message(message_id)
                emails.append(self.parse_message(message))
        except HttpError as error:
            raise FetchFailed(f"Failed to get unread emails: {error}") from error

        logger.debug(f"Fetched {len(emails)} unread Gmail messages")
        return emails

    async def delete_emails(self, emails: List[Email]) -> None:
        message_ids = [email.id for email in emails]
        try:
            for start in range(0, len(message_ids), BATCH_DELETE_LIMIT):
                chunk = message_ids[start:start + BATCH_DELETE_LIMIT]
                await asyncio.to_thread(
                    lambda: self.service.users().messages().batchDelete(
                        userId='me',
                        body={'ids': chunk}
                    ).execute()
                )
        except HttpError as error:
            raise DeleteFailed(f"Failed to delete messages: {error}") from error

        logger.debug(f"Deleted {len(message_ids)} Gmail messages")

    # === Message Fetching ===

    async def _list_unread_message_ids(self) -> List[str]:
        message_ids = []
        page_token = None

        while True:
            messages, page_token = await self._fetch_message_page(page_token)
            message_ids.extend(message['id'] for message in messages)
            if not page_token:
                break

        return message_ids

    async def _fetch_message_page(self, page_token: Optional[str]) -> Tuple[List[Dict], Optional[str]]:
        """Fetch a page of unread messages, returns (messages, next_page_token)"""
        results = await asyncio.to_thread(
            lambda: self.service.users().messages().list(
                userId='me',
                labelIds=['UNREAD'],
                includeSpamTrash=True,
                pageToken=page_token
            ).execute()
        )

        return results.get('messages', []), results.get('nextPageToken')

    async def _get_message(self, message_id: str) -> Dict:
        return await asyncio.to_thread(
            lambda: self.service.users().messages().get(
                userId='me',
                id=message_id
            ).execute()
        )

    # === Parsing ===

    @classmethod
    def parse_message(cls, message: Dict) -> Email:
        """Convert a Gmail message resource to an Email"""
        payload = message.get('payload', {})
        headers = {h['name'].lower(): h['value'] for h in payload.get('headers', [])}

        return Email(
            id=message.get('id', ''),
            labels=message.get('labelIds', []),
            snippet=message.get('snippet', ''),
            subject=headers.get('subject', ''),
            sender=headers.get('from', ''),
            body=cls.get_body(payload)
        )

    @classmethod
    def get_body(cls, payload: Dict) -> str:
        """Concatenate the decoded body of a message part and its sub-parts"""
        body = payload.get('body', {})
        if body.get('size', 0) > 0 and body.get('data'):
            return cls.decode(body['data'])

        return ''.join(cls.get_body(part) for part in payload.get('parts', []))

    @staticmethod
    def decode(encoded_text: str) -> str:
        """Decode base64url text, tolerating missing padding"""
        padded = encoded_text + '=' * (-len(encoded_text) % 4)
        return base64.urlsafe_b64decode(padded).decode('utf-8', errors='replace')


class GmailClientFactory:
    """Authorizes with Google and creates GmailClient objects"""

    def __init__(self, config_store: ConfigStore):
        self.config_store = config_store

    def create_client(self, reconfig: bool = False, launch: bool = False) -> GmailClient:
        try:
            creds = self._authorize(reconfig, launch)
            service = build('gmail', 'v1', credentials=creds)
        except ClientCreationFailed:
            raise
        except Exception as error:
            raise ClientCreationFailed(f"Error creating Gmail client: {error}") from error

        logger.info("Successfully authenticated with Gmail")
        return GmailClient(service)

    # === Authentication ===

    def _authorize(self, reconfig: bool, launch: bool) -> Credentials:
        client_config = self.config_store.get(FILE_CREDENTIALS)
        if client_config is None:
            raise ClientCreationFailed(f"Gmail credentials file '{FILE_CREDENTIALS}' not found in the config directory")

        token = None if reconfig else self.config_store.get(FILE_TOKEN)
        creds = Credentials.from_authorized_user_info(token, SCOPES) if token else None

        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing expired Gmail credentials")
            creds.refresh(Request())
        else:
            creds = self._create_new_token(client_config, launch)

        # Save the credentials for the next run
        self.config_store.put(FILE_TOKEN, json.loads(creds.to_json()))
        return creds

    @staticmethod
    def _create_new_token(client_config: Dict, launch: bool) -> Credentials:
        flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
        return flow.run_local_server(
            port=0,
            open_browser=launch,
            authorization_prompt_message='Please authorize this app by visiting this url: {url}'
        )
