"""
Outlook Client - Reads and deletes unread Outlook messages via Microsoft Graph
"""

import asyncio
import logging
import webbrowser
from typing import Any, Dict, List, Optional

import msal
import requests
from rich.console import Console

from trash_cleaner.errors import ClientCreationFailed, DeleteFailed, FetchFailed
from trash_cleaner.models import Email
from trash_cleaner.store import ConfigStore


logger = logging.getLogger(__name__)

console = Console()

# If modifying these scopes, delete outlook.token.json.
SCOPES = ['Mail.ReadWrite']
# Serialized MSAL token cache, created when the device code flow first completes
FILE_TOKEN = 'outlook.token.json'
# Holds client_id, tenant_id, aad_endpoint and graph_endpoint of the app registration
FILE_CREDENTIALS = 'outlook.credentials.json'

API_PATH_FOLDERS = 'v1.0/me/mailFolders'
API_PATH_MESSAGES = 'v1.0/me/messages'
PAGE_SIZE = 100
REQUEST_TIMEOUT = 30


class OutlookClient:
    """Email client over the Microsoft Graph mail API"""

    def __init__(self, graph_endpoint: str, access_token: str, session: Optional[requests.Session] = None):
        self.graph_endpoint = graph_endpoint.rstrip('/') + '/'
        self.session = session or requests.Session()
        self.session.headers['Authorization'] = f'Bearer {access_token}'

    # === Email Client ===

    async def get_unread_emails(self) -> List[Email]:
        try:
            folders = await self._get_all(API_PATH_FOLDERS, {
                '$select': 'id,displayName',
                '$top': PAGE_SIZE
            })
            messages = await self._get_all(API_PATH_MESSAGES, {
                '$select': 'subject,body,bodyPreview,categories,from,parentFolderId',
                '$filter': 'isRead eq false',
                '$top': PAGE_SIZE
            })
        except requests.RequestException as error:
            raise FetchFailed(f"Failed to get unread emails: {error}") from error

        folder_names = {folder['id']: folder.get('displayName', '') for folder in folders}
        logger.debug(f"Fetched {len(messages)} unread Outlook messages")
        return [self.parse_message(message, folder_names) for message in messages]

    async def delete_emails(self, emails: List[Email]) -> None:
        try:
            for email in emails:
                url = f'{self.graph_endpoint}{API_PATH_MESSAGES}/{email.id}'
                await asyncio.to_thread(self._call_api, 'delete', url)
        except requests.RequestException as error:
            raise DeleteFailed(f"Failed to delete messages: {error}") from error

        logger.debug(f"Deleted {len(emails)} Outlook messages")

    # === API Access ===

    async def _get_all(self, path: str, params: Optional[Dict[str, Any]]) -> List[Dict]:
        """Collect every item of a paged collection"""
        items = []
        url = f'{self.graph_endpoint}{path}'

        while url:
            data = await asyncio.to_thread(self._call_api, 'get', url, params)
            items.extend(data.get('value', []))
            # nextLink already carries the query
            url = data.get('@odata.nextLink')
            params = None

        return items

    def _call_api(self, method: str, url: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        response = self.session.request(method, url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json() if response.content else {}

    # === Parsing ===

    @classmethod
    def parse_message(cls, message: Dict, folder_names: Dict[str, str]) -> Email:
        """Convert a Graph message resource to an Email"""
        labels = list(message.get('categories') or [])
        folder_name = folder_names.get(message.get('parentFolderId'))
        if folder_name:
            labels.append(folder_name)

        address = (message.get('from') or {}).get('emailAddress') or {}

        return Email(
            id=message.get('id', ''),
            labels=labels,
            snippet=message.get('bodyPreview', ''),
            subject=message.get('subject', ''),
            sender=cls.format_sender(address.get('name', ''), address.get('address', '')),
            body=(message.get('body') or {}).get('content', '')
        )

    @staticmethod
    def format_sender(name: str, address: str) -> str:
        if not address:
            return name or ''
        return f'{name} <{address}>' if name else address


class OutlookClientFactory:
    """Authorizes with Microsoft identity platform and creates OutlookClient objects"""

    def __init__(self, config_store: ConfigStore):
        self.config_store = config_store

    def create_client(self, reconfig: bool = False, launch: bool = False) -> OutlookClient:
        credentials = self.config_store.get(FILE_CREDENTIALS)
        if credentials is None:
            raise ClientCreationFailed(f"Outlook credentials file '{FILE_CREDENTIALS}' not found in the config directory")

        try:
            access_token = self._authorize(credentials, reconfig, launch)
            graph_endpoint = credentials['graph_endpoint']
        except ClientCreationFailed:
            raise
        except Exception as error:
            raise ClientCreationFailed(f"Error creating Outlook client: {error}") from error

        logger.info("Successfully authenticated with Outlook")
        return OutlookClient(graph_endpoint, access_token)

    # === Authentication ===

    def _authorize(self, credentials: Dict, reconfig: bool, launch: bool) -> str:
        cache = msal.SerializableTokenCache()
        if not reconfig:
            state = self.config_store.get(FILE_TOKEN)
            if state:
                cache.deserialize(state)

        app = msal.PublicClientApplication(
            credentials['client_id'],
            authority=credentials['aad_endpoint'] + credentials['tenant_id'],
            token_cache=cache
        )

        result = None
        accounts = app.get_accounts()
        if accounts:
            result = app.acquire_token_silent(SCOPES, account=accounts[0])
        if not result:
            result = self._acquire_token_by_device_flow(app, launch)

        if cache.has_state_changed:
            self.config_store.put(FILE_TOKEN, cache.serialize())

        if 'access_token' not in result:
            raise ClientCreationFailed(f"Outlook sign in failed: {result.get('error_description', 'Unknown error')}")
        return result['access_token']

    @staticmethod
    def _acquire_token_by_device_flow(app: msal.PublicClientApplication, launch: bool) -> Dict:
        flow = app.initiate_device_flow(scopes=SCOPES)
        if 'user_code' not in flow:
            raise ClientCreationFailed(f"Outlook sign in failed: {flow.get('error_description', 'Failed to start login')}")

        if launch:
            console.print(f"Please authorize this app by entering '{flow['user_code']}' in the newly opened window")
            webbrowser.open(flow['verification_uri'])
        else:
            console.print(flow['message'])

        return app.acquire_token_by_device_flow(flow)
