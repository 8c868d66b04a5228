import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from astroquiz.errors import AuthError, StoreUnavailableError
from .base import TabularStore

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

CredentialsSource = Union[Dict[str, Any], Callable[[], Dict[str, Any]], None]


def credentials_from_config(config) -> Dict[str, Any]:
    """Service account info from GOOGLE_SERVICE_ACCOUNT_JSON or the email/key pair."""
    raw = config.get('GOOGLE_SERVICE_ACCOUNT_JSON')
    if raw:
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise AuthError(f"GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON: {exc}") from exc
    email = config.get('GOOGLE_SERVICE_ACCOUNT_EMAIL')
    key = config.get('GOOGLE_PRIVATE_KEY')
    if email and key:
        return {
            'type': 'service_account',
            'client_email': email,
            'private_key': key.replace('\\n', '\n'),
            'token_uri': 'https://oauth2.googleapis.com/token',
        }
    raise AuthError('Missing Google Service Account credentials')


class GoogleSheetsStore(TabularStore):
    """Tabular store backed by one Google spreadsheet; each table is a sheet tab."""

    def __init__(self, spreadsheet_id: Optional[str], credentials_info: CredentialsSource = None, service=None):
        self.spreadsheet_id = spreadsheet_id
        self._credentials_info = credentials_info
        self._service = service

    def _values(self):
        if self._service is None:
            self._service = self._build_service()
        if not self.spreadsheet_id:
            raise StoreUnavailableError('GOOGLE_SPREADSHEET_ID not configured')
        return self._service.spreadsheets().values()

    def _build_service(self):
        from google.auth.exceptions import GoogleAuthError
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        info = self._credentials_info() if callable(self._credentials_info) else self._credentials_info
        if not info:
            raise AuthError('Missing Google Service Account credentials')
        try:
            creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, GoogleAuthError) as exc:
            raise AuthError(f"Failed to authenticate with Google Sheets: {exc}") from exc
        return build('sheets', 'v4', credentials=creds, cache_discovery=False)

    def _execute(self, request, what: str):
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError

        try:
            return request.execute()
        except HttpError as exc:
            if exc.resp.status in (401, 403):
                raise AuthError(f"{what}: {exc}") from exc
            raise StoreUnavailableError(f"{what}: {exc}") from exc
        except GoogleAuthError as exc:
            raise AuthError(f"{what}: {exc}") from exc
        except OSError as exc:
            raise StoreUnavailableError(f"{what}: {exc}") from exc

    def read(self, table: str, a1: str = '') -> List[List[str]]:
        full_range = f"{table}!{a1}" if a1 else table
        request = self._values().get(spreadsheetId=self.spreadsheet_id, range=full_range)
        response = self._execute(request, f"Error reading sheet {table}")
        return [[str(cell) for cell in row] for row in response.get('values', [])]

    def append(self, table: str, rows: Sequence[Sequence[Any]]) -> None:
        request = self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=f"{table}!A:Z",
            valueInputOption='USER_ENTERED',
            insertDataOption='INSERT_ROWS',
            body={'values': [list(r) for r in rows]},
        )
        self._execute(request, f"Error appending to sheet {table}")

    def update(self, table: str, a1: str, rows: Sequence[Sequence[Any]]) -> None:
        request = self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=f"{table}!{a1}",
            valueInputOption='USER_ENTERED',
            body={'values': [list(r) for r in rows]},
        )
        self._execute(request, f"Error updating sheet {table}")
