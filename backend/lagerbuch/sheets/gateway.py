"""Thin adapter over gspread.

``SpreadsheetGateway`` opens a workbook by id at most once per process and
hands out ``Workbook`` objects that expose row level reads, appends and
deletes. Every gspread / google-auth failure surfaces as ``StorageError``;
nothing here retries.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException

from lagerbuch.config.sheets import SCOPES
from lagerbuch.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

TOKEN_URI = 'https://oauth2.googleapis.com/token'


@contextmanager
def storage_call(what: str):
    try:
        yield
    except (GSpreadException, GoogleAuthError, OSError) as e:
        logger.exception('Spreadsheet call failed: %s', what)
        raise StorageError() from e


def load_service_account(email: Optional[str], private_key: Optional[str]) -> Credentials:
    if not email or not private_key:
        raise StorageError('Google Service-Account ist nicht konfiguriert')
    info = {
        'type': 'service_account',
        'client_email': email,
        # keys coming from .env files carry literal \n sequences
        'private_key': private_key.replace('\\n', '\n'),
        'token_uri': TOKEN_URI,
    }
    try:
        return Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, GoogleAuthError) as e:
        logger.exception('Invalid service account credentials')
        raise StorageError('Google Service-Account ist ungültig') from e


class Workbook:
    """One opened spreadsheet.

    The worksheet list and the header rows used for appends are fetched once
    and cached; a title that is not in the cache triggers one refresh before
    ``NotFoundError``.
    """

    def __init__(self, spreadsheet: gspread.Spreadsheet):
        self._spreadsheet = spreadsheet
        self._worksheets: Optional[List[gspread.Worksheet]] = None
        self._headers: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._spreadsheet.id

    @property
    def title(self) -> str:
        return self._spreadsheet.title

    def _load_worksheets(self) -> List[gspread.Worksheet]:
        with storage_call(f'list worksheets of {self.id}'):
            worksheets = list(self._spreadsheet.worksheets())
        self._worksheets = worksheets
        return worksheets

    @staticmethod
    def _find(worksheets: List[gspread.Worksheet], title: Optional[str]) -> Optional[gspread.Worksheet]:
        if title is None:
            return worksheets[0] if worksheets else None
        return next((ws for ws in worksheets if ws.title == title), None)

    def worksheet(self, title: Optional[str] = None) -> gspread.Worksheet:
        """Worksheet by title; the first tab when title is None."""
        with self._lock:
            ws = None
            if self._worksheets is not None:
                ws = self._find(self._worksheets, title)
            if ws is None:
                # first use, or a tab added since the last listing
                ws = self._find(self._load_worksheets(), title)
        if ws is None:
            raise NotFoundError(title or 'Erstes')
        return ws

    def _header(self, ws: gspread.Worksheet) -> List[str]:
        with self._lock:
            cached = self._headers.get(ws.title)
        if cached is not None:
            return cached
        with storage_call(f'read header {ws.title}'):
            header = ws.row_values(1)
        with self._lock:
            self._headers[ws.title] = header
        return header

    def get_values(self, title: Optional[str] = None, a1_range: Optional[str] = None) -> List[List[str]]:
        ws = self.worksheet(title)
        with storage_call(f'read {title} {a1_range or ""}'):
            if a1_range:
                return [list(r) for r in ws.get_values(a1_range)]
            return [list(r) for r in ws.get_all_values()]

    def get_rows(self, title: Optional[str] = None) -> List[List[str]]:
        """Data rows (header excluded) as raw cell lists."""
        return self.get_values(title)[1:]

    def get_records(self, title: Optional[str] = None) -> List[Dict[str, str]]:
        values = self.get_values(title)
        return rows_to_records(values)

    def append_row(self, title: Optional[str], mapping: Mapping[str, Any]) -> None:
        ws = self.worksheet(title)
        header = self._header(ws)
        with storage_call(f'append {title}'):
            ws.append_row(order_by_header(header, mapping, title), value_input_option='RAW')

    def delete_rows(self, title: Optional[str], row_numbers: Iterable[int]) -> int:
        """Delete 1-based sheet rows in one batch request."""
        numbers = sorted(set(row_numbers), reverse=True)
        if not numbers:
            return 0
        ws = self.worksheet(title)
        requests = [
            {
                'deleteDimension': {
                    'range': {
                        'sheetId': ws.id,
                        'dimension': 'ROWS',
                        'startIndex': n - 1,
                        'endIndex': n,
                    }
                }
            }
            for n in numbers
        ]
        with storage_call(f'delete rows {title}'):
            self._spreadsheet.batch_update({'requests': requests})
        return len(numbers)


def rows_to_records(values: List[List[str]]) -> List[Dict[str, str]]:
    if not values:
        return []
    header = [h.strip() for h in values[0]]
    records = []
    for row in values[1:]:
        padded = list(row) + [''] * (len(header) - len(row))
        records.append({h: padded[i] for i, h in enumerate(header) if h})
    return records


def order_by_header(header: List[str], mapping: Mapping[str, Any], title: Optional[str] = None) -> List[Any]:
    if not header:
        return list(mapping.values())
    unknown = [k for k in mapping if k not in header]
    if unknown:
        logger.warning('Columns %s missing in sheet %s, values dropped', unknown, title)
    return ['' if mapping.get(h) is None else mapping.get(h) for h in header]


class SpreadsheetGateway:
    """Lazily opened workbooks keyed by spreadsheet id."""

    def __init__(self, credentials_loader: Callable[[], Credentials]):
        self._credentials_loader = credentials_loader
        self._client: Optional[gspread.Client] = None
        self._books: Dict[str, Workbook] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'SpreadsheetGateway':
        return cls(lambda: load_service_account(
            config.get('GOOGLE_SERVICE_ACCOUNT_EMAIL'),
            config.get('GOOGLE_PRIVATE_KEY'),
        ))

    def _get_client(self) -> gspread.Client:
        if self._client is None:
            creds = self._credentials_loader()
            with storage_call('authorize'):
                self._client = gspread.authorize(creds)
        return self._client

    def open(self, spreadsheet_id: str) -> Workbook:
        with self._lock:
            book = self._books.get(spreadsheet_id)
            if book is None:
                client = self._get_client()
                with storage_call(f'open {spreadsheet_id}'):
                    book = Workbook(client.open_by_key(spreadsheet_id))
                logger.info('Opened spreadsheet %s (%s)', spreadsheet_id, book.title)
                self._books[spreadsheet_id] = book
            return book
