import json
import threading

import httplib2
import pytest
from googleapiclient.errors import HttpError

from astroquiz import create_app, db
from astroquiz.errors import AuthError, StoreUnavailableError
from astroquiz.models import SheetRow
from astroquiz.services.store import (
    CellRange,
    GoogleSheetsStore,
    build_store,
    credentials_from_config,
    parse_range,
    SqlTabularStore,
)

from conftest import TestConfig


def test_parse_range_forms():
    assert parse_range('') == CellRange(0, 1, None, None)
    assert parse_range('A:G') == CellRange(0, 1, 6, None)
    assert parse_range('A2:F') == CellRange(0, 2, 5, None)
    assert parse_range('C5:G5') == CellRange(2, 5, 6, 5)
    assert parse_range('D5') == CellRange(3, 5, 3, 5)
    assert parse_range('AA1:AB2') == CellRange(26, 1, 27, 2)


def test_parse_range_rejects_garbage():
    with pytest.raises(ValueError):
        parse_range('5A')
    with pytest.raises(ValueError):
        parse_range('A0')


def test_sql_append_then_read_skips_header(flask_app):
    store = SqlTabularStore()
    store.append('planets', [['name', 'moons'], ['Mars', 2], ['Venus']])
    assert store.read('planets') == [['name', 'moons'], ['Mars', '2'], ['Venus']]
    assert store.read('planets', 'A2:B') == [['Mars', '2'], ['Venus']]
    assert store.read('planets', 'B:B') == [['moons'], ['2']]


def test_sql_read_missing_table_is_empty(flask_app):
    assert SqlTabularStore().read('nothing', 'A:Z') == []


def test_sql_update_overwrites_only_addressed_cells(flask_app):
    store = SqlTabularStore()
    store.append('t', [['id', 'a', 'b', 'c'], ['x', 1, 2, 3]])
    store.update('t', 'C2:D2', [[20, 30]])
    assert store.read('t', 'A2:D') == [['x', '1', '20', '30']]
    store.update('t', 'F2', [['far']])
    assert store.read('t', 'A2:F2') == [['x', '1', '20', '30', '', 'far']]


def test_sql_update_beyond_content_creates_row_and_gap(flask_app):
    store = SqlTabularStore()
    store.append('t', [['header']])
    store.update('t', 'B4', [['late']])
    assert store.read('t') == [['header'], [], [], ['', 'late']]
    # Appends land after the last existing row
    store.append('t', [['next']])
    assert store.read('t', 'A5') == [['next']]


def test_sql_cells_are_text(flask_app):
    store = SqlTabularStore()
    store.append('t', [[True, None, 1.5]])
    assert store.read('t') == [['TRUE', '', '1.5']]


class RacingStore(SqlTabularStore):
    """Lets another writer commit the row number this store just picked."""

    def __init__(self):
        self.raced = False

    def _next_row_number(self, table):
        number = super()._next_row_number(table)
        if not self.raced:
            self.raced = True
            db.session.add(SheetRow(sheet=table, row_number=number, cells='["other"]'))
            db.session.commit()
        return number


def test_sql_append_retries_when_row_number_is_taken(flask_app):
    store = RacingStore()
    store.append('t', [['header']])
    store.append('t', [['mine'], ['also mine']])
    assert store.read('t') == [['header'], ['other'], ['mine'], ['also mine']]


def test_sql_concurrent_appends_all_land(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'quiz.db'}"

    application = create_app(FileConfig)
    with application.app_context():
        db.create_all()
    store = application.extensions['quiz_store']
    errors = []

    def writer(worker):
        with application.app_context():
            for i in range(10):
                try:
                    store.append('sessions', [[f'{worker}-{i}']])
                except StoreUnavailableError as exc:
                    errors.append(exc)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    with application.app_context():
        rows = store.read('sessions')
        db.session.remove()
        db.engine.dispose()
    assert len(rows) == 60
    assert sorted(r[0] for r in rows) == sorted(f'{w}-{i}' for w in range(6) for i in range(10))


def test_build_store_selects_backend():
    assert isinstance(build_store({'STORE_BACKEND': 'sql'}), SqlTabularStore)
    assert isinstance(build_store({'STORE_BACKEND': 'sheets', 'GOOGLE_SPREADSHEET_ID': 'abc'}), GoogleSheetsStore)
    with pytest.raises(ValueError):
        build_store({'STORE_BACKEND': 'redis'})


def test_credentials_from_config():
    info = credentials_from_config({'GOOGLE_SERVICE_ACCOUNT_JSON': json.dumps({'client_email': 'a@b'})})
    assert info == {'client_email': 'a@b'}
    info = credentials_from_config({
        'GOOGLE_SERVICE_ACCOUNT_EMAIL': 'svc@example.iam',
        'GOOGLE_PRIVATE_KEY': '-----BEGIN-----\\nabc\\n-----END-----',
    })
    assert info['private_key'] == '-----BEGIN-----\nabc\n-----END-----'
    with pytest.raises(AuthError):
        credentials_from_config({})
    with pytest.raises(AuthError):
        credentials_from_config({'GOOGLE_SERVICE_ACCOUNT_JSON': '{nope'})


class FakeRequest:
    def __init__(self, outcome):
        self.outcome = outcome

    def execute(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeValues:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def get(self, **kwargs):
        self.calls.append(('get', kwargs))
        return FakeRequest(self.outcome)

    def append(self, **kwargs):
        self.calls.append(('append', kwargs))
        return FakeRequest(self.outcome)

    def update(self, **kwargs):
        self.calls.append(('update', kwargs))
        return FakeRequest(self.outcome)


class FakeService:
    def __init__(self, outcome):
        self.values_api = FakeValues(outcome)

    def spreadsheets(self):
        return self

    def values(self):
        return self.values_api


def _http_error(status):
    resp = httplib2.Response({'status': status})
    return HttpError(resp, b'{"error": {"message": "nope"}}', uri='https://sheets.googleapis.com')


def test_sheets_store_calls_values_api():
    service = FakeService({'values': [['id', 'n'], ['a', 1]]})
    store = GoogleSheetsStore('sheet-id', service=service)
    assert store.read('questions', 'A2:F') == [['id', 'n'], ['a', '1']]
    store.append('sessions', [['s1', 'ts']])
    store.update('sessions', 'D2', [['abandoned']])

    calls = service.values_api.calls
    assert calls[0] == ('get', {'spreadsheetId': 'sheet-id', 'range': 'questions!A2:F'})
    assert calls[1][1]['range'] == 'sessions!A:Z'
    assert calls[1][1]['valueInputOption'] == 'USER_ENTERED'
    assert calls[1][1]['insertDataOption'] == 'INSERT_ROWS'
    assert calls[2][1]['range'] == 'sessions!D2'
    assert calls[2][1]['body'] == {'values': [['abandoned']]}


def test_sheets_store_maps_http_errors():
    with pytest.raises(AuthError):
        GoogleSheetsStore('sheet-id', service=FakeService(_http_error(403))).read('questions')
    with pytest.raises(StoreUnavailableError) as excinfo:
        GoogleSheetsStore('sheet-id', service=FakeService(_http_error(503))).read('questions')
    assert not isinstance(excinfo.value, AuthError)


def test_sheets_store_requires_spreadsheet_id():
    with pytest.raises(StoreUnavailableError):
        GoogleSheetsStore(None, service=FakeService({})).read('questions')


def test_sheets_store_without_credentials_fails_with_auth_error():
    with pytest.raises(AuthError):
        GoogleSheetsStore('sheet-id', credentials_info=lambda: {}).read('questions')
