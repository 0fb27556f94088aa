import os, sys, re, pytest
from collections import OrderedDict
# Ensure backend directory is on path so 'lagerbuch' can be imported without installing
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from lagerbuch import create_app
from lagerbuch.constants.employees import EMPLOYEES
from lagerbuch.errors import NotFoundError, StorageError
from lagerbuch.services.credentials import EmployeeDirectory, hash_password
from lagerbuch.services.policy import AccessBundle
from lagerbuch.sheets.gateway import order_by_header, rows_to_records

INVENTORY_BOOK = 'inventory-book'
TIME_BOOK = 'time-book'

# MA001 keeps its real hash (password test123); the others exist only in tests
TEST_PASSWORD = 'pw'
_TEST_HASH = hash_password(TEST_PASSWORD, rounds=4)
TEST_EMPLOYEES = [e for e in EMPLOYEES if e['id'] == 'MA001'] + [
    {'id': 'T-ADMIN', 'name': 'Test Admin', 'password_hash': _TEST_HASH, 'roles': ['admin']},
    {'id': 'T-USER', 'name': 'Test User', 'password_hash': _TEST_HASH, 'roles': ['user']},
    {'id': 'T-VIEW', 'name': 'Test Viewer', 'password_hash': _TEST_HASH, 'roles': ['inventory-viewer']},
]

MOVEMENT_HEADER = ['Mitarbeiter ID', 'Timestamp', 'Lagerort ID', 'Typ ID', 'Artikel ID',
                   'Transaktionsmenge', 'Bestand LO', 'Buchungstext']


class FakeWorkbook:
    """In-memory stand-in for ``lagerbuch.sheets.gateway.Workbook``.

    Cells are stored as strings like the Sheets API returns them.
    ``fail_after`` lets N appends succeed and fails every later one.
    """

    def __init__(self, tabs):
        self.tabs = OrderedDict((title, [list(r) for r in rows]) for title, rows in tabs.items())
        self.fail_after = None

    def _tab(self, title):
        if title is None:
            title = next(iter(self.tabs))
        if title not in self.tabs:
            raise NotFoundError(title)
        return self.tabs[title]

    def get_values(self, title=None, a1_range=None):
        values = self._tab(title)
        if a1_range:
            start = int(re.match(r'[A-Z]+(\d+)', a1_range).group(1))
            values = values[start - 1:]
        return [list(r) for r in values]

    def get_rows(self, title=None):
        return self.get_values(title)[1:]

    def get_records(self, title=None):
        return rows_to_records(self.get_values(title))

    def append_row(self, title, mapping):
        if self.fail_after is not None:
            if self.fail_after <= 0:
                raise StorageError()
            self.fail_after -= 1
        tab = self._tab(title)
        row = order_by_header(tab[0] if tab else [], mapping, title)
        tab.append(['' if v is None else str(v) for v in row])

    def delete_rows(self, title, row_numbers):
        tab = self._tab(title)
        numbers = sorted(set(row_numbers), reverse=True)
        for n in numbers:
            del tab[n - 1]
        return len(numbers)


class FakeGateway:
    def __init__(self, books):
        self.books = books

    def open(self, spreadsheet_id):
        return self.books[spreadsheet_id]

    @property
    def inventory(self):
        return self.books[INVENTORY_BOOK]

    @property
    def time(self):
        return self.books[TIME_BOOK]


def inventory_tabs():
    return {
        'Artikel': [
            ['ID', 'Name', 'Kategorie', 'Bestand', 'MinBestand', 'Einheit'],
            ['A001', 'Schrauben', 'Kleinteile', '50', '40', 'Stk'],
            ['A002', 'Dübel', 'Kleinteile', '10', '20', 'Stk'],
        ],
        'Kategorien': [['ID', 'Name'], ['K01', 'Kleinteile'], ['K02', 'Werkzeug']],
        'Lagerort': [['ID', 'Name'], ['L01', 'Hauptlager'], ['L02', 'Werkstatt']],
        'Transaktionstypen': [
            ['ID', 'Name', 'Anzahl Buchungen'],
            ['T01', 'Zugang', '1'],
            ['T02', 'Abgang', '1'],
            ['T03', 'Umbuchung', '2'],
        ],
        'Transaktionen': [
            MOVEMENT_HEADER,
            ['MA001', '2024-03-01T08:00:00', 'L01', 'T01', 'A001', '10', '60', 'Lieferung'],
            ['MA001', '2024-03-02T00:00:00', 'L02', 'T02', 'A002', '-2', '8', ''],
            ['MA003', '2024-03-02T23:59:59.000Z', 'L01', 'T02', 'A001', '-5', '55', ''],
            ['MA001', '03.03.2024, 12:30:00', 'L01', 'T01', 'A002', '4', '14', ''],
            ['MA001', 'kaputt', 'L01', 'T01', 'A001', '1', '', ''],
            ['MA003', '2024-03-05T09:15:00', 'L02', 'T01', 'A001', '7', '7', ''],
        ],
        'L00': [
            ['Bestandsübersicht'],
            [],
            ['Artikel ID', 'Artikel', 'Bestand', '', ''],
            ['A001', 'Schrauben', '62'],
            ['A002', 'Dübel', '12'],
            ['', '', ''],
            ['X', 'Summe', '74'],
        ],
        'L02': [[], [], ['', '']],
    }


def time_tabs():
    return {
        'Zeiterfassung': [
            ['Mitarbeiter_ID', 'Datum', 'Standort', 'Startzeit', 'Endzeit', 'Timestamp', 'Tag'],
            ['T-USER', '2024-03-01', 'Büro', '08:00', '16:30', '2024-03-01T16:31:00.000Z', 'Freitag'],
            ['T-USER', '2024-03-04', 'Baustelle', '07:00', '15:00', '2024-03-04T15:01:00.000Z', 'Montag'],
            ['MA001', '2024-03-02', 'Büro', '09:00', '12:00', '2024-03-02T12:00:00.000Z', 'Samstag'],
        ],
        'Standorte': [['Standort'], ['Büro'], ['Baustelle'], ['']],
    }


@pytest.fixture()
def sheets():
    return FakeGateway({
        INVENTORY_BOOK: FakeWorkbook(inventory_tabs()),
        TIME_BOOK: FakeWorkbook(time_tabs()),
    })


@pytest.fixture()
def app_config(sheets):
    return {
        'TESTING': True,
        'JWT_SECRET_KEY': 'test-secret',
        'JWT_COOKIE_CSRF_PROTECT': False,
        'INVENTORY_SHEET_ID': INVENTORY_BOOK,
        'TIME_TRACKING_SHEET_ID': TIME_BOOK,
        'SHEETS_GATEWAY': sheets,
        'ACCESS_BUNDLE': AccessBundle(EmployeeDirectory.from_records(TEST_EMPLOYEES)),
    }


@pytest.fixture()
def app_instance(app_config):
    yield create_app(app_config)


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


def login(client, employee_id, password=TEST_PASSWORD):
    resp = client.post('/api/login', json={'employeeId': employee_id, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()
