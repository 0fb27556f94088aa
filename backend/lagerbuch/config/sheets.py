"""Workbook ids, tab titles and column headers of the backing spreadsheets.

Tab and column names are the ones used in the live workbooks; renaming a
column in the sheet requires changing it here.
"""

DEFAULT_TIME_TRACKING_SHEET_ID = '1bI-3Kwxe9BzdbNKq5QCKmWGsXy09ZegDVlxCHamCDQ0'
DEFAULT_INVENTORY_SHEET_ID = '10w22PcqGyhDKTc3baY78AaWPQg5j72QDTUehEs6WjQk'

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

# Inventory workbook
TAB_ARTICLES = 'Artikel'
TAB_CATEGORIES = 'Kategorien'
TAB_MOVEMENTS = 'Transaktionen'
TAB_LOCATIONS = 'Lagerort'
TAB_MOVEMENT_TYPES = 'Transaktionstypen'

ARTICLE_COLUMNS = {
    'id': 'ID',
    'name': 'Name',
    'category': 'Kategorie',
    'stock': 'Bestand',
    'minStock': 'MinBestand',
    'unit': 'Einheit',
}

MOVEMENT_COLUMNS = {
    'employeeId': 'Mitarbeiter ID',
    'timestamp': 'Timestamp',
    'locationId': 'Lagerort ID',
    'typeId': 'Typ ID',
    'articleId': 'Artikel ID',
    'quantity': 'Transaktionsmenge',
    'resultingStock': 'Bestand LO',
    'note': 'Buchungstext',
}

# Per-location stock report tabs (tab title == location id, L00 aggregates all)
STOCK_ALL_LOCATIONS = 'L00'
STOCK_HEADER_ROW = 3
STOCK_LAST_COLUMN = 'Z'

# Time tracking workbook (entries live on the first tab)
TAB_TIME_LOCATIONS = 'Standorte'

TIME_COLUMNS = {
    'employeeId': 'Mitarbeiter_ID',
    'date': 'Datum',
    'location': 'Standort',
    'startTime': 'Startzeit',
    'endTime': 'Endzeit',
    'timestamp': 'Timestamp',
    'day': 'Tag',
}
