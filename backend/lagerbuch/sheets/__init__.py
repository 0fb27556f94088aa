from flask import current_app

EXTENSION_KEY = 'lagerbuch.sheets'


def get_gateway():
    return current_app.extensions[EXTENSION_KEY]


def get_inventory_book():
    return get_gateway().open(current_app.config['INVENTORY_SHEET_ID'])


def get_time_book():
    return get_gateway().open(current_app.config['TIME_TRACKING_SHEET_ID'])
