"""Timestamp handling for spreadsheet rows.

Rows carry timestamps written by different versions of the app: ISO strings
(sometimes with a misleading ``.000Z`` suffix on local time) and German
day-first strings typed in by hand. All are parsed to naive local datetimes.
"""
from __future__ import annotations
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

_DAY_FIRST_FORMATS = (
    '%d.%m.%Y, %H:%M:%S',
    '%d.%m.%Y %H:%M:%S',
    '%d.%m.%Y, %H:%M',
    '%d.%m.%Y %H:%M',
    '%d.%m.%Y',
)

_DATE_FORMATS = ('%Y-%m-%d', '%d.%m.%Y')


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    value = raw.strip()
    if not value:
        return None
    if value[0].isdigit() and len(value) >= 10 and value[4] == '-':
        iso = value[:-1] if value.endswith('Z') else value
        try:
            dt = datetime.fromisoformat(iso)
        except ValueError:
            return None
        return dt.replace(tzinfo=None)
    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse a filter date (``YYYY-MM-DD`` or ``DD.MM.YYYY``); ValueError if malformed."""
    if raw is None or not raw.strip():
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f'invalid date {raw!r}')


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def local_timestamp(tz_name: str, now: Optional[datetime] = None) -> str:
    """Current wall clock time in ``tz_name`` as ``YYYY-MM-DDTHH:MM:SS``."""
    current = now or datetime.now(ZoneInfo(tz_name))
    if current.tzinfo is not None:
        current = current.astimezone(ZoneInfo(tz_name))
    return current.strftime('%Y-%m-%dT%H:%M:%S')


def utc_timestamp(now: Optional[datetime] = None) -> str:
    current = now or datetime.now(ZoneInfo('UTC'))
    return current.astimezone(ZoneInfo('UTC')).strftime('%Y-%m-%dT%H:%M:%S.') + f'{current.microsecond // 1000:03d}Z'


__all__ = ['parse_timestamp', 'parse_date', 'start_of_day', 'end_of_day', 'local_timestamp', 'utc_timestamp']
