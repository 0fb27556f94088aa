"""Working time entries on the first tab of the time tracking workbook."""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from lagerbuch.config.sheets import TAB_TIME_LOCATIONS, TIME_COLUMNS
from lagerbuch.services.dedup import DedupWindow
from lagerbuch.utils.dates import parse_date, utc_timestamp
from lagerbuch.utils.sorting import sort_newest_first
from lagerbuch.utils.validation import Problems, pick, require_list

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')


def working_hours(start: Optional[str], end: Optional[str]) -> str:
    """Duration between two ``HH:MM`` clock times as ``H:MM``; empty if unparsable."""
    ms, me = _TIME_RE.match((start or '').strip()), _TIME_RE.match((end or '').strip())
    if not ms or not me:
        return ''
    minutes = (int(me.group(1)) * 60 + int(me.group(2))) - (int(ms.group(1)) * 60 + int(ms.group(2)))
    sign = '-' if minutes < 0 else ''
    minutes = abs(minutes)
    return f'{sign}{minutes // 60}:{minutes % 60:02d}'


@dataclass(frozen=True)
class TimeEntry:
    employee_id: str
    date: str
    location: str
    start_time: str
    end_time: str
    timestamp: str = ''
    day: str = ''

    @classmethod
    def from_record(cls, rec: Mapping[str, str]) -> 'TimeEntry':
        def col(name):
            return (rec.get(TIME_COLUMNS[name]) or '').strip()
        return cls(
            employee_id=col('employeeId'),
            date=col('date'),
            location=col('location'),
            start_time=col('startTime'),
            end_time=col('endTime'),
            timestamp=col('timestamp'),
            day=col('day'),
        )

    def same_slot(self, other: 'TimeEntry') -> bool:
        return (self.employee_id, self.date, self.location, self.start_time, self.end_time) == \
            (other.employee_id, other.date, other.location, other.start_time, other.end_time)

    @property
    def lock_key(self) -> str:
        return f'{self.employee_id}-{self.date}-{self.location}-{self.start_time}-{self.end_time}'

    def to_row(self) -> Dict[str, str]:
        return {
            TIME_COLUMNS['employeeId']: self.employee_id,
            TIME_COLUMNS['date']: self.date,
            TIME_COLUMNS['location']: self.location,
            TIME_COLUMNS['startTime']: self.start_time,
            TIME_COLUMNS['endTime']: self.end_time,
            TIME_COLUMNS['timestamp']: self.timestamp,
        }

    def to_json(self):
        return {
            'date': self.date,
            'location': self.location,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'timestamp': self.timestamp,
            'day': self.day,
            'workingHours': working_hours(self.start_time, self.end_time),
        }


def _entry_date(entry: TimeEntry) -> Optional[datetime]:
    try:
        d: Optional[date] = parse_date(entry.date)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day) if d else None


class TimeTrackingService:
    def __init__(self, workbook, dedup: DedupWindow):
        self.workbook = workbook
        self.dedup = dedup

    def _entries(self) -> List[TimeEntry]:
        return [TimeEntry.from_record(r) for r in self.workbook.get_records(None)]

    def record_entry(self, employee_id: str, data: Mapping[str, Any]) -> str:
        problems = Problems()
        entry_date = problems.require(pick(data, 'date'), 'Datum ist erforderlich')
        location = problems.require(pick(data, 'location'), 'Standort ist erforderlich')
        start = problems.require(pick(data, 'startTime'), 'Startzeit ist erforderlich')
        end = problems.require(pick(data, 'endTime'), 'Endzeit ist erforderlich')
        for label, value in (('Startzeit', start), ('Endzeit', end)):
            if value and not _TIME_RE.match(str(value)):
                problems.add(f'{label} muss im Format HH:MM angegeben werden')
        problems.raise_if_any()
        entry = TimeEntry(employee_id, str(entry_date), str(location), str(start), str(end))

        if not self.dedup.claim(entry.lock_key):
            logger.info('Time entry already in progress: %s', entry.lock_key)
            return 'Wird bereits verarbeitet'
        try:
            if any(existing.same_slot(entry) for existing in self._entries()):
                logger.info('Time entry already recorded: %s', entry.lock_key)
                return 'Eintrag existiert bereits'
            stamped = TimeEntry(entry.employee_id, entry.date, entry.location,
                                entry.start_time, entry.end_time, timestamp=utc_timestamp())
            self.workbook.append_row(None, stamped.to_row())
            logger.info('Time entry recorded: %s', entry.lock_key)
            return 'Zeit erfolgreich erfasst'
        finally:
            self.dedup.release(entry.lock_key)

    def locations(self) -> List[str]:
        rows = self.workbook.get_rows(TAB_TIME_LOCATIONS)
        return [r[0].strip() for r in rows if r and r[0].strip()]

    def history(self, employee_id: str) -> List[Dict[str, Any]]:
        own = [e for e in self._entries() if e.employee_id == employee_id]
        return [e.to_json() for e in sort_newest_first(own, key=_entry_date)]

    def delete_entries(self, employee_id: str, timestamps: Iterable[Any]) -> int:
        wanted = {str(t).strip() for t in require_list(timestamps, 'timestamps muss eine Liste sein') if str(t).strip()}
        if not wanted:
            return 0
        # +2: header row and 1-based sheet rows
        row_numbers = [
            i + 2 for i, e in enumerate(self._entries())
            if e.employee_id == employee_id and e.timestamp in wanted
        ]
        deleted = self.workbook.delete_rows(None, row_numbers)
        logger.info('Deleted %d time entries of %s', deleted, employee_id)
        return deleted

