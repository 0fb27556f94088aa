"""Inventory movement booking and listing over the ``Transaktionen`` tab.

Rows are append-only. A movement type with two bookings (transfer) is
written as an outbound row at the source location followed by an inbound
row at the destination. The two appends are sequential and not atomic: if
the second one fails the first stays in the sheet and the caller gets a
``PartialBookingError`` instead of a success.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import cached_property, partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from lagerbuch.config.sheets import MOVEMENT_COLUMNS, TAB_MOVEMENTS
from lagerbuch.constants.permissions import RES_INVENTORY
from lagerbuch.errors import AppError, PartialBookingError, PermissionDeniedError, ValidationError
from lagerbuch.services.dedup import DedupWindow
from lagerbuch.services.policy import PermissionEvaluator
from lagerbuch.services.references import (
    ReferenceData, load_movement_types, read_concurrently, reference_jobs, references_from,
)
from lagerbuch.utils.dates import end_of_day, local_timestamp, parse_date, parse_timestamp, start_of_day
from lagerbuch.utils.filters import apply_filters
from lagerbuch.utils.listing import paginate
from lagerbuch.utils.sorting import sort_newest_first
from lagerbuch.utils.validation import Problems, parse_int, pick

logger = logging.getLogger(__name__)

MSG_BOOKED = 'Bewegung erfolgreich gespeichert'
MSG_TRANSFER_BOOKED = 'Umbuchung erfolgreich gespeichert'
MSG_DUPLICATE = 'Wird bereits verarbeitet'


# --- Booking ---

@dataclass(frozen=True)
class MovementDraft:
    employee_id: str
    location_id: str
    type_id: str
    article_id: str
    quantity: int
    note: str = ''
    target_location_id: Optional[str] = None
    resulting_stock: Optional[str] = None
    transfer: bool = False

    def dedup_key(self) -> Tuple:
        return (
            self.employee_id, self.location_id, self.target_location_id or '',
            self.type_id, self.article_id, self.quantity, self.note,
        )

    def rows(self, timestamp: str) -> List[Dict[str, Any]]:
        if not self.transfer:
            return [self._row(self.location_id, self.quantity, timestamp, self.resulting_stock)]
        amount = abs(self.quantity)
        return [
            self._row(self.location_id, -amount, timestamp, self.resulting_stock),
            self._row(self.target_location_id, amount, timestamp, None),
        ]

    def _row(self, location_id, quantity, timestamp, resulting_stock) -> Dict[str, Any]:
        return {
            MOVEMENT_COLUMNS['employeeId']: self.employee_id,
            MOVEMENT_COLUMNS['timestamp']: timestamp,
            MOVEMENT_COLUMNS['locationId']: location_id,
            MOVEMENT_COLUMNS['typeId']: self.type_id,
            MOVEMENT_COLUMNS['articleId']: self.article_id,
            MOVEMENT_COLUMNS['quantity']: quantity,
            MOVEMENT_COLUMNS['resultingStock']: '' if resulting_stock is None else resulting_stock,
            MOVEMENT_COLUMNS['note']: self.note,
        }


@dataclass
class BookingResult:
    message: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    duplicate: bool = False

    def to_json(self):
        return {'success': True, 'message': self.message}


class MovementBookingService:
    def __init__(self, workbook, evaluator: PermissionEvaluator, dedup: DedupWindow,
                 tz_name: str = 'Europe/Berlin', clock: Optional[Callable[[], datetime]] = None):
        self.workbook = workbook
        self.evaluator = evaluator
        self.dedup = dedup
        self.tz_name = tz_name
        self._clock = clock

    def validate(self, employee_id: str, data: Mapping[str, Any]) -> MovementDraft:
        """Check permission, then collect every input problem before failing."""
        if not self.evaluator.has_permission(employee_id, RES_INVENTORY, 'edit'):
            raise PermissionDeniedError()
        problems = Problems()
        location_id = problems.require(pick(data, 'locationId', 'lagerort_id'), 'Lagerort muss ausgewählt werden')
        type_id = problems.require(pick(data, 'typeId', 'typ_id'), 'Bewegungstyp muss ausgewählt werden')
        article_id = problems.require(pick(data, 'articleId', 'artikel_id'), 'Artikel muss ausgewählt werden')
        quantity = parse_int(pick(data, 'quantity', 'transaktionsmenge'))
        if not quantity:
            problems.add('Gültige Transaktionsmenge erforderlich')
        target_location_id = pick(data, 'targetLocationId', 'ziel_lagerort_id')
        transfer = False
        if type_id:
            movement_type = load_movement_types(self.workbook).get(str(type_id))
            if movement_type is None:
                problems.add('Unbekannter Bewegungstyp')
            elif movement_type.is_transfer:
                transfer = True
                if not target_location_id:
                    problems.add('Ziellagerort muss für Umbuchungen ausgewählt werden')
                elif str(target_location_id) == str(location_id):
                    problems.add('Ziellagerort muss sich vom Lagerort unterscheiden')
        problems.raise_if_any()
        resulting_stock = pick(data, 'resultingStock', 'bestand_lo')
        return MovementDraft(
            employee_id=employee_id,
            location_id=str(location_id),
            type_id=str(type_id),
            article_id=str(article_id),
            quantity=quantity,
            note=str(pick(data, 'note', 'buchungstext', default='')),
            target_location_id=str(target_location_id) if transfer else None,
            resulting_stock=None if resulting_stock is None else str(resulting_stock),
            transfer=transfer,
        )

    def _timestamp(self) -> str:
        now = self._clock() if self._clock else None
        return local_timestamp(self.tz_name, now)

    def create_movement(self, employee_id: str, data: Mapping[str, Any]) -> BookingResult:
        draft = self.validate(employee_id, data)
        key = draft.dedup_key()
        if not self.dedup.claim(key):
            logger.info('Duplicate booking absorbed for %s (%s/%s)', employee_id, draft.type_id, draft.article_id)
            return BookingResult(MSG_DUPLICATE, duplicate=True)
        rows = draft.rows(self._timestamp())
        written = 0
        try:
            for row in rows:
                self.workbook.append_row(TAB_MOVEMENTS, row)
                written += 1
        except AppError as e:
            if written:
                # outbound row stays in the sheet; keep the key so a retry is not booked twice
                logger.error('Transfer %s -> %s for %s only partially booked',
                             draft.location_id, draft.target_location_id, employee_id)
                raise PartialBookingError(written_rows=written) from e
            self.dedup.release(key)
            raise
        logger.info('Booked %d movement row(s) for %s: type=%s article=%s qty=%s',
                    written, employee_id, draft.type_id, draft.article_id, draft.quantity)
        return BookingResult(MSG_TRANSFER_BOOKED if draft.transfer else MSG_BOOKED, rows)


# --- Query ---

@dataclass(frozen=True)
class Movement:
    position: int
    employee_id: str
    timestamp: str
    location_id: str
    type_id: str
    article_id: str
    quantity: Optional[int]
    resulting_stock: str
    note: str

    @cached_property
    def occurred_at(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)

    @classmethod
    def from_record(cls, position: int, record: Mapping[str, str]) -> 'Movement':
        def col(name):
            return (record.get(MOVEMENT_COLUMNS[name]) or '').strip()
        return cls(
            position=position,
            employee_id=col('employeeId'),
            timestamp=col('timestamp'),
            location_id=col('locationId'),
            type_id=col('typeId'),
            article_id=col('articleId'),
            quantity=parse_int(col('quantity')),
            resulting_stock=col('resultingStock'),
            note=col('note'),
        )

    def to_json(self, refs: ReferenceData):
        body = {
            'employeeId': self.employee_id,
            'timestamp': self.timestamp,
            'locationId': self.location_id,
            'location': refs.location_name(self.location_id),
            'typeId': self.type_id,
            'type': refs.type_name(self.type_id),
            'articleId': self.article_id,
            'article': refs.article_name(self.article_id),
            'quantity': self.quantity,
            'resultingStock': self.resulting_stock,
            'note': self.note,
        }
        # sheet-style names read by the existing frontend
        body.update({
            'mitarbeiter_id': self.employee_id,
            'lagerort_id': self.location_id,
            'lagerort': body['location'],
            'typ_id': self.type_id,
            'trans_typ': body['type'],
            'artikel_id': self.article_id,
            'artikel': body['article'],
            'transaktionsmenge': self.quantity,
            'bestand_lo': self.resulting_stock,
            'buchungstext': self.note,
        })
        return body


@dataclass(frozen=True)
class MovementFilters:
    location_id: Optional[str] = None
    type_id: Optional[str] = None
    article_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> 'MovementFilters':
        problems = Problems()
        dates = {}
        for name in ('dateFrom', 'dateTo'):
            try:
                dates[name] = parse_date(args.get(name))
            except ValueError:
                problems.add(f'{name} ungültig')
        problems.raise_if_any()
        if dates['dateFrom'] and dates['dateTo'] and dates['dateFrom'] > dates['dateTo']:
            raise ValidationError('dateFrom liegt nach dateTo')
        return cls(
            location_id=args.get('location') or None,
            type_id=args.get('type') or None,
            article_id=args.get('article') or None,
            date_from=dates['dateFrom'],
            date_to=dates['dateTo'],
        )

    def as_params(self) -> Dict[str, Any]:
        return {
            'location': self.location_id,
            'type': self.type_id,
            'article': self.article_id,
            'dateFrom': self.date_from,
            'dateTo': self.date_to,
        }


def _after(bound: datetime):
    return lambda m: m.occurred_at is not None and m.occurred_at >= bound


def _before(bound: datetime):
    return lambda m: m.occurred_at is not None and m.occurred_at <= bound


MOVEMENT_FILTER_SPECS = {
    'location': {'op': lambda v: (lambda m: m.location_id == v)},
    'type': {'op': lambda v: (lambda m: m.type_id == v)},
    'article': {'op': lambda v: (lambda m: m.article_id == v)},
    'dateFrom': {'op': lambda d: _after(start_of_day(d))},
    'dateTo': {'op': lambda d: _before(end_of_day(d))},
}


class MovementQueryService:
    def __init__(self, workbook):
        self.workbook = workbook

    def load(self) -> Tuple[List[Movement], ReferenceData]:
        jobs = reference_jobs(self.workbook)
        jobs[TAB_MOVEMENTS] = partial(self.workbook.get_records, TAB_MOVEMENTS)
        results = read_concurrently(jobs)
        movements = [Movement.from_record(i, rec) for i, rec in enumerate(results[TAB_MOVEMENTS])]
        return movements, references_from(results)

    def list_movements(self, filters: MovementFilters, page: int = 1, page_size: int = 10):
        movements, refs = self.load()
        selected = apply_filters(movements, MOVEMENT_FILTER_SPECS, filters.as_params())
        ordered = sort_newest_first(selected, key=lambda m: m.occurred_at)
        page_rows, pagination = paginate(ordered, page, page_size)
        return {
            'items': [m.to_json(refs) for m in page_rows],
            'pagination': pagination,
        }
