"""Reference data joined into movement and report views: locations,
movement types and articles. Each tab holds the id in column A and the
display name in column B; movement types keep the number of bookings a
movement of that type produces in column C.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional
from lagerbuch.config.sheets import TAB_ARTICLES, TAB_LOCATIONS, TAB_MOVEMENT_TYPES
from lagerbuch.utils.validation import parse_int

REFERENCE_TABS = (TAB_LOCATIONS, TAB_MOVEMENT_TYPES, TAB_ARTICLES)


@dataclass(frozen=True)
class RefEntry:
    id: str
    name: str

    def to_json(self):
        return {'id': self.id, 'name': self.name}


@dataclass(frozen=True)
class MovementType(RefEntry):
    number_of_bookings: int = 1

    @property
    def is_transfer(self) -> bool:
        return self.number_of_bookings == 2

    def to_json(self):
        return {'id': self.id, 'name': self.name, 'numberOfBookings': self.number_of_bookings}


@dataclass
class ReferenceData:
    locations: List[RefEntry] = field(default_factory=list)
    types: List[MovementType] = field(default_factory=list)
    articles: List[RefEntry] = field(default_factory=list)

    def __post_init__(self):
        self._location_names = {e.id: e.name for e in self.locations}
        self._types = {t.id: t for t in self.types}
        self._article_names = {e.id: e.name for e in self.articles}

    def location_name(self, location_id: Optional[str]) -> str:
        return self._location_names.get(location_id or '', '')

    def type_name(self, type_id: Optional[str]) -> str:
        t = self._types.get(type_id or '')
        return t.name if t else ''

    def article_name(self, article_id: Optional[str]) -> str:
        return self._article_names.get(article_id or '', '')

    def as_dict(self):
        return {
            'locations': [e.to_json() for e in self.locations],
            'types': [t.to_json() for t in self.types],
            'articles': [e.to_json() for e in self.articles],
        }


def _entries(rows: List[List[str]]) -> List[RefEntry]:
    return [RefEntry(id=r[0].strip(), name=(r[1].strip() if len(r) > 1 else '')) for r in rows if r and r[0].strip()]


def _types(rows: List[List[str]]) -> List[MovementType]:
    types = []
    for r in rows:
        if not r or not r[0].strip():
            continue
        bookings = parse_int(r[2]) if len(r) > 2 else None
        types.append(MovementType(
            id=r[0].strip(),
            name=r[1].strip() if len(r) > 1 else '',
            number_of_bookings=bookings if bookings in (1, 2) else 1,
        ))
    return types


def build_references(location_rows, type_rows, article_rows) -> ReferenceData:
    return ReferenceData(
        locations=_entries(location_rows),
        types=_types(type_rows),
        articles=_entries(article_rows),
    )


def read_concurrently(jobs: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
    """Run independent sheet reads in parallel; the first failure propagates."""
    with ThreadPoolExecutor(max_workers=max(1, len(jobs)), thread_name_prefix='sheets-read') as pool:
        futures = {name: pool.submit(job) for name, job in jobs.items()}
        return {name: f.result() for name, f in futures.items()}


def reference_jobs(workbook) -> Dict[str, Callable[[], Any]]:
    return {title: partial(workbook.get_rows, title) for title in REFERENCE_TABS}


def references_from(results: Dict[str, Any]) -> ReferenceData:
    return build_references(results[TAB_LOCATIONS], results[TAB_MOVEMENT_TYPES], results[TAB_ARTICLES])


def load_references(workbook) -> ReferenceData:
    return references_from(read_concurrently(reference_jobs(workbook)))


def load_movement_types(workbook) -> Dict[str, MovementType]:
    return {t.id: t for t in _types(workbook.get_rows(TAB_MOVEMENT_TYPES))}
