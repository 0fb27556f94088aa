"""Per-location stock report.

The report tabs are maintained by sheet formulas, one tab per location id
(``L00`` aggregates every location). The layout is positional: the header
sits in a fixed row and data rows follow until the first row whose first
cell is empty. That parsing lives in ``SheetStockReportSource`` so another
source can replace it; the service only pages and filters.

When a tab or its header is missing the report answers with a placeholder
payload instead of an error, so the overview stays usable while a sheet is
being set up.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from lagerbuch.config.sheets import STOCK_ALL_LOCATIONS, STOCK_HEADER_ROW, STOCK_LAST_COLUMN
from lagerbuch.errors import NotFoundError
from lagerbuch.utils.listing import paginate

logger = logging.getLogger(__name__)

PLACEHOLDER_HEADERS = ['Artikel ID', 'Artikel', 'Bestand']


@dataclass
class StockReport:
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)

    def records(self) -> List[Dict[str, str]]:
        out = []
        for row in self.rows:
            padded = list(row) + [''] * (len(self.headers) - len(row))
            out.append({h: padded[i] for i, h in enumerate(self.headers)})
        return out


class StockReportSource:
    """Interface: ``read`` returns None when no report exists for the location."""

    def read(self, location_id: str) -> Optional[StockReport]:
        raise NotImplementedError


class SheetStockReportSource(StockReportSource):
    def __init__(self, workbook, header_row: int = STOCK_HEADER_ROW, last_column: str = STOCK_LAST_COLUMN):
        self.workbook = workbook
        self.header_row = header_row
        self.last_column = last_column

    def read(self, location_id: str) -> Optional[StockReport]:
        a1 = f'A{self.header_row}:{self.last_column}'
        try:
            values = self.workbook.get_values(location_id, a1)
        except NotFoundError:
            logger.warning('Stock report tab %s not found', location_id)
            return None
        if not values:
            return None
        headers = [h.strip() for h in values[0]]
        while headers and not headers[-1]:
            headers.pop()
        if not headers:
            logger.warning('Stock report tab %s has no header in row %d', location_id, self.header_row)
            return None
        rows = []
        for row in values[1:]:
            if not row or not str(row[0]).strip():
                break
            rows.append([str(c).strip() for c in row[:len(headers)]])
        return StockReport(headers=headers, rows=rows)


class StockReportService:
    def __init__(self, source: StockReportSource):
        self.source = source

    def report(self, location_id: Optional[str], article_id: Optional[str], page: int, page_size: int):
        location_id = location_id or STOCK_ALL_LOCATIONS
        report = self.source.read(location_id)
        if report is None:
            return placeholder_payload(location_id, page, page_size)
        rows = report.rows
        if article_id:
            rows = [r for r in rows if r and r[0] == article_id]
        page_rows, pagination = paginate(StockReport(report.headers, rows).records(), page, page_size)
        return {
            'success': True,
            'location': location_id,
            'headers': report.headers,
            'items': page_rows,
            'pagination': pagination,
        }


def placeholder_payload(location_id: str, page: int, page_size: int):
    _, pagination = paginate([], page, page_size)
    return {
        'success': True,
        'location': location_id,
        'headers': list(PLACEHOLDER_HEADERS),
        'items': [],
        'pagination': pagination,
        'placeholder': True,
        'message': f'Keine Bestandsdaten für Lagerort {location_id} gefunden',
    }
