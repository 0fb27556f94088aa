from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping

from lagerbuch.config.sheets import ARTICLE_COLUMNS, TAB_ARTICLES, TAB_CATEGORIES
from lagerbuch.utils.validation import Problems, lenient_int, parse_int, pick

logger = logging.getLogger(__name__)

ID_PREFIX = 'A'
ID_WIDTH = 3


def stock_status(stock: int, min_stock: int) -> str:
    if not stock or not min_stock:
        return 'normal'
    ratio = stock / min_stock
    if ratio <= 1:
        return 'kritisch'
    if ratio <= 1.5:
        return 'warnung'
    return 'normal'


def _article_json(record: Mapping[str, str]) -> Dict[str, Any]:
    stock = lenient_int(record.get(ARTICLE_COLUMNS['stock']))
    min_stock = lenient_int(record.get(ARTICLE_COLUMNS['minStock']))
    return {
        'id': record.get(ARTICLE_COLUMNS['id'], ''),
        'name': record.get(ARTICLE_COLUMNS['name'], ''),
        'category': record.get(ARTICLE_COLUMNS['category'], ''),
        'stock': stock,
        'minStock': min_stock,
        'unit': record.get(ARTICLE_COLUMNS['unit'], ''),
        'stockStatus': stock_status(stock, min_stock),
    }


def next_article_id(existing_rows: int) -> str:
    return f'{ID_PREFIX}{existing_rows + 1:0{ID_WIDTH}d}'


class ArticleService:
    def __init__(self, workbook):
        self.workbook = workbook

    def list_items(self) -> List[Dict[str, Any]]:
        return [_article_json(r) for r in self.workbook.get_records(TAB_ARTICLES) if r.get(ARTICLE_COLUMNS['id'])]

    def list_categories(self) -> List[Dict[str, str]]:
        return [
            {'id': r.get('ID', ''), 'name': r.get('Name', '')}
            for r in self.workbook.get_records(TAB_CATEGORIES)
            if r.get('ID')
        ]

    def create_item(self, data: Mapping[str, Any]) -> str:
        problems = Problems()
        name = problems.require(pick(data, 'name'), 'Name ist erforderlich')
        numbers = {}
        for key in ('stock', 'minStock'):
            raw = pick(data, key, default=0)
            numbers[key] = parse_int(raw)
            if numbers[key] is None:
                problems.add(f'{key} muss eine ganze Zahl sein')
        problems.raise_if_any()
        # id derives from the row count; concurrent creates can race, the sheet has no constraints
        new_id = next_article_id(len(self.workbook.get_rows(TAB_ARTICLES)))
        self.workbook.append_row(TAB_ARTICLES, {
            ARTICLE_COLUMNS['id']: new_id,
            ARTICLE_COLUMNS['name']: name,
            ARTICLE_COLUMNS['category']: pick(data, 'category', default=''),
            ARTICLE_COLUMNS['stock']: numbers['stock'],
            ARTICLE_COLUMNS['minStock']: numbers['minStock'],
            ARTICLE_COLUMNS['unit']: pick(data, 'unit', default=''),
        })
        logger.info('Created article %s (%s)', new_id, name)
        return new_id
