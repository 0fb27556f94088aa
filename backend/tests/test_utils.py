from datetime import date, datetime, timezone
import pytest
from lagerbuch.config.pagination import normalize_pagination
from lagerbuch.errors import ValidationError
from lagerbuch.utils.dates import local_timestamp, parse_date, parse_timestamp, utc_timestamp
from lagerbuch.utils.filters import apply_filters
from lagerbuch.utils.listing import compute_etag, paginate
from lagerbuch.utils.sorting import sort_newest_first
from lagerbuch.utils.validation import lenient_int, parse_int, pick


def test_parse_timestamp_formats():
    assert parse_timestamp('2024-03-01T08:00:00') == datetime(2024, 3, 1, 8)
    assert parse_timestamp('2024-03-01T08:00:00.000Z') == datetime(2024, 3, 1, 8)
    assert parse_timestamp('01.03.2024, 08:00:00') == datetime(2024, 3, 1, 8)
    assert parse_timestamp('1.3.2024 08:00') == datetime(2024, 3, 1, 8)
    assert parse_timestamp('') is None
    assert parse_timestamp('morgen') is None
    assert parse_timestamp('2024-13-45T00:00:00') is None


def test_parse_date():
    assert parse_date('2024-03-01') == date(2024, 3, 1)
    assert parse_date('01.03.2024') == date(2024, 3, 1)
    assert parse_date('  ') is None
    with pytest.raises(ValueError):
        parse_date('03/01/2024')


def test_local_timestamp_converts_to_zone():
    now = datetime(2024, 7, 1, 10, 0, tzinfo=timezone.utc)
    assert local_timestamp('Europe/Berlin', now) == '2024-07-01T12:00:00'
    winter = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert local_timestamp('Europe/Berlin', winter) == '2024-01-01T11:00:00'


def test_utc_timestamp_millis():
    now = datetime(2024, 7, 1, 10, 0, 5, 123456, tzinfo=timezone.utc)
    assert utc_timestamp(now) == '2024-07-01T10:00:05.123Z'


def test_sort_is_stable_and_puts_unknown_last():
    rows = [('a', None), ('b', 2), ('c', 1), ('d', 2), ('e', None)]
    ordered = sort_newest_first(rows, key=lambda r: r[1])
    assert [r[0] for r in ordered] == ['b', 'd', 'c', 'a', 'e']


def test_pages_cover_all_rows():
    rows = list(range(23))
    seen = []
    for page in range(1, 4):
        items, meta = paginate(rows, page, 10)
        assert meta['totalRows'] == 23 and meta['totalPages'] == 3
        assert meta['returned'] == len(items) <= 10
        seen += items
    assert seen == rows
    assert paginate([], 1, 10)[1]['totalPages'] == 0


def test_normalize_pagination():
    assert normalize_pagination(None, None) == (1, 10)
    assert normalize_pagination('0', '5000') == (1, 1000)
    with pytest.raises(ValueError):
        normalize_pagination('x', '1')


def test_apply_filters_collects_bad_values():
    specs = {
        'min': {'coerce': int, 'op': lambda v: (lambda r: r >= v)},
        'max': {'coerce': int, 'op': lambda v: (lambda r: r <= v)},
    }
    assert apply_filters([1, 5, 9], specs, {'min': '2', 'max': ''}) == [5, 9]
    with pytest.raises(ValidationError) as exc:
        apply_filters([1], specs, {'min': 'a', 'max': 'b'})
    assert exc.value.errors == ['min ungültig', 'max ungültig']


def test_etag_is_order_independent():
    assert compute_etag({'a': 1, 'b': [1, 2]}) == compute_etag({'b': [1, 2], 'a': 1})
    assert compute_etag({'a': 1}) != compute_etag({'a': 2})


def test_value_parsing_helpers():
    assert parse_int(' 12 ') == 12
    assert parse_int(True) is None
    assert parse_int(2.5) is None
    assert lenient_int('12 Stk') == 12
    assert lenient_int('-') == 0
    assert pick({'a': ' ', 'b': 'x'}, 'a', 'b') == 'x'
    assert pick({}, 'a', default=3) == 3
