from __future__ import annotations
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

T = TypeVar('T')

def sort_newest_first(rows: List[T], key: Callable[[T], Optional[datetime]]) -> List[T]:
    """Stable sort by timestamp descending; rows without a timestamp go last.

    sorted(reverse=True) keeps the original order of equal keys, so ties stay
    in sheet order.
    """
    return sorted(rows, key=lambda r: _sort_key(key(r)), reverse=True)


def _sort_key(ts: Optional[datetime]):
    if ts is None:
        return (False, datetime.min)
    return (True, ts)
