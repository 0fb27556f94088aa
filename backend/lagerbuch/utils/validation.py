"""Reusable validation helpers for request payloads.

Validation accumulates every problem of a payload and reports them together,
so a form shows all missing fields at once.
"""
from __future__ import annotations
from typing import Any, List, Mapping, Optional, Sequence
from lagerbuch.errors import ValidationError


class Problems:
    def __init__(self):
        self.messages: List[str] = []

    def add(self, message: str) -> None:
        self.messages.append(message)

    def require(self, value: Any, message: str) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(message)
        return value

    def raise_if_any(self) -> None:
        if self.messages:
            raise ValidationError(self.messages)

    def __bool__(self) -> bool:
        return bool(self.messages)


def pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First non-empty value among alternative payload keys."""
    for k in keys:
        val = data.get(k)
        if val is None:
            continue
        if isinstance(val, str):
            val = val.strip()
            if not val:
                continue
        return val
    return default


def parse_int(value: Any) -> Optional[int]:
    """Strict integer parse: ints, integral floats and digit strings; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return None
    return None


def lenient_int(value: Any, default: int = 0) -> int:
    """Parse spreadsheet cells like ``"12"`` or ``"12 Stk"``; default when no leading number."""
    parsed = parse_int(value)
    if parsed is not None:
        return parsed
    if isinstance(value, str):
        text = value.strip()
        digits = ''
        for i, ch in enumerate(text):
            if ch.isdigit() or (i == 0 and ch in '+-'):
                digits += ch
            else:
                break
        parsed = parse_int(digits)
        if parsed is not None:
            return parsed
    return default


def require_list(value: Any, message: str) -> Sequence[Any]:
    if not isinstance(value, list):
        raise ValidationError(message)
    return value


__all__ = ['Problems', 'pick', 'parse_int', 'lenient_int', 'require_list']
