from __future__ import annotations
from typing import Any, Dict, List
from lagerbuch.errors import ValidationError

def apply_filters(rows: List[Any], specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]) -> List[Any]:
    """Generic in-memory filter builder.

    specs: { param_name: { 'op': callable(value)->predicate(row)->bool, 'coerce': type/func (optional) } }
    Empty or missing params are skipped. Invalid values raise ValidationError listing every bad param.
    """
    predicates = []
    errors = []
    for name, meta in specs.items():
        val = params.get(name)
        if val is None or val == '':
            continue
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                errors.append(f'{name} ungültig')
                continue
        predicates.append(meta['op'](val))
    if errors:
        raise ValidationError(errors)
    if not predicates:
        return list(rows)
    return [r for r in rows if all(p(r) for p in predicates)]
