from __future__ import annotations
import hashlib
import json
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple
from flask import request, make_response, jsonify
from lagerbuch.config.pagination import normalize_pagination
from lagerbuch.errors import ValidationError

def page_params(default_limit: Optional[int] = None) -> Tuple[int, int]:
    try:
        if default_limit is None:
            return normalize_pagination(request.args.get('page'), request.args.get('limit'))
        return normalize_pagination(request.args.get('page'), request.args.get('limit'), default_limit)
    except ValueError as e:
        raise ValidationError(str(e))

def paginate(rows: Sequence[Any], page: int, page_size: int) -> Tuple[List[Any], Dict[str, Any]]:
    """Slice one page. Pages past the end are empty but totals stay true."""
    total = len(rows)
    start = (page - 1) * page_size
    items = list(rows[start:start + page_size])
    return items, {
        'page': page,
        'pageSize': page_size,
        'limit': page_size,
        'totalRows': total,
        'totalPages': math.ceil(total / page_size) if page_size else 0,
        'returned': len(items),
        'hasMore': start + len(items) < total,
    }

def compute_etag(payload: Dict[str, Any]) -> str:
    seed = json.dumps(payload, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(seed.encode()).hexdigest()[:32]

def make_cached_response(payload: Dict[str, Any]):
    """JSON response with an ETag; 304 when the client already holds this exact page.

    The ETag covers the whole body, so it is keyed by filters, page and page size.
    """
    etag = compute_etag(payload)
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag:
        resp = make_response('', 304)
    else:
        resp = make_response(jsonify(payload))
    resp.headers['ETag'] = etag
    resp.headers['Cache-Control'] = 'no-cache'
    return resp
