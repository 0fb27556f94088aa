DEFAULT_LIMIT = 10
MAX_LIMIT = 1000

def normalize_pagination(page_raw, limit_raw, default_limit=DEFAULT_LIMIT):
    try:
        page = int(page_raw) if page_raw not in (None, '') else 1
        limit = int(limit_raw) if limit_raw not in (None, '') else default_limit
    except ValueError:
        raise ValueError('page/limit must be int')
    page = max(1, page)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit
