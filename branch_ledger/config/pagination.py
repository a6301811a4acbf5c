DEFAULT_PAGE = 1
DEFAULT_LIMIT = 15
HISTORY_LIMIT = 20
MAX_LIMIT = 100

def normalize_page(page_raw, limit_raw, default_limit=DEFAULT_LIMIT):
    try:
        page = int(page_raw) if page_raw is not None else DEFAULT_PAGE
        limit = int(limit_raw) if limit_raw is not None else default_limit
    except (TypeError, ValueError):
        raise ValueError('page/limit must be int')
    page = max(1, page)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit
