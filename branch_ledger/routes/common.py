from __future__ import annotations
from typing import Tuple
from flask import request
from branch_ledger.config.pagination import normalize_page, DEFAULT_LIMIT
from branch_ledger.errors import ValidationError


def page_args(default_limit: int = DEFAULT_LIMIT, page_key: str = 'page') -> Tuple[int, int]:
    try:
        return normalize_page(request.args.get(page_key), request.args.get('limit'), default_limit)
    except ValueError as e:
        raise ValidationError(str(e))


def json_body():
    return request.get_json(silent=True)
