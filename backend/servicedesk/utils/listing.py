from __future__ import annotations
"""List endpoint helpers: limit/offset pagination, multi-field sort and ETags.

Response shape:
    {"data": [...], "pagination": {"total", "limit", "offset", "returned"}}
with an ``ETag`` header; a matching ``If-None-Match`` yields an empty 304.
"""
import hashlib
from typing import Iterable, Optional, Tuple
from flask import request, make_response
from servicedesk.errors import InvalidField

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def normalize_pagination(limit_raw, offset_raw) -> Tuple[int, int]:
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise InvalidField(description='limit/offset must be int')
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


def apply_multi_sort(query, sort_expr: Optional[str], allowed: dict, tie_breaker):
    """sort_expr: comma-separated keys, '-' prefix for descending (e.g. "-updated_at,status")."""
    clauses = []
    for raw in (sort_expr or '').split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        col = allowed.get(key)
        if col is None:
            raise InvalidField(description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker.asc())
    return query.order_by(*clauses)


def apply_pagination(q):
    limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def compute_etag(rows: Iterable[dict], total: int, limit: int, offset: int) -> str:
    seed = '|'.join(f"{r.get('id')}:{r.get('version', '')}:{r.get('updated_at', '')}" for r in rows)
    seed = f"{seed}|{total}|{limit}|{offset}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def list_response(rows: list, total: int, limit: int, offset: int):
    etag = compute_etag(rows, total, limit, offset)
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag:
        resp = make_response('', 304)
    else:
        resp = make_response({
            'data': rows,
            'pagination': {
                'total': total,
                'limit': limit,
                'offset': offset,
                'returned': len(rows)
            }
        })
    resp.headers['ETag'] = etag
    return resp
