"""
Helpers shared by the scoped entity services.

The owner restriction is applied here and nowhere else, before any user
filter, so a restricted scope can never widen what it sees.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

from bridge_console.core.exceptions import PermissionDeniedError, QueryError
from bridge_console.core.pagination import page_range
from bridge_console.core.permissions import Scope

logger = logging.getLogger(__name__)

# PostgREST default max-rows
MAX_ROWS = 1000


def restrict_to_scope(query, scope: Scope, owner_key: str):
    if not scope.can_query:
        raise PermissionDeniedError("No data access for this account")
    if scope.is_restricted:
        query = query.eq(owner_key, scope.owner_filter)
    return query


def execute_page(query, page: int, limit: int, context: str) -> Tuple[List[Dict[str, Any]], int]:
    """Apply the page range, run the query and drop rows without a primary key."""
    start, end = page_range(page, limit)
    try:
        result = query.range(start, end).execute()
    except Exception as e:
        logger.error(f"Error fetching {context}: {e}")
        raise QueryError.from_exception(e, f"Error fetching {context}")
    rows = [row for row in (result.data or []) if row.get("id") is not None]
    return rows, result.count or 0


def execute_rows(query, context: str) -> List[Dict[str, Any]]:
    try:
        result = query.execute()
    except Exception as e:
        logger.error(f"Error fetching {context}: {e}")
        raise QueryError.from_exception(e, f"Error fetching {context}")
    return result.data or []


def fetch_all_rows(build_query: Callable[[], Any], context: str, batch_size: int = MAX_ROWS) -> List[Dict[str, Any]]:
    """Read every row in batches; PostgREST caps a single response at its max-rows setting.

    build_query must return a fresh builder on every call; batches are ordered by id.
    """
    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        batch = execute_rows(build_query().order("id").range(start, start + batch_size - 1), context)
        rows.extend(batch)
        if len(batch) < batch_size:
            return rows
        start += batch_size
