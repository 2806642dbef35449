# chathistory/services/cursor.py
from __future__ import annotations

from typing import Any, Optional

from chathistory.core import config
from chathistory.core.errors import InvalidArgument
from chathistory.models.feed import HistoryQuery, PageCursor, START_CURSOR

# Largest value a signed 64-bit INTEGER column (SQLite, MySQL BIGINT, Postgres bigint) holds
MAX_STORE_INT = 2**63 - 1


def _as_int(value: Any, name: str, *, bounded: bool = True) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidArgument(f"invalid {name}")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidArgument(f"invalid {name}")
    if bounded and abs(number) > MAX_STORE_INT:
        raise InvalidArgument(f"{name} out of range")
    return number


def resolve_history_query(
    room_id: Any,
    per_page: Any = None,
    last_time: Any = None,
    last_id: Any = None,
) -> HistoryQuery:
    """
    Normalize raw request parameters into a HistoryQuery.
    - room_id: required positive int
    - per_page: default DEFAULT_PER_PAGE, clamped to [1, MAX_PER_PAGE]
    - last_time/last_id: default 0, negatives clamp to 0
    - room_id, last_time, last_id beyond the 64-bit store range are rejected
    A cursor without last_time is the start cursor, whatever last_id says.
    """
    rid = _as_int(room_id, "room_id")
    if rid is None or rid <= 0:
        raise InvalidArgument("invalid room_id")

    size = _as_int(per_page, "per_page", bounded=False)
    if size is None:
        size = config.DEFAULT_PER_PAGE
    size = min(config.MAX_PER_PAGE, max(1, size))

    t = max(0, _as_int(last_time, "last_time") or 0)
    i = max(0, _as_int(last_id, "last_id") or 0)

    cursor = PageCursor(last_time=t, last_id=i) if t > 0 else START_CURSOR
    return HistoryQuery(room_id=rid, per_page=size, cursor=cursor)
