# chathistory/services/history_service.py
"""
History read path: resolve -> (cache) -> index page -> assemble -> envelope.

First pages (no cursor) always hit the store so the live feed stays fresh.
Later pages are immutable once indexed and are cached for CACHE_TTL_SECS.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chathistory.core import config
from chathistory.core.errors import DependencyUnavailable
from chathistory.models.feed import HistoryQuery
from chathistory.models.schemas import DisplayItem, HistoryPage, envelope
from chathistory.services import assembler, index_fetcher
from chathistory.services.cache import TTLCache, history_cache_key
from chathistory.services.cursor import resolve_history_query
from chathistory.services.formatting import DEFAULT_STAKE_PARSER, StakeParser
from chathistory.services.stats import RequestStats

logger = logging.getLogger("chathistory.history")


def build_page(
    db: Session,
    query: HistoryQuery,
    *,
    parser: StakeParser = DEFAULT_STAKE_PARSER,
    stats: Optional[RequestStats] = None,
) -> HistoryPage:
    stats = stats or RequestStats()

    stats.query()
    entries = index_fetcher.fetch_index_page(db, query)
    if not entries:
        return HistoryPage(per_page=query.per_page, last_time=None, last_id=None, data=[])

    items = assembler.assemble_page(db, entries, parser=parser, stats=stats)

    # Cursor comes from the last index row fetched, not the last item shown
    last = entries[-1]
    return HistoryPage(
        per_page=query.per_page,
        last_time=last.createtime,
        last_id=last.idx_id,
        data=[DisplayItem(**item) for item in items],
    )


def _log_outcome(kind: str, room_id: int, stats: RequestStats, error: str | None = None) -> None:
    if error:
        logger.error("CHAT_HISTORY_ERROR type=%s room=%d %s error=%s", kind, room_id, stats.as_log_fields(), error)
        return
    if stats.duration_ms > config.SLOW_REQUEST_SECS * 1000:
        logger.warning("SLOW_QUERY type=%s room=%d %s", kind, room_id, stats.as_log_fields())
    else:
        logger.info("history type=%s room=%d %s", kind, room_id, stats.as_log_fields())


def get_history(
    db: Session,
    cache: TTLCache,
    *,
    room_id: Any,
    per_page: Any = None,
    last_time: Any = None,
    last_id: Any = None,
    parser: StakeParser = DEFAULT_STAKE_PARSER,
) -> Dict[str, Any]:
    """Return the JSON-ready success envelope. Raises InvalidArgument / DependencyUnavailable."""
    stats = RequestStats()
    query = resolve_history_query(room_id, per_page, last_time, last_id)

    use_cache = not query.cursor.is_start
    key = history_cache_key(query)
    if use_cache:
        cached = cache.get(key)
        if cached is not None:
            stats.cache_hits += 1
            _log_outcome("cache_hit", query.room_id, stats)
            return cached

    try:
        page = build_page(db, query, parser=parser, stats=stats)
    except SQLAlchemyError as e:
        _log_outcome("error", query.room_id, stats, error=type(e).__name__)
        raise DependencyUnavailable() from e

    result = envelope(page)
    if use_cache:
        cache.set(key, result)

    _log_outcome("success", query.room_id, stats)
    return result
