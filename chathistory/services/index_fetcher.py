# chathistory/services/index_fetcher.py
"""
Ordered range query over chat_index.

Ordering is (createtime DESC, idx_id DESC). Resuming from cursor (T, I):

    createtime < T OR (createtime = T AND idx_id < I)

With I == 0 the id tie-break is unavailable and the predicate degrades to
createtime < T, so every entry stamped exactly T is skipped. Clients that send
last_id get the exact boundary.
"""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from chathistory.models.feed import HistoryQuery, IndexEntry
from chathistory.models.orm import ChatIndex

logger = logging.getLogger("chathistory.index_fetcher")


def build_index_stmt(query: HistoryQuery):
    stmt = select(ChatIndex).where(ChatIndex.room_id == query.room_id)

    cursor = query.cursor
    if not cursor.is_start:
        if cursor.last_id > 0:
            stmt = stmt.where(
                or_(
                    ChatIndex.createtime < cursor.last_time,
                    and_(
                        ChatIndex.createtime == cursor.last_time,
                        ChatIndex.idx_id < cursor.last_id,
                    ),
                )
            )
        else:
            stmt = stmt.where(ChatIndex.createtime < cursor.last_time)

    return (
        stmt.order_by(ChatIndex.createtime.desc(), ChatIndex.idx_id.desc())
        .limit(query.per_page)
    )


def fetch_index_page(db: Session, query: HistoryQuery) -> List[IndexEntry]:
    rows = db.scalars(build_index_stmt(query)).all()
    entries = [IndexEntry.from_row(r) for r in rows]
    logger.debug(
        "index page room=%d per_page=%d cursor=(%d,%d) -> %d rows",
        query.room_id, query.per_page, query.cursor.last_time, query.cursor.last_id, len(entries),
    )
    return entries
