# chathistory/services/rooms.py
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chathistory.core import config
from chathistory.core.errors import DependencyUnavailable
from chathistory.models.orm import GameRoom
from chathistory.models.schemas import RoomOut

logger = logging.getLogger("chathistory.rooms")


def ws_url_for(room_id: int) -> str:
    return config.WS_URLS.get(room_id, config.WS_DEFAULT_URL)


def list_active_rooms(db: Session) -> List[RoomOut]:
    stmt = (
        select(GameRoom)
        .where(GameRoom.status == 1, GameRoom.parent_id.in_(config.ROOM_PARENT_IDS))
        .order_by(GameRoom.id)
    )
    try:
        rooms = db.scalars(stmt).all()
    except SQLAlchemyError as e:
        logger.error("rooms: query failed error=%s", type(e).__name__)
        raise DependencyUnavailable() from e

    out = [RoomOut.model_validate(r).model_copy(update={"ws_url": ws_url_for(r.id)}) for r in rooms]
    logger.info("rooms: active=%d", len(out))
    return out
