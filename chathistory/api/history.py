# chathistory/api/history.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from chathistory.api.deps import db_session, history_cache
from chathistory.models.schemas import ErrorResponse, HistoryResponse, RoomsResponse
from chathistory.services import history_service, rooms
from chathistory.services.cache import TTLCache

logger = logging.getLogger("chathistory.api.history")
router = APIRouter()

_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.get("/history", response_model=HistoryResponse, responses=_ERRORS, name="chat_history")
def history(
    # Raw strings: validation and clamping happen in the resolver, not in FastAPI
    room_id: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    last_time: Optional[str] = Query(None),
    last_id: Optional[str] = Query(None),
    db: Session = Depends(db_session),
    cache: TTLCache = Depends(history_cache),
):
    """
    One page of room history, newest first.
    Pass back last_time + last_id from the previous response to get the next page.
    """
    logger.info("GET /history room_id=%s per_page=%s last_time=%s last_id=%s",
                room_id, per_page, last_time, last_id)
    return history_service.get_history(
        db, cache, room_id=room_id, per_page=per_page, last_time=last_time, last_id=last_id,
    )


@router.get("/rooms", response_model=RoomsResponse, responses={500: {"model": ErrorResponse}}, name="chat_rooms")
def list_rooms(db: Session = Depends(db_session)):
    """Active rooms with their websocket endpoint."""
    return {"data": rooms.list_active_rooms(db)}
