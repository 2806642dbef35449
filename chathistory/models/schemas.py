# chathistory/models/schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


# ---------- History ----------
class DisplayItem(BaseModel):
    id: int
    type: str
    time: str  # HH:MM:SS
    timestamp_unix: int
    message: Any


class HistoryPage(BaseModel):
    per_page: int
    last_time: Optional[int] = None
    last_id: Optional[int] = None
    data: List[DisplayItem] = []


class HistoryResponse(BaseModel):
    code: int = 1
    data: HistoryPage
    msg: str = "success"


class ErrorResponse(BaseModel):
    code: int
    msg: str


# ---------- Rooms ----------
class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="allow")

    id: int
    name: str
    parent_id: int
    status: int
    ws_url: str = ""


class RoomsResponse(BaseModel):
    data: List[RoomOut]


def envelope(page: HistoryPage) -> Dict[str, Any]:
    return HistoryResponse(data=page).model_dump()
