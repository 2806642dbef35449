# chathistory/models/feed.py
"""
Domain types shared by the resolver, fetcher and assembler.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type, Union

from chathistory.models import orm


class MessageType(str, Enum):
    CHAT = "chat"
    DRAWS = "draws"
    START = "start"
    STOP = "stop"
    SEAL = "seal"
    ADS1 = "ads1"
    ADS2 = "ads2"
    VERIFY = "verify"
    BILL = "bill"
    USER_BET = "user_bet"
    ROBOT_BET = "robot_bet"

    @classmethod
    def parse(cls, tag: str) -> Optional["MessageType"]:
        try:
            return cls(tag)
        except ValueError:
            return None

    @property
    def is_stake(self) -> bool:
        return self in (MessageType.USER_BET, MessageType.ROBOT_BET)


CONTENT_TABLES: Dict[MessageType, Type] = {
    MessageType.CHAT: orm.ChatLog,
    MessageType.DRAWS: orm.DrawsMessage,
    MessageType.START: orm.StartBettingMessage,
    MessageType.STOP: orm.StopBettingMessage,
    MessageType.SEAL: orm.SealRemindMessage,
    MessageType.ADS1: orm.AdvertisementMessage1,
    MessageType.ADS2: orm.AdvertisementMessage2,
    MessageType.VERIFY: orm.BetVerificationMessage,
    MessageType.BILL: orm.BillMessage,
    MessageType.USER_BET: orm.OtherMessage,
    MessageType.ROBOT_BET: orm.RobotBetLog,
}
if set(CONTENT_TABLES) != set(MessageType):
    raise RuntimeError(f"no content table for {sorted(t.value for t in set(MessageType) - set(CONTENT_TABLES))}")


@dataclass(frozen=True)
class PageCursor:
    """Position strictly after which the next page starts. (0, 0) = newest."""
    last_time: int = 0
    last_id: int = 0

    @property
    def is_start(self) -> bool:
        return self.last_time <= 0


START_CURSOR = PageCursor()


@dataclass(frozen=True)
class HistoryQuery:
    room_id: int
    per_page: int
    cursor: PageCursor = START_CURSOR


@dataclass(frozen=True)
class IndexEntry:
    idx_id: int
    room_id: int
    type_tag: str
    msg_id: int
    createtime: int

    @classmethod
    def from_row(cls, row: orm.ChatIndex) -> "IndexEntry":
        return cls(
            idx_id=row.idx_id,
            room_id=row.room_id,
            type_tag=row.type,
            msg_id=row.msg_id,
            createtime=row.createtime,
        )


# ---------- Sender references ----------
@dataclass(frozen=True)
class UserRef:
    id: int


@dataclass(frozen=True)
class AgentRef:
    id: int


SenderRef = Union[UserRef, AgentRef]


@dataclass(frozen=True)
class SenderIdentity:
    nickname: str
    avatar: str


@dataclass
class JoinedRow:
    """An index entry with its content loaded and sender decoded."""
    entry: IndexEntry
    type: MessageType
    content: str
    stake_text: str = ""
    stake_amount: int = 0
    stake_choice: str = ""
    sender: Optional[SenderRef] = None
