# chathistory/models/orm.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chathistory.core.db import Base


# ---------- Message index (one row per emitted event) ----------
class ChatIndex(Base):
    __tablename__ = "chat_index"

    # Assigned by the ingestion side; strictly increasing, never reused
    idx_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(16))
    # Primary key in the type-specific content table
    msg_id: Mapped[int] = mapped_column(Integer)
    createtime: Mapped[int] = mapped_column(Integer)  # epoch seconds

    __table_args__ = (
        Index("ix_chat_index_room_time_idx", "room_id", "createtime", "idx_id"),
    )


# ---------- Content tables (one per message type) ----------
class _MessageColumns:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(Integer, default=0)
    message: Mapped[str] = mapped_column(Text, default="")  # JSON text
    createtime: Mapped[int] = mapped_column(Integer, default=0)


class ChatLog(_MessageColumns, Base):
    __tablename__ = "chat_logs"


class DrawsMessage(_MessageColumns, Base):
    __tablename__ = "draws_messages"


class StartBettingMessage(_MessageColumns, Base):
    __tablename__ = "start_betting_messages"


class StopBettingMessage(_MessageColumns, Base):
    __tablename__ = "stop_betting_messages"


class SealRemindMessage(_MessageColumns, Base):
    __tablename__ = "seal_remind_messages"


class AdvertisementMessage1(_MessageColumns, Base):
    __tablename__ = "advertisement_messages_1"


class AdvertisementMessage2(_MessageColumns, Base):
    __tablename__ = "advertisement_messages_2"


class BetVerificationMessage(_MessageColumns, Base):
    __tablename__ = "bet_verification_messages"


class BillMessage(_MessageColumns, Base):
    __tablename__ = "bill_messages"


class OtherMessage(_MessageColumns, Base):
    """User stakes."""
    __tablename__ = "other_messages"

    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class RobotBetLog(_MessageColumns, Base):
    """Agent stakes; robot_id carries the prefixed agent reference."""
    __tablename__ = "robot_bet_logs"

    robot_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)


# ---------- Sender identities ----------
class User(Base):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nickname: Mapped[str] = mapped_column(String(64), default="")
    avatar: Mapped[str] = mapped_column(String(255), default="")


class GameRobot(Base):
    __tablename__ = "game_robot"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nickname: Mapped[str] = mapped_column(String(64), default="")
    avatar: Mapped[str] = mapped_column(String(255), default="")


# ---------- Rooms ----------
class GameRoom(Base):
    __tablename__ = "game_room"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), default="")
    parent_id: Mapped[int] = mapped_column(Integer, default=0, index=True)
    status: Mapped[int] = mapped_column(Integer, default=1)  # 1 = active
