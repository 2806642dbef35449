"""
Seed a demo room (id 7) with one message of every type, a few grouped stakes,
and the rooms list.

Usage: DATABASE_URL=sqlite:///./chat_history_dev.db python scripts/seed_db.py
"""
import json
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chathistory.core.db import session_scope
from chathistory.models import orm
from chathistory.models.feed import CONTENT_TABLES, MessageType
from chathistory.services.bootstrap_db import create_all

ROOM_ID = 7


def _msg(data: dict) -> str:
    return json.dumps({"data": data}, ensure_ascii=False)


def run():
    create_all()

    with session_scope() as db:
        if db.query(orm.ChatIndex).filter(orm.ChatIndex.room_id == ROOM_ID).first():
            print("Room already seeded; skipping.")
            return

        db.add_all([
            orm.GameRoom(id=ROOM_ID, name="Demo Room", parent_id=16, status=1),
            orm.GameRoom(id=8, name="Closed Room", parent_id=16, status=0),
            orm.User(id=1, nickname="alice", avatar=""),
            orm.GameRobot(id=12, nickname="lucky", avatar="https://cdn.example.com/lucky.png"),
        ])

        now = int(time.time()) - 600
        rows = [
            (MessageType.START, {"content": "Round 2024001 open\\r\\nPlace your bets"}, {}),
            (MessageType.CHAT, {"type": "chat", "data": {"nickname": "alice", "content": "hi all"}}, {}),
            (MessageType.USER_BET, {"bet": "big50"}, {"user_id": 1}),
            (MessageType.USER_BET, {"bet": "odd20"}, {"user_id": 1}),
            (MessageType.ROBOT_BET, {"bet": "13:10"}, {"robot_id": "robot_12"}),
            (MessageType.SEAL, {"content": "Betting closes in 10s"}, {}),
            (MessageType.STOP, {"content": "Betting closed"}, {}),
            (MessageType.VERIFY, {"content": "alice: Big-50, Odd-20"}, {}),
            (MessageType.DRAWS, {"number": "3+5+6=14", "issue": "2024001"}, {}),
            (MessageType.BILL, {"content": "alice +70"}, {}),
            (MessageType.ADS1, {"content": "Welcome bonus today"}, {}),
            (MessageType.ADS2, {"content": "Invite friends"}, {}),
        ]

        idx_id = 1
        for n, (mtype, data, extra) in enumerate(rows):
            # the three stakes share one second so they exercise grouping
            ts = now + (2 if mtype.is_stake else n)
            table = CONTENT_TABLES[mtype]
            payload = json.dumps(data, ensure_ascii=False) if mtype is MessageType.CHAT else _msg(data)
            content = table(room_id=ROOM_ID, message=payload, createtime=ts, **extra)
            db.add(content)
            db.flush()  # get content.id
            db.add(orm.ChatIndex(
                idx_id=idx_id, room_id=ROOM_ID, type=mtype.value, msg_id=content.id, createtime=ts,
            ))
            idx_id += 1

    print(f"Seeded room {ROOM_ID} with {len(rows)} messages")


if __name__ == "__main__":
    run()
