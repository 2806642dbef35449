"""Shared fixtures: in-memory SQLite built from the ORM metadata, a fresh cache,
and a TestClient with both wired in through dependency overrides."""
import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from chathistory.core.db import get_db, make_engine
from chathistory.main import app
from chathistory.models import orm
from chathistory.models.feed import CONTENT_TABLES, MessageType
from chathistory.services.bootstrap_db import create_all
from chathistory.services.cache import TTLCache, get_cache


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache():
    return TTLCache(default_ttl=300)


@pytest.fixture
def client(db, cache):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Feed:
    """Writes index + content rows the way the ingestion side does."""

    def __init__(self, db, room_id: int = 7):
        self.db = db
        self.room_id = room_id

    def add(self, idx_id, createtime, mtype, data=None, *, raw=None, room_id=None, **extra):
        """Add one message. Non-chat payloads are wrapped as {"data": data}."""
        room_id = room_id or self.room_id
        if raw is None:
            raw = json.dumps(data if mtype == "chat" else {"data": data or {}}, ensure_ascii=False)
        table = CONTENT_TABLES[MessageType(mtype)]
        content = table(room_id=room_id, message=raw, createtime=createtime, **extra)
        self.db.add(content)
        self.db.flush()
        self.index(idx_id, createtime, mtype, content.id, room_id=room_id)
        return content.id

    def index(self, idx_id, createtime, mtype, msg_id, *, room_id=None):
        """Index row only; with no content row behind it the reference dangles."""
        self.db.add(orm.ChatIndex(
            idx_id=idx_id,
            room_id=room_id or self.room_id,
            type=mtype,
            msg_id=msg_id,
            createtime=createtime,
        ))
        self.db.commit()

    def chat(self, idx_id, createtime, text="hello"):
        return self.add(idx_id, createtime, "chat", {"type": "chat", "data": {"content": text}})

    def user_bet(self, idx_id, createtime, user_id, bet):
        return self.add(idx_id, createtime, "user_bet", {"bet": bet}, user_id=user_id)

    def robot_bet(self, idx_id, createtime, robot_id, bet):
        return self.add(idx_id, createtime, "robot_bet", {"bet": bet}, robot_id=robot_id)

    def user(self, id, nickname="", avatar=""):
        self.db.add(orm.User(id=id, nickname=nickname, avatar=avatar))
        self.db.commit()

    def robot(self, id, nickname="", avatar=""):
        self.db.add(orm.GameRobot(id=id, nickname=nickname, avatar=avatar))
        self.db.commit()


@pytest.fixture
def feed(db):
    return Feed(db)
