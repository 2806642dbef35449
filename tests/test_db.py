import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chathistory.core.db import make_engine, session_scope
from chathistory.models import orm
from chathistory.services.bootstrap_db import create_all


def test_in_memory_engine_shares_one_connection():
    eng = make_engine("sqlite://")
    assert isinstance(eng.pool, StaticPool)
    create_all(bind=eng)
    tables = set(inspect(eng).get_table_names())
    assert {"chat_index", "other_messages", "robot_bet_logs", "user", "game_robot", "game_room"} <= tables
    eng.dispose()


def test_session_scope_commits_and_rolls_back():
    eng = make_engine("sqlite://")
    create_all(bind=eng)
    factory = sessionmaker(bind=eng, future=True)

    with session_scope(factory) as db:
        db.add(orm.GameRoom(id=1, name="Fast 3", parent_id=16, status=1))

    with pytest.raises(RuntimeError):
        with session_scope(factory) as db:
            db.add(orm.GameRoom(id=2, name="Canada 28", parent_id=16, status=1))
            raise RuntimeError("abort")

    with session_scope(factory) as db:
        assert [r.id for r in db.query(orm.GameRoom).all()] == [1]
    eng.dispose()
