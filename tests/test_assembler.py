"""Tests for content joining, identity resolution and per-type formatting."""
from chathistory.models.feed import CONTENT_TABLES, HistoryQuery, MessageType
from chathistory.services.assembler import FORMATTERS, assemble_page
from chathistory.services.formatting import StructuredStakeParser, format_clock, letter_avatar
from chathistory.services.index_fetcher import fetch_index_page
from chathistory.services.stats import RequestStats


def _assemble(db, per_page=50, **kw):
    entries = fetch_index_page(db, HistoryQuery(room_id=7, per_page=per_page))
    return assemble_page(db, entries, **kw)


def test_chat_payload_passes_through(db, feed):
    msg_id = feed.chat(1, 1000, "hi there")
    [item] = _assemble(db)
    assert item == {
        "id": msg_id,
        "type": "chat",
        "time": format_clock(1000),
        "timestamp_unix": 1000,
        "message": {"type": "chat", "data": {"content": "hi there"}},
    }


def test_unparseable_chat_is_dropped(db, feed):
    feed.add(1, 1000, "chat", raw="{not json")
    assert _assemble(db) == []


def test_draws_extracts_fields(db, feed):
    feed.add(1, 1000, "draws", {"number": "3+5+6=14", "issue": "2024001"})
    feed.add(2, 1001, "draws", {"number": "1+1+1=3", "issue": "2024002", "time": "12:00:00"})
    items = _assemble(db)
    assert items[0]["message"] == {"data": {"number": "1+1+1=3", "issue": "2024002", "time": "12:00:00"}}
    assert items[1]["message"] == {"data": {"number": "3+5+6=14", "issue": "2024001", "time": format_clock(1000)}}


def test_notices_normalize_newlines(db, feed):
    feed.add(1, 1000, "start", {"content": "Round open\\r\\nBet now"})
    feed.add(2, 1001, "bill", {"content": "alice +70\r\nbob -20"})
    feed.add(3, 1002, "ads2", {})
    items = _assemble(db)
    by_type = {i["type"]: i["message"]["data"] for i in items}
    assert by_type["start"] == {"content": "Round open\nBet now", "time": format_clock(1000)}
    assert by_type["bill"]["content"] == "alice +70\nbob -20"
    # empty content still renders a notice line
    assert by_type["ads2"]["content"] == ""


def test_empty_notice_payload_is_dropped(db, feed):
    feed.add(1, 1000, "seal", raw="")
    assert _assemble(db) == []


def test_empty_payloads_are_dropped_for_every_non_stake_type(db, feed):
    feed.add(1, 1000, "draws", raw="")
    feed.add(2, 1001, "chat", raw="")
    feed.add(3, 1002, "verify", raw="")
    feed.chat(4, 1003, "still here")
    items = _assemble(db)
    assert [i["type"] for i in items] == ["chat"]
    assert items[0]["message"]["data"]["content"] == "still here"


def test_every_type_has_a_formatter_and_table():
    assert set(FORMATTERS) == set(MessageType)
    assert set(CONTENT_TABLES) == set(MessageType)


def test_stakes_from_one_sender_in_one_second_collapse(db, feed):
    feed.user(1, nickname="alice", avatar="https://cdn.example.com/a.png")
    first = feed.user_bet(1, 1000, 1, "big13")
    second = feed.user_bet(2, 1000, 1, "odd50")
    items = _assemble(db)
    assert len(items) == 1
    [item] = items
    # emitted at the newest row of the group, members in arrival order
    assert item["id"] == second
    assert item["id"] != first
    assert item["type"] == "user_bet"
    assert item["message"]["data"] == {
        "avatar": "https://cdn.example.com/a.png",
        "nickname": "alice",
        "is_robot": False,
        "bet": "Big-13, Odd-50",
        "time": format_clock(1000),
    }


def test_stakes_split_by_second_and_sender(db, feed):
    feed.user(1, nickname="alice")
    feed.user(5, nickname="carol")
    feed.robot(5, nickname="lucky")
    feed.user_bet(1, 1000, 1, "big10")
    feed.user_bet(2, 1001, 1, "small10")
    feed.user_bet(3, 1001, 5, "odd10")
    feed.robot_bet(4, 1001, "robot_5", "even10")
    items = _assemble(db)
    bets = [(i["message"]["data"]["nickname"], i["message"]["data"]["bet"]) for i in items]
    assert bets == [("lucky", "Even-10"), ("carol", "Odd-10"), ("alice", "Small-10"), ("alice", "Big-10")]


def test_group_not_interrupted_by_other_types(db, feed):
    feed.user(1, nickname="alice")
    feed.user_bet(1, 1000, 1, "big1")
    feed.chat(2, 1000)
    feed.user_bet(3, 1000, 1, "small2")
    items = _assemble(db)
    assert [i["type"] for i in items] == ["user_bet", "chat"]
    assert items[0]["message"]["data"]["bet"] == "Big-1, Small-2"


def test_robot_stake_resolves_agent(db, feed):
    feed.robot(12, nickname="lucky", avatar="https://cdn.example.com/l.png")
    feed.robot_bet(1, 1000, "robot_12", "13:20")
    [item] = _assemble(db)
    data = item["message"]["data"]
    assert data["is_robot"] is True
    assert data["nickname"] == "lucky"
    assert data["avatar"] == "https://cdn.example.com/l.png"
    assert data["bet"] == "#13-20"


def test_missing_avatar_gets_letter_avatar(db, feed):
    feed.user(1, nickname="alice", avatar="")
    feed.user_bet(1, 1000, 1, "big5")
    [item] = _assemble(db)
    assert item["message"]["data"]["avatar"] == letter_avatar("alice")


def test_blank_nicknames_default_by_kind(db, feed):
    feed.user(1)
    feed.robot(2)
    feed.user_bet(1, 1000, 1, "big5")
    feed.robot_bet(2, 1001, "robot_2", "big5")
    items = _assemble(db)
    assert [i["message"]["data"]["nickname"] for i in items] == ["Player", "Guest"]


def test_missing_identity_drops_item(db, feed):
    feed.user_bet(1, 1000, 404, "big5")
    feed.chat(2, 1001)
    items = _assemble(db)
    assert [i["type"] for i in items] == ["chat"]


def test_malformed_agent_reference_drops_item(db, feed):
    feed.robot(12, nickname="lucky")
    feed.robot_bet(1, 1000, "bot_12", "big5")
    feed.robot_bet(2, 1001, "robot_x", "big5")
    feed.robot_bet(3, 1002, "12", "big5")
    stats = RequestStats()
    assert _assemble(db, stats=stats) == []
    assert stats.dropped_rows == 3


def test_dangling_and_unknown_rows_are_dropped(db, feed):
    feed.chat(1, 1000)
    feed.index(2, 1001, "chat", msg_id=9999)
    feed.index(3, 1002, "lottery", msg_id=1)
    stats = RequestStats()
    items = _assemble(db, stats=stats)
    assert [i["timestamp_unix"] for i in items] == [1000]
    assert stats.dropped_rows == 2


def test_lookups_are_batched_per_table(db, feed):
    feed.user(1, nickname="alice")
    feed.user(2, nickname="bob")
    for n in range(1, 5):
        feed.chat(n, 1000 + n)
    feed.user_bet(5, 2000, 1, "big1")
    feed.user_bet(6, 2001, 2, "big1")
    stats = RequestStats()
    items = _assemble(db, stats=stats)
    assert len(items) == 6
    # chat_logs + other_messages + user
    assert stats.db_queries == 3


def test_structured_parser_can_replace_text_parsing(db, feed):
    feed.user(1, nickname="alice")
    feed.add(1, 1000, "user_bet", {"bet": "whatever", "choice": "small", "amount": 30}, user_id=1)
    [item] = _assemble(db, parser=StructuredStakeParser())
    assert item["message"]["data"]["bet"] == "Small-30"


def test_empty_entries():
    assert assemble_page(None, []) == []
