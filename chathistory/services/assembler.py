# chathistory/services/assembler.py
"""
Turns a page of index entries into display items.

1. one IN query per content table present on the page
2. join content back onto the entries (dangling refs are dropped)
3. one IN query per identity class (users / robots) for stake senders
4. per-type formatting; stakes from one sender in the same second collapse
   into a single item emitted at the group's first row
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from chathistory.core import config
from chathistory.core.errors import DataIntegrityGap
from chathistory.models.feed import (
    CONTENT_TABLES,
    AgentRef,
    IndexEntry,
    JoinedRow,
    MessageType,
    SenderIdentity,
    SenderRef,
    UserRef,
)
from chathistory.models.orm import GameRobot, User
from chathistory.services.formatting import (
    DEFAULT_STAKE_PARSER,
    StakeParser,
    format_clock,
    format_stake,
    letter_avatar,
    load_json,
    normalize_newlines,
    payload_data,
)
from chathistory.services.stats import RequestStats

logger = logging.getLogger("chathistory.assembler")

StakeKey = Tuple[SenderRef, int]


# ---------------- Loading ----------------
def load_contents(
    db: Session, entries: List[IndexEntry], stats: RequestStats
) -> Dict[MessageType, Dict[int, Any]]:
    wanted: Dict[MessageType, Set[int]] = defaultdict(set)
    for e in entries:
        mtype = MessageType.parse(e.type_tag)
        if mtype is not None:
            wanted[mtype].add(e.msg_id)

    out: Dict[MessageType, Dict[int, Any]] = {}
    for mtype, ids in wanted.items():
        table = CONTENT_TABLES[mtype]
        stats.query()
        rows = db.scalars(select(table).where(table.id.in_(sorted(ids)))).all()
        out[mtype] = {r.id: r for r in rows}
    return out


def decode_sender(mtype: MessageType, content_row: Any) -> Optional[SenderRef]:
    """Stake rows only. Robot ids are AGENT_ID_PREFIX + digits."""
    if mtype is MessageType.USER_BET:
        uid = getattr(content_row, "user_id", None)
        return UserRef(int(uid)) if uid and int(uid) > 0 else None

    raw = str(getattr(content_row, "robot_id", "") or "")
    prefix = config.AGENT_ID_PREFIX
    if not raw.startswith(prefix):
        return None
    suffix = raw[len(prefix):]
    return AgentRef(int(suffix)) if suffix.isdigit() else None


def _join_one(
    entry: IndexEntry,
    contents: Dict[MessageType, Dict[int, Any]],
    parser: StakeParser,
) -> JoinedRow:
    mtype = MessageType.parse(entry.type_tag)
    if mtype is None:
        raise DataIntegrityGap(f"unknown type {entry.type_tag!r}", entry_id=entry.idx_id)

    content_row = contents.get(mtype, {}).get(entry.msg_id)
    if content_row is None:
        raise DataIntegrityGap(f"missing {mtype.value} content msg_id={entry.msg_id}", entry_id=entry.idx_id)

    row = JoinedRow(entry=entry, type=mtype, content=content_row.message or "")
    if mtype.is_stake:
        row.sender = decode_sender(mtype, content_row)
        if row.sender is None:
            raise DataIntegrityGap(f"undecodable {mtype.value} sender", entry_id=entry.idx_id)
        row.stake_text, row.stake_choice, row.stake_amount = parser.parse(payload_data(row.content))
    return row


def join_rows(
    entries: List[IndexEntry],
    contents: Dict[MessageType, Dict[int, Any]],
    parser: StakeParser,
    stats: RequestStats,
) -> List[JoinedRow]:
    rows: List[JoinedRow] = []
    for entry in entries:
        try:
            rows.append(_join_one(entry, contents, parser))
        except DataIntegrityGap as gap:
            stats.dropped_rows += 1
            logger.warning("DataIntegrityGap room=%d idx_id=%d: %s", entry.room_id, entry.idx_id, gap.reason)
    return rows


def load_identities(
    db: Session, rows: List[JoinedRow], stats: RequestStats
) -> Dict[SenderRef, SenderIdentity]:
    user_ids = sorted({r.sender.id for r in rows if isinstance(r.sender, UserRef)})
    robot_ids = sorted({r.sender.id for r in rows if isinstance(r.sender, AgentRef)})

    out: Dict[SenderRef, SenderIdentity] = {}
    if user_ids:
        stats.query()
        for u in db.scalars(select(User).where(User.id.in_(user_ids))).all():
            out[UserRef(u.id)] = SenderIdentity(nickname=u.nickname or "", avatar=u.avatar or "")
    if robot_ids:
        stats.query()
        for g in db.scalars(select(GameRobot).where(GameRobot.id.in_(robot_ids))).all():
            out[AgentRef(g.id)] = SenderIdentity(nickname=g.nickname or "", avatar=g.avatar or "")
    return out


def group_stakes(rows: List[JoinedRow]) -> Dict[StakeKey, List[JoinedRow]]:
    grouped: Dict[StakeKey, List[JoinedRow]] = defaultdict(list)
    for r in rows:
        if r.type.is_stake:
            grouped[(r.sender, r.entry.createtime)].append(r)
    # arrival order inside a group
    for members in grouped.values():
        members.sort(key=lambda r: r.entry.idx_id)
    return grouped


# ---------------- Formatting ----------------
@dataclass
class _PageState:
    groups: Dict[StakeKey, List[JoinedRow]]
    identities: Dict[SenderRef, SenderIdentity]
    processed: Set[StakeKey] = field(default_factory=set)


def _format_chat(row: JoinedRow, state: _PageState) -> Any:
    return load_json(row.content)


def _format_draws(row: JoinedRow, state: _PageState) -> Any:
    data = payload_data(row.content)
    return {
        "data": {
            "number": data.get("number", ""),
            "issue": data.get("issue", ""),
            "time": data.get("time") or format_clock(row.entry.createtime),
        }
    }


def _format_stake(row: JoinedRow, state: _PageState) -> Any:
    key = (row.sender, row.entry.createtime)
    if key in state.processed:
        return None
    state.processed.add(key)

    identity = state.identities.get(row.sender)
    if identity is None:
        raise DataIntegrityGap(f"missing identity for {row.sender!r}", entry_id=row.entry.idx_id)

    is_robot = isinstance(row.sender, AgentRef)
    nickname = identity.nickname or ("Player" if is_robot else "Guest")
    members = state.groups.get(key) or [row]
    return {
        "data": {
            "avatar": identity.avatar or letter_avatar(nickname),
            "nickname": nickname,
            "is_robot": is_robot,
            "bet": ", ".join(format_stake(m.stake_choice, m.stake_amount) for m in members),
            "time": format_clock(row.entry.createtime),
        }
    }


def _format_notice(row: JoinedRow, state: _PageState) -> Any:
    content = payload_data(row.content).get("content") or ""
    return {
        "data": {
            "content": normalize_newlines(str(content)),
            "time": format_clock(row.entry.createtime),
        }
    }


Formatter = Callable[[JoinedRow, _PageState], Any]

FORMATTERS: Dict[MessageType, Formatter] = {
    MessageType.CHAT: _format_chat,
    MessageType.DRAWS: _format_draws,
    MessageType.USER_BET: _format_stake,
    MessageType.ROBOT_BET: _format_stake,
    MessageType.START: _format_notice,
    MessageType.STOP: _format_notice,
    MessageType.SEAL: _format_notice,
    MessageType.ADS1: _format_notice,
    MessageType.ADS2: _format_notice,
    MessageType.VERIFY: _format_notice,
    MessageType.BILL: _format_notice,
}
if set(FORMATTERS) != set(MessageType):
    raise RuntimeError(f"no formatter for {sorted(t.value for t in set(MessageType) - set(FORMATTERS))}")


def format_rows(rows: List[JoinedRow], state: _PageState, stats: RequestStats) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    for row in rows:
        # stakes render from the group, every other type needs its own payload
        if not row.content and not row.type.is_stake:
            continue
        try:
            message = FORMATTERS[row.type](row, state)
        except DataIntegrityGap as gap:
            stats.dropped_rows += 1
            logger.warning("DataIntegrityGap room=%d idx_id=%d: %s", row.entry.room_id, row.entry.idx_id, gap.reason)
            continue
        if not message:
            continue
        items.append({
            "id": row.entry.msg_id,
            "type": row.type.value,
            "time": format_clock(row.entry.createtime),
            "timestamp_unix": row.entry.createtime,
            "message": message,
        })
    return items


def assemble_page(
    db: Session,
    entries: List[IndexEntry],
    *,
    parser: StakeParser = DEFAULT_STAKE_PARSER,
    stats: Optional[RequestStats] = None,
) -> List[Dict[str, Any]]:
    stats = stats or RequestStats()
    if not entries:
        return []

    contents = load_contents(db, entries, stats)
    rows = join_rows(entries, contents, parser, stats)
    state = _PageState(groups=group_stakes(rows), identities=load_identities(db, rows, stats))
    return format_rows(rows, state, stats)
