# chathistory/services/formatting.py
from __future__ import annotations

import base64
import json
import re
import zlib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Protocol, Tuple

from chathistory.core import config

_DISPLAY_TZ = timezone(timedelta(hours=config.UTC_OFFSET_HOURS))


def format_clock(ts: int) -> str:
    """Epoch seconds -> HH:MM:SS at the configured display offset."""
    return datetime.fromtimestamp(int(ts), tz=_DISPLAY_TZ).strftime("%H:%M:%S")


def load_json(raw: Any) -> Dict[str, Any]:
    """Parse a JSON object payload; anything else becomes {}."""
    if not raw or not isinstance(raw, str):
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def payload_data(raw: Any) -> Dict[str, Any]:
    data = load_json(raw).get("data")
    return data if isinstance(data, dict) else {}


def normalize_newlines(text: str) -> str:
    # Payloads carry both escaped ("\\r\\n" as text) and real CRLF
    return text.replace("\\r\\n", "\n").replace("\r\n", "\n")


# ---------- Letter avatars ----------
def letter_avatar(name: str) -> str:
    """Deterministic SVG placeholder: first character on a crc32-derived colour."""
    name = name or "?"
    first = name[0]
    color = "#%06X" % (zlib.crc32(name.encode("utf-8")) & 0xFFFFFF)
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">'
        f'<rect width="100" height="100" fill="{color}"/>'
        '<text x="50" y="50" font-size="50" text-anchor="middle" dy=".35em" fill="white">'
        f"{first}</text>"
        "</svg>"
    )
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


# ---------- Stakes ----------
class StakeParser(Protocol):
    def parse(self, data: Dict[str, Any]) -> Tuple[str, str, int]:
        """Return (raw text, choice, amount) for a stake payload's data object."""
        ...


_TRAILING_AMOUNT = re.compile(r"^(.*?)[\s:：\-×@]*(\d+)$")


class TextStakeParser:
    """
    Reads the amount off the end of the free-text stake ("big50" -> big, 50).
    Stake rows have no numeric amount column, so this is the only source today.
    """

    def parse(self, data: Dict[str, Any]) -> Tuple[str, str, int]:
        text = str(data.get("bet") or "").strip()
        m = _TRAILING_AMOUNT.match(text)
        if not m:
            return text, text, 0
        return text, m.group(1).strip(), int(m.group(2))


class StructuredStakeParser:
    """For payloads that carry data.choice and data.amount explicitly."""

    def parse(self, data: Dict[str, Any]) -> Tuple[str, str, int]:
        choice = str(data.get("choice") or "").strip()
        try:
            amount = int(data.get("amount") or 0)
        except (TypeError, ValueError):
            amount = 0
        text = str(data.get("bet") or f"{choice}{amount}")
        return text, choice, amount


DEFAULT_STAKE_PARSER: StakeParser = TextStakeParser()

STAKE_LABELS = {
    "big": "Big", "small": "Small", "odd": "Odd", "even": "Even",
    "big_odd": "Big Odd", "big_even": "Big Even",
    "small_odd": "Small Odd", "small_even": "Small Even",
    "max": "Max", "min": "Min",
    "leopard": "Leopard", "straight": "Straight", "pair": "Pair",
}
MAX_SUM_CHOICE = 27


def format_stake(choice: str, amount: int) -> str:
    key = (choice or "").strip().lower()
    if key.isdigit() and int(key) <= MAX_SUM_CHOICE:
        return f"#{int(key)}-{amount}"
    return f"{STAKE_LABELS.get(key, 'N/A')}-{amount}"
