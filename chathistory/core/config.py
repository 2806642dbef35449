# chathistory/core/config.py
import json
import os

# ---- Logging ----------------------------------------------------------------
LOG_LEVEL = os.getenv("CHAT_HISTORY_LOG_LEVEL", "INFO").upper()

# Requests slower than this get a SLOW_QUERY warning in the log
SLOW_REQUEST_SECS = float(os.getenv("CHAT_HISTORY_SLOW_REQUEST_SECS", "1.0"))

# ---- Pagination -------------------------------------------------------------
DEFAULT_PER_PAGE = int(os.getenv("CHAT_HISTORY_DEFAULT_PER_PAGE", "20"))
MAX_PER_PAGE = int(os.getenv("CHAT_HISTORY_MAX_PER_PAGE", "50"))

# ---- Cache ------------------------------------------------------------------
CACHE_PREFIX = os.getenv("CHAT_HISTORY_CACHE_PREFIX", "chat_history:")
CACHE_TTL_SECS = int(os.getenv("CHAT_HISTORY_CACHE_TTL", "300"))  # 5 minutes
CACHE_MAX_ENTRIES = int(os.getenv("CHAT_HISTORY_CACHE_MAX_ENTRIES", "10000"))

# ---- Message formatting -----------------------------------------------------
# robot_bet_logs.robot_id values look like "robot_12"
AGENT_ID_PREFIX = os.getenv("CHAT_HISTORY_AGENT_PREFIX", "robot_")

# HH:MM:SS display times are rendered at this fixed UTC offset
UTC_OFFSET_HOURS = float(os.getenv("CHAT_HISTORY_UTC_OFFSET_HOURS", "8"))

# ---- Rooms ------------------------------------------------------------------
ROOM_PARENT_IDS = tuple(
    int(p) for p in os.getenv("CHAT_HISTORY_ROOM_PARENT_IDS", "16,17,19").split(",") if p.strip()
)
WS_DEFAULT_URL = os.getenv("CHAT_HISTORY_WS_DEFAULT_URL", "wss://localhost:2999")


def _load_ws_urls(raw: str) -> dict:
    try:
        data = json.loads(raw or "{}")
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    return {int(k): str(v) for k, v in data.items() if str(k).isdigit()}


# e.g. CHAT_HISTORY_WS_URLS='{"1": "wss://ws1.example.com:2999"}'
WS_URLS = _load_ws_urls(os.getenv("CHAT_HISTORY_WS_URLS", "{}"))

# ---- HTTP -------------------------------------------------------------------
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CHAT_HISTORY_CORS_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200").split(",")
    if o.strip()
]
