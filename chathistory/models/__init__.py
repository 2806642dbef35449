# Importing the ORM module registers every table on Base.metadata
from . import orm  # noqa: F401
from .feed import (  # re-export
    MessageType,
    PageCursor,
    HistoryQuery,
    IndexEntry,
    UserRef,
    AgentRef,
    START_CURSOR,
)
