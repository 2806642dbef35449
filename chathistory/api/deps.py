# chathistory/api/deps.py
from fastapi import Depends
from sqlalchemy.orm import Session

from chathistory.core.db import get_db
from chathistory.services.cache import TTLCache, get_cache


def db_session(db: Session = Depends(get_db)) -> Session:
    return db


def history_cache(cache: TTLCache = Depends(get_cache)) -> TTLCache:
    return cache
