# chathistory/services/bootstrap_db.py
import logging
from typing import Optional

from sqlalchemy.engine import Engine

from chathistory.core.db import Base, engine as default_engine
# Importing the models registers every table on Base.metadata
from chathistory import models  # noqa: F401

logger = logging.getLogger("chathistory.bootstrap_db")


def create_all(bind: Optional[Engine] = None) -> None:
    """Create index, content, identity and room tables that don't exist yet."""
    target = bind or default_engine
    Base.metadata.create_all(bind=target)
    logger.info("bootstrap_db: tables=%d url=%s", len(Base.metadata.tables), target.url.render_as_string(hide_password=True))
