from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sitemonitor import config

# Simple cache to avoid creating multiple Engine objects in the same process.
_ENGINE: Optional[Engine] = None


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Create or return a cached SQLAlchemy Engine for `database_url`."""
    global _ENGINE
    database_url = database_url or config.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    if _ENGINE is None:
        _ENGINE = create_engine(database_url, future=True)
    return _ENGINE


def init_schema(engine: Engine) -> None:
    from sitemonitor.db.models import Base

    Base.metadata.create_all(engine)
