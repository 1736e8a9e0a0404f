"""Database engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from docgov.core.config import get_settings
from docgov.db.base import Base


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections may be shared across threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def init_db(bind: Engine) -> None:
    """Create all tables that do not exist yet."""
    import docgov.db.models  # noqa: F401  (register models on Base.metadata)
    Base.metadata.create_all(bind=bind)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
