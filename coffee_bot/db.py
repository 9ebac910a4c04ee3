"""
Database connection management.

Menu rows and the order ledger live in one SQLAlchemy database. Conversation
sessions are not stored here; they are in-memory only.

Environment variables:
    - DATABASE_URL: SQLAlchemy connection URL (defaults to a local SQLite file)
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_URL
from .models import Base

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the menu and ledger tables if they do not exist."""
    Base.metadata.create_all(bind=bind or engine)
