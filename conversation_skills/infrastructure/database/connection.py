"""
Database Connection Manager.

This module handles the low-level details of connecting to the session
database. It exposes the SQLModel engine used by the SQL Session Store.
The engine is created on first use so the in-memory backend never needs a
DATABASE_URL.
"""

from functools import lru_cache
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import create_engine, SQLModel

from ...config import settings


@lru_cache()
def get_engine(url: Optional[str] = None) -> Engine:
    url = url or settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL must be set to use the SQL session backend.")
    # echo=False in production to avoid leaking sensitive data in logs
    return create_engine(url, echo=False)


def init_db(engine: Optional[Engine] = None):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    """
    # Registers the table metadata before create_all
    from . import tables  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())
