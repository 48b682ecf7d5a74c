"""Database layer for PostgreSQL operations."""

from benefitcheck.db.config import DatabaseSettings, get_db_settings
from benefitcheck.db.database import Base, get_db

__all__ = [
    "Base",
    "DatabaseSettings",
    "get_db",
    "get_db_settings",
]
