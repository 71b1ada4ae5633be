"""
Database module for Claims Submission.

Exports database connection utilities.
"""

from src.db.connection import (
    check_db_connection,
    close_db_connection,
    create_engine_from_url,
    create_schema,
    create_session_maker,
    get_engine,
    get_session,
    get_session_maker,
)

__all__ = [
    "create_engine_from_url",
    "create_session_maker",
    "get_engine",
    "get_session_maker",
    "get_session",
    "create_schema",
    "close_db_connection",
    "check_db_connection",
]
