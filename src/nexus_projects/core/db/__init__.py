"""Database utilities - engine and session."""

from src.nexus_projects.core.db.engine import dispose_engine, get_engine
from src.nexus_projects.core.db.session import get_session, session_factory

__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
    "session_factory",
]
