"""
Relational persistence: declarative base, engine and session factory.

Exports: Base, get_async_engine, get_async_session_factory
"""

from knowbase.boundary.db.base import Base
from knowbase.boundary.db.connection import get_async_engine, get_async_session_factory

__all__ = ["Base", "get_async_engine", "get_async_session_factory"]
