"""Persistent storage for finalized sessions."""

from .session_store import AbstractSessionStore, JsonSessionStore

__all__ = [
    "AbstractSessionStore",
    "JsonSessionStore",
]
