"""List/entry persistence backends and the persisted login session."""

from .base import InMemoryListStore, ListStore
from .rest import RestListStore
from .session import SessionStore, authenticate

__all__ = [
    "InMemoryListStore",
    "ListStore",
    "RestListStore",
    "SessionStore",
    "authenticate",
]
