"""Session store implementations."""

from .base import SessionStore
from .file_store import DEFAULT_SESSION_PATH, FileSessionStore
from .http_store import DEFAULT_SESSION_URL, HttpSessionStore

__all__ = [
    "DEFAULT_SESSION_PATH",
    "DEFAULT_SESSION_URL",
    "FileSessionStore",
    "HttpSessionStore",
    "SessionStore",
]
