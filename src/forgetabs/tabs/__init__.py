"""Tab and session lifecycle domain package."""

from .allocator import TabAllocator
from .debounce import Debouncer
from .manager import TabManager
from .models import MAX_TABS, CreateTabResult, RegistrySnapshot, ShellConfig, Tab
from .persistence import (
    SAVE_DEBOUNCE_SECONDS,
    SessionPersistenceBridge,
    SessionRecord,
    SessionState,
    parse_session_record,
    to_session_record,
)
from .registry import TabRegistry

__all__ = [
    "CreateTabResult",
    "Debouncer",
    "MAX_TABS",
    "parse_session_record",
    "RegistrySnapshot",
    "SAVE_DEBOUNCE_SECONDS",
    "SessionPersistenceBridge",
    "SessionRecord",
    "SessionState",
    "ShellConfig",
    "Tab",
    "TabAllocator",
    "TabManager",
    "TabRegistry",
    "to_session_record",
]
