"""Session record codec and the debounced persistence bridge."""

from __future__ import annotations

import logging as py_logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from forgetabs.errors import ForgeTabsError, TabErrorKind
from forgetabs.store.base import SessionStore
from forgetabs.tabs.debounce import Debouncer, TimerFactory
from forgetabs.tabs.models import DEFAULT_SHELL_TYPE, RegistrySnapshot, ShellConfig, Tab
from forgetabs.tabs.registry import TabRegistry
from forgetabs.themes import theme_for_index

logger = py_logging.getLogger(__name__)

SAVE_DEBOUNCE_SECONDS = 0.5


class SessionState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"


@dataclass(frozen=True)
class SessionRecordTab:
    id: str = ""
    title: str = ""
    shell_type: str = ""
    wsl_distro: str = ""
    wsl_home_path: str = ""
    color_theme: str = ""


@dataclass(frozen=True)
class SessionRecord:
    tabs: tuple[SessionRecordTab, ...] = field(default_factory=tuple)
    active_tab_id: str = ""


def to_session_record(snapshot: RegistrySnapshot) -> dict[str, object]:
    return {
        "tabs": [
            {
                "id": tab.id,
                "title": tab.title,
                "shellConfig": tab.shell_config.to_dict(),
                "colorTheme": tab.color_theme,
            }
            for tab in snapshot.tabs
        ],
        "activeTabId": snapshot.active_tab_id or "",
    }


class _MalformedRecord(ValueError):
    pass


def _optional_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _MalformedRecord(f"{key} must be a string")
    return value


def _parse_tab(item: object) -> SessionRecordTab:
    if not isinstance(item, dict):
        raise _MalformedRecord("tab entry must be an object")
    shell_raw = item.get("shellConfig")
    if shell_raw is None:
        shell_raw = {}
    if not isinstance(shell_raw, dict):
        raise _MalformedRecord("shellConfig must be an object")
    return SessionRecordTab(
        id=_optional_str(item, "id"),
        title=_optional_str(item, "title"),
        shell_type=_optional_str(shell_raw, "shellType"),
        wsl_distro=_optional_str(shell_raw, "wslDistro"),
        wsl_home_path=_optional_str(shell_raw, "wslHomePath"),
        color_theme=_optional_str(item, "colorTheme"),
    )


def parse_session_record(raw: Any) -> SessionRecord | None:
    """Validate a stored payload; ``None`` means it was malformed."""
    if not isinstance(raw, dict):
        return None
    tabs_raw = raw.get("tabs")
    if tabs_raw is None:
        tabs_raw = []
    if not isinstance(tabs_raw, list):
        return None
    try:
        tabs = tuple(_parse_tab(item) for item in tabs_raw)
        active_tab_id = _optional_str(raw, "activeTabId")
    except _MalformedRecord as exc:
        logger.debug("Session record rejected: %s", exc)
        return None
    return SessionRecord(tabs=tabs, active_tab_id=active_tab_id)


class SessionPersistenceBridge:
    """Restores the registry once, then mirrors its changes into a store.

    Nothing is written before the restore attempt has finished, so a
    transient default tab can never overwrite a persisted session.
    """

    def __init__(
        self,
        registry: TabRegistry,
        store: SessionStore,
        *,
        save_delay_seconds: float = SAVE_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.store = store
        self._clock = clock
        self._lock = threading.Lock()
        self._state = SessionState.NOT_LOADED
        self._restore_started = False
        self._debouncer: Debouncer[RegistrySnapshot] = Debouncer(
            save_delay_seconds,
            self._save,
            timer_factory=timer_factory,
        )
        self._unsubscribe = registry.subscribe(self._on_change)

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def loaded(self) -> bool:
        return self.state == SessionState.LOADED

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    def restore(self) -> bool:
        """Run the one-shot restore. Returns False if it already ran or is running."""
        if not self._claim_restore():
            return False
        try:
            record = self._fetch()
            if record is not None and record.tabs:
                self._apply(record)
        finally:
            self._mark_loaded()
        return True

    def skip_restore(self) -> bool:
        """Mark the session loaded without reading the store.

        Nothing is saved until the registry actually changes, so a disabled
        restore never replaces the stored session with the default tab.
        """
        if not self._claim_restore():
            return False
        logger.info("Session restore disabled; keeping default tab")
        self._mark_loaded(publish=False)
        return True

    def flush(self) -> bool:
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel()
        self._unsubscribe()

    def _claim_restore(self) -> bool:
        with self._lock:
            if self._restore_started:
                logger.debug("Session restore already attempted; ignoring trigger")
                return False
            self._restore_started = True
            return True

    def _fetch(self) -> SessionRecord | None:
        logger.info("Loading session from store")
        try:
            raw = self.store.load()
        except ForgeTabsError as exc:
            logger.warning(
                "Failed to load session kind=%s error=%s",
                TabErrorKind.PERSISTENCE_UNAVAILABLE.value,
                exc,
            )
            return None
        except Exception:
            logger.exception("Unexpected failure while loading session")
            return None

        if raw is None or raw == {}:
            logger.info("No persisted session found")
            return None
        record = parse_session_record(raw)
        if record is None:
            logger.warning(
                "Failed to load session kind=%s error=Malformed session payload",
                TabErrorKind.PERSISTENCE_UNAVAILABLE.value,
            )
            return None
        logger.info(
            "Session loaded tab_count=%s active_tab_id=%s",
            len(record.tabs),
            record.active_tab_id,
        )
        return record

    def _apply(self, record: SessionRecord) -> None:
        registry = self.registry
        allocator = registry.allocator
        entries = record.tabs
        if len(entries) > registry.max_tabs:
            logger.warning(
                "Session holds %s tabs; keeping the first %s",
                len(entries),
                registry.max_tabs,
            )
            entries = entries[: registry.max_tabs]

        allocator.reserve(entry.id for entry in entries if entry.id)
        default_shell = registry.default_shell
        created_at = self._clock()
        restored: list[Tab] = []
        seen: set[str] = set()
        for index, entry in enumerate(entries):
            tab_id = entry.id
            if not tab_id or tab_id in seen:
                if tab_id:
                    logger.warning("Duplicate tab id in session record: %s", tab_id)
                tab_id = allocator.next_id()
            seen.add(tab_id)
            restored.append(
                Tab(
                    id=tab_id,
                    title=entry.title or f"Terminal {index + 1}",
                    shell_config=ShellConfig(
                        shell_type=entry.shell_type or default_shell.shell_type or DEFAULT_SHELL_TYPE,
                        wsl_distro=entry.wsl_distro or default_shell.wsl_distro,
                        wsl_home_path=entry.wsl_home_path or default_shell.wsl_home_path,
                    ),
                    color_theme=entry.color_theme or theme_for_index(index, allocator.palette),
                    created_at=created_at,
                )
            )

        allocator.fast_forward(len(restored))
        active_tab_id = record.active_tab_id if record.active_tab_id in seen else restored[0].id
        registry.replace_all(restored, active_tab_id)
        logger.info("Session restored tab_count=%s active_tab_id=%s", len(restored), active_tab_id)

    def _mark_loaded(self, *, publish: bool = True) -> None:
        with self._lock:
            self._state = SessionState.LOADED
        if not publish:
            return
        # Published under the registry lock so saves stay ordered with concurrent changes.
        self.registry.publish()

    def _on_change(self, snapshot: RegistrySnapshot) -> None:
        if self.state != SessionState.LOADED:
            return
        self._debouncer.schedule(snapshot)

    def _save(self, snapshot: RegistrySnapshot) -> None:
        record = to_session_record(snapshot)
        logger.info(
            "Saving session tab_count=%s active_tab_id=%s",
            len(snapshot.tabs),
            snapshot.active_tab_id,
        )
        try:
            self.store.save(record)
        except ForgeTabsError as exc:
            logger.warning(
                "Failed to save session kind=%s error=%s",
                TabErrorKind.PERSISTENCE_UNAVAILABLE.value,
                exc,
            )
            return
        except Exception:
            logger.exception("Unexpected failure while saving session")
            return
        logger.debug("Session saved")
