"""Public tab manager surface consumed by terminal panes and overlays."""

from __future__ import annotations

import logging as py_logging
import threading
import time
from collections.abc import Callable
from types import TracebackType

from forgetabs.store.base import SessionStore
from forgetabs.tabs.allocator import TabAllocator
from forgetabs.tabs.debounce import TimerFactory
from forgetabs.tabs.models import MAX_TABS, CreateTabResult, RegistrySnapshot, ShellConfig, Tab
from forgetabs.tabs.persistence import SAVE_DEBOUNCE_SECONDS, SessionPersistenceBridge, SessionState
from forgetabs.tabs.registry import RegistryListener, TabRegistry
from forgetabs.themes import THEME_ORDER

logger = py_logging.getLogger(__name__)


class TabManager:
    def __init__(
        self,
        default_shell: ShellConfig | None,
        store: SessionStore,
        *,
        max_tabs: int = MAX_TABS,
        palette: tuple[str, ...] = THEME_ORDER,
        save_delay_seconds: float = SAVE_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory | None = None,
        restore_enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = TabRegistry(
            default_shell,
            allocator=TabAllocator(palette),
            max_tabs=max_tabs,
            clock=clock,
        )
        self.bridge = SessionPersistenceBridge(
            self.registry,
            store,
            save_delay_seconds=save_delay_seconds,
            timer_factory=timer_factory,
            clock=clock,
        )
        self.restore_enabled = restore_enabled

    @property
    def tabs(self) -> tuple[Tab, ...]:
        return self.registry.tabs

    @property
    def active_tab_id(self) -> str | None:
        return self.registry.active_tab_id

    @property
    def active_tab(self) -> Tab | None:
        return self.registry.active_tab

    @property
    def session_state(self) -> SessionState:
        return self.bridge.state

    @property
    def session_loaded(self) -> bool:
        return self.bridge.loaded

    def snapshot(self) -> RegistrySnapshot:
        return self.registry.snapshot()

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        return self.registry.subscribe(listener)

    def create_tab(self, shell_config: ShellConfig | None = None) -> CreateTabResult:
        return self.registry.create(shell_config)

    def close_tab(self, tab_id: str) -> None:
        self.registry.close(tab_id)

    def switch_tab(self, tab_id: str) -> None:
        self.registry.switch(tab_id)

    def update_tab_title(self, tab_id: str, title: str) -> None:
        self.registry.update_title(tab_id, title)

    def update_tab_shell_config(self, tab_id: str, shell_config: ShellConfig) -> None:
        self.registry.update_shell_config(tab_id, shell_config)

    def update_tab_color_theme(self, tab_id: str, color_theme: str) -> None:
        self.registry.update_color_theme(tab_id, color_theme)

    def reorder_tabs(self, from_index: int, to_index: int) -> None:
        self.registry.reorder(from_index, to_index)

    def load_session(self) -> bool:
        """Restore the persisted session once; later calls are no-ops."""
        if not self.restore_enabled:
            return self.bridge.skip_restore()
        return self.bridge.restore()

    def start(self) -> threading.Thread:
        """Run ``load_session`` on a daemon thread so callers never block on the store."""
        thread = threading.Thread(target=self.load_session, name="forgetabs-restore", daemon=True)
        thread.start()
        return thread

    def flush(self) -> bool:
        return self.bridge.flush()

    def shutdown(self, *, flush: bool = True) -> None:
        if flush and self.bridge.loaded:
            self.flush()
        self.bridge.close()
        logger.debug("Tab manager shut down")

    def __enter__(self) -> TabManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()
