"""In-memory tab registry: ordered tabs plus the active-tab pointer."""

from __future__ import annotations

import logging as py_logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import replace

from forgetabs.errors import TabErrorKind
from forgetabs.tabs.allocator import TabAllocator
from forgetabs.tabs.models import MAX_TABS, CreateTabResult, RegistrySnapshot, ShellConfig, Tab

logger = py_logging.getLogger(__name__)

RegistryListener = Callable[[RegistrySnapshot], None]
Clock = Callable[[], float]


class TabRegistry:
    """Applies tab lifecycle operations atomically.

    Every operation runs under one re-entrant lock. Invalid ids and indices
    are absorbed as no-ops so a UI racing a close against a pending action
    never sees an exception; only ``create`` reports an outcome.
    """

    def __init__(
        self,
        default_shell: ShellConfig | None = None,
        *,
        allocator: TabAllocator | None = None,
        max_tabs: int = MAX_TABS,
        clock: Clock = time.time,
    ) -> None:
        if max_tabs < 1 or max_tabs > MAX_TABS:
            raise ValueError(f"Invalid max tab count: {max_tabs}")
        self.default_shell = default_shell or ShellConfig()
        self.allocator = allocator or TabAllocator()
        self.max_tabs = max_tabs
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: list[RegistryListener] = []
        initial = self._build_tab(self.default_shell, 1)
        self._tabs: list[Tab] = [initial]
        self._active_tab_id: str | None = initial.id

    @property
    def tabs(self) -> tuple[Tab, ...]:
        with self._lock:
            return tuple(self._tabs)

    @property
    def active_tab_id(self) -> str | None:
        with self._lock:
            return self._active_tab_id

    @property
    def active_tab(self) -> Tab | None:
        return self.snapshot().active_tab

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return RegistrySnapshot(tabs=tuple(self._tabs), active_tab_id=self._active_tab_id)

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def create(self, shell_config: ShellConfig | None = None) -> CreateTabResult:
        with self._lock:
            if len(self._tabs) >= self.max_tabs:
                self._record("*", "create-rejected", f"Max tabs limit reached ({self.max_tabs}).")
                return CreateTabResult(success=False, error=TabErrorKind.CAPACITY_EXCEEDED)
            tab = self._build_tab(shell_config or self.default_shell, len(self._tabs) + 1)
            self._tabs.append(tab)
            self._active_tab_id = tab.id
            self._record(tab.id, "create", f"Created tab '{tab.title}' theme={tab.color_theme}.")
            self._notify()
            return CreateTabResult(success=True, tab=tab)

    def close(self, tab_id: str) -> None:
        with self._lock:
            if len(self._tabs) <= 1:
                self._record(tab_id, "close-skip", "Cannot close the last tab.")
                return
            index = self._index_of(tab_id)
            if index < 0:
                self._skip(tab_id, "close")
                return
            del self._tabs[index]
            if tab_id == self._active_tab_id:
                self._active_tab_id = self._tabs[max(index - 1, 0)].id
                self._record(tab_id, "close-active", f"Active tab moved to {self._active_tab_id}.")
            self._record(tab_id, "close", f"Tab closed; {len(self._tabs)} remaining.")
            self._notify()

    def switch(self, tab_id: str) -> None:
        with self._lock:
            if self._index_of(tab_id) < 0:
                self._skip(tab_id, "switch")
                return
            if tab_id == self._active_tab_id:
                return
            previous = self._active_tab_id
            self._active_tab_id = tab_id
            self._record(tab_id, "switch", f"Switched from {previous}.")
            self._notify()

    def reorder(self, from_index: int, to_index: int) -> None:
        with self._lock:
            size = len(self._tabs)
            if not (0 <= from_index < size and 0 <= to_index < size):
                logger.debug(
                    "tab-event tab=* step=reorder-skip message=Index out of range from=%s to=%s size=%s",
                    from_index,
                    to_index,
                    size,
                )
                return
            if from_index == to_index:
                return
            moved = self._tabs.pop(from_index)
            self._tabs.insert(to_index, moved)
            self._record(moved.id, "reorder", f"Moved from {from_index} to {to_index}.")
            self._notify()

    def update_title(self, tab_id: str, title: str) -> None:
        self._update(tab_id, "title", title)

    def update_shell_config(self, tab_id: str, shell_config: ShellConfig) -> None:
        self._update(tab_id, "shell_config", shell_config)

    def update_color_theme(self, tab_id: str, color_theme: str) -> None:
        self._update(tab_id, "color_theme", color_theme)

    def replace_all(self, tabs: Sequence[Tab], active_tab_id: str | None) -> None:
        """Swap in a whole new tab list; used by session restore only."""
        if not tabs:
            raise ValueError("Registry replacement requires at least one tab")
        if len(tabs) > self.max_tabs:
            raise ValueError(f"Registry replacement exceeds max tabs: {len(tabs)}")
        ids = [tab.id for tab in tabs]
        if len(set(ids)) != len(ids):
            raise ValueError("Registry replacement contains duplicate tab ids")
        with self._lock:
            self._tabs = list(tabs)
            self._active_tab_id = active_tab_id if active_tab_id in ids else ids[0]
            self._record("*", "replace", f"Registry replaced with {len(self._tabs)} tabs.")
            self._notify()

    def publish(self) -> None:
        """Re-send the current state to every listener."""
        with self._lock:
            self._notify()

    def _update(self, tab_id: str, field_name: str, value: object) -> None:
        with self._lock:
            index = self._index_of(tab_id)
            if index < 0:
                self._skip(tab_id, f"update-{field_name}")
                return
            current = self._tabs[index]
            previous = getattr(current, field_name)
            self._tabs[index] = replace(current, **{field_name: value})
            self._record(tab_id, f"update-{field_name}", f"{previous!r} -> {value!r}")
            self._notify()

    def _build_tab(self, shell_config: ShellConfig, tab_number: int) -> Tab:
        return Tab(
            id=self.allocator.next_id(),
            title=f"Terminal {tab_number}",
            shell_config=shell_config,
            color_theme=self.allocator.next_theme(),
            created_at=self._clock(),
        )

    def _index_of(self, tab_id: str) -> int:
        for index, tab in enumerate(self._tabs):
            if tab.id == tab_id:
                return index
        return -1

    def _notify(self) -> None:
        # Called with the lock held so listeners observe changes in order.
        snapshot = RegistrySnapshot(tabs=tuple(self._tabs), active_tab_id=self._active_tab_id)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Registry listener failed")

    def _skip(self, tab_id: str, step: str) -> None:
        logger.debug(
            "tab-event tab=%s step=%s-skip message=%s",
            tab_id,
            step,
            TabErrorKind.NOT_FOUND.value,
        )

    def _record(self, tab_id: str, step: str, message: str) -> None:
        logger.info("tab-event tab=%s step=%s message=%s", tab_id, step, message)
