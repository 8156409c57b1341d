"""Collision-free tab identifiers and round-robin theme assignment."""

from __future__ import annotations

import logging as py_logging
import secrets
import string
import threading
from collections.abc import Iterable

from forgetabs.themes import THEME_ORDER

logger = py_logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def _random_suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))


class TabAllocator:
    """Hands out tab ids and themes for one manager instance.

    Both cursors only ever move forward. Ids are never handed out twice, and
    ids reserved from a restored session are treated as already issued.
    """

    def __init__(self, palette: tuple[str, ...] = THEME_ORDER) -> None:
        if not palette:
            raise ValueError("Theme palette must not be empty")
        self.palette = tuple(palette)
        self._id_counter = 0
        self._theme_cursor = 0
        self._issued: set[str] = set()
        self._lock = threading.Lock()

    @property
    def id_counter(self) -> int:
        return self._id_counter

    @property
    def theme_cursor(self) -> int:
        return self._theme_cursor

    def next_id(self) -> str:
        with self._lock:
            while True:
                self._id_counter += 1
                candidate = f"tab-{self._id_counter}-{_random_suffix()}"
                if candidate not in self._issued:
                    self._issued.add(candidate)
                    return candidate
                logger.debug("Skipping colliding tab id candidate=%s", candidate)

    def next_theme(self) -> str:
        with self._lock:
            theme = self.palette[self._theme_cursor % len(self.palette)]
            self._theme_cursor += 1
            return theme

    def reserve(self, ids: Iterable[str]) -> None:
        with self._lock:
            self._issued.update(item for item in ids if item)

    def is_issued(self, tab_id: str) -> bool:
        with self._lock:
            return tab_id in self._issued

    def fast_forward(self, restored_count: int) -> None:
        with self._lock:
            self._id_counter = max(self._id_counter, restored_count + 1)
            self._theme_cursor = max(self._theme_cursor, restored_count)
        logger.debug(
            "Allocator fast-forwarded restored=%s id_counter=%s theme_cursor=%s",
            restored_count,
            self._id_counter,
            self._theme_cursor,
        )
