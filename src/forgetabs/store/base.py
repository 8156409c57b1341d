"""Session store collaborator contract."""

from __future__ import annotations

from typing import Protocol


class SessionStore(Protocol):
    def load(self) -> object | None: ...

    def save(self, record: dict[str, object]) -> None: ...
