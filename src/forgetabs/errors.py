"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    VALIDATION_ERROR = 7
    PERSISTENCE_ERROR = 9


class TabErrorKind(str, Enum):
    CAPACITY_EXCEEDED = "max_tabs"
    MAX_TABS_REACHED = "max_tabs"
    NOT_FOUND = "not_found"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"


@dataclass
class ForgeTabsError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
