"""JSON file backed session store."""

from __future__ import annotations

import json
import logging as py_logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from forgetabs.errors import ExitCode, ForgeTabsError

logger = py_logging.getLogger(__name__)

DEFAULT_SESSION_PATH = Path("~/.forge/sessions.json")


class FileSessionStore:
    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or DEFAULT_SESSION_PATH).expanduser()

    def load(self) -> object | None:
        if not self.path.exists():
            logger.debug("Session file missing path=%s", self.path)
            return None
        try:
            payload = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ForgeTabsError(
                f"Failed to read session file: {self.path}",
                code=ExitCode.PERSISTENCE_ERROR,
                hint=str(exc),
            ) from exc
        if not payload.strip():
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ForgeTabsError(
                f"Failed to parse session file: {self.path}",
                code=ExitCode.PERSISTENCE_ERROR,
                hint="Delete the file to start a fresh session.",
            ) from exc

    def save(self, record: dict[str, object]) -> None:
        data = json.dumps(record, indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(prefix=".sessions-", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data + "\n")
                with suppress(OSError):
                    os.chmod(temp_name, 0o600)
                os.replace(temp_name, self.path)
            except BaseException:
                with suppress(OSError):
                    os.unlink(temp_name)
                raise
        except OSError as exc:
            raise ForgeTabsError(
                f"Failed to write session file: {self.path}",
                code=ExitCode.PERSISTENCE_ERROR,
                hint=str(exc),
            ) from exc
        logger.debug("Session file written path=%s bytes=%s", self.path, len(data))
