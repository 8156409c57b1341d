"""XDG config loading/saving."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from forgetabs.errors import ExitCode, ForgeTabsError
from forgetabs.logging import normalize_level
from forgetabs.store import (
    DEFAULT_SESSION_PATH,
    DEFAULT_SESSION_URL,
    FileSessionStore,
    HttpSessionStore,
    SessionStore,
)
from forgetabs.tabs.models import ShellConfig

DEFAULT_CONFIG_PATH = Path("~/.config/forgetabs/config.toml").expanduser()
DEFAULT_SHELL_TYPE: Literal["cmd", "powershell", "wsl"] = "cmd"
DEFAULT_SESSION_STORE: Literal["file", "http"] = "file"
DEFAULT_LOG_LEVEL = "WARN"
SESSION_URL_ENV = "FORGETABS_SESSION_URL"

_VALID_SHELL_TYPES = {"cmd", "powershell", "wsl"}
_VALID_SESSION_STORES = {"file", "http"}

ShellType = Literal["cmd", "powershell", "wsl"]
SessionStoreKind = Literal["file", "http"]


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    shell_type: ShellType = DEFAULT_SHELL_TYPE
    wsl_distro: str = ""
    wsl_home_path: str = ""
    session_store: SessionStoreKind = DEFAULT_SESSION_STORE
    session_path: str = str(DEFAULT_SESSION_PATH)
    session_url: str = DEFAULT_SESSION_URL
    session_restore_enabled: bool = True
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = ""

    @field_validator("shell_type")
    @classmethod
    def _validate_shell_type(cls, value: str) -> str:
        if value not in _VALID_SHELL_TYPES:
            raise ValueError(f"Invalid shell type: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = normalize_level(value)
        if normalized is None:
            raise ValueError(f"Invalid log level: {value}")
        return normalized

    def default_shell(self) -> ShellConfig:
        return ShellConfig(
            shell_type=self.shell_type,
            wsl_distro=self.wsl_distro,
            wsl_home_path=self.wsl_home_path,
        )


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    shell_type = raw.get("shell_type", cfg.shell_type)
    if isinstance(shell_type, str) and shell_type.strip().lower() in _VALID_SHELL_TYPES:
        cfg.shell_type = cast(ShellType, shell_type.strip().lower())

    wsl_distro = raw.get("wsl_distro", cfg.wsl_distro)
    if isinstance(wsl_distro, str):
        cfg.wsl_distro = wsl_distro.strip()

    wsl_home_path = raw.get("wsl_home_path", cfg.wsl_home_path)
    if isinstance(wsl_home_path, str):
        cfg.wsl_home_path = wsl_home_path.strip()

    session_store = raw.get("session_store", cfg.session_store)
    if isinstance(session_store, str) and session_store in _VALID_SESSION_STORES:
        cfg.session_store = cast(SessionStoreKind, session_store)

    session_path = raw.get("session_path", cfg.session_path)
    if isinstance(session_path, str) and session_path.strip():
        cfg.session_path = session_path.strip()

    session_url = raw.get("session_url", cfg.session_url)
    if isinstance(session_url, str) and session_url.strip():
        cfg.session_url = session_url.strip()

    session_restore_enabled = raw.get("session_restore_enabled", cfg.session_restore_enabled)
    if isinstance(session_restore_enabled, bool):
        cfg.session_restore_enabled = session_restore_enabled

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str) and normalize_level(log_level) is not None:
        cfg.log_level = log_level

    log_file = raw.get("log_file", cfg.log_file)
    if isinstance(log_file, str):
        cfg.log_file = log_file.strip()

    return cfg


def _apply_env_overrides(cfg: AppConfig) -> AppConfig:
    env_url = os.getenv(SESSION_URL_ENV, "").strip()
    if env_url:
        cfg.session_url = env_url
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env_overrides(AppConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env_overrides(AppConfig())
    if not isinstance(raw, dict):
        return _apply_env_overrides(AppConfig())
    return _apply_env_overrides(_sanitize(raw))


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        f"shell_type = {_toml_scalar(config.shell_type)}",
        f"wsl_distro = {_toml_scalar(config.wsl_distro)}",
        f"wsl_home_path = {_toml_scalar(config.wsl_home_path)}",
        f"session_store = {_toml_scalar(config.session_store)}",
        f"session_path = {_toml_scalar(config.session_path)}",
        f"session_url = {_toml_scalar(config.session_url)}",
        f"session_restore_enabled = {_toml_scalar(config.session_restore_enabled)}",
        f"log_level = {_toml_scalar(config.log_level)}",
        f"log_file = {_toml_scalar(config.log_file)}",
    ]
    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved


def set_default_shell(
    shell_type: str,
    *,
    wsl_distro: str = "",
    wsl_home_path: str = "",
    path: str | Path | None = None,
) -> AppConfig:
    normalized = shell_type.strip().lower()
    if normalized not in _VALID_SHELL_TYPES:
        raise ForgeTabsError(
            f"Invalid shell type: {shell_type}",
            code=ExitCode.VALIDATION_ERROR,
            hint=f"Use one of: {', '.join(sorted(_VALID_SHELL_TYPES))}.",
        )
    config = load_config(path)
    config.shell_type = cast(ShellType, normalized)
    config.wsl_distro = wsl_distro.strip()
    config.wsl_home_path = wsl_home_path.strip()
    save_config(config, path)
    return config


def build_session_store(config: AppConfig) -> SessionStore:
    if config.session_store == "http":
        return HttpSessionStore(config.session_url)
    return FileSessionStore(config.session_path)
