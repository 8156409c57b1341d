"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TextIO

from .config import AppConfig, build_session_store, load_config, set_default_shell
from .errors import ExitCode, ForgeTabsError, user_facing_error
from .logging import LOG_LEVELS, configure_logging, default_log_path, normalize_level, resolve_log_path
from .store import SessionStore
from .tabs import TabManager
from .tabs.models import ShellConfig
from .themes import THEME_ORDER, describe_theme, is_known_theme

_VALID_STORES = ("file", "http")
_VALID_SHELLS = ("cmd", "powershell", "wsl")

StoreFactory = Callable[[AppConfig], SessionStore]


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized is None:
        accepted = ", ".join(LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _index_type(value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("tab positions must be integers") from exc


def _add_shell_options(parser: argparse.ArgumentParser, *, required: bool) -> None:
    if required:
        parser.add_argument("shell", choices=_VALID_SHELLS)
    else:
        parser.add_argument("--shell", choices=_VALID_SHELLS, default=None)
    parser.add_argument("--wsl-distro", default="")
    parser.add_argument("--wsl-home", default="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="forgetabs")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--store", choices=_VALID_STORES, default=None)
    parser.add_argument("--session-path", type=Path, default=None)
    parser.add_argument("--session-url", default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="Show the persisted tabs")
    new_parser = commands.add_parser("new", help="Open a new tab")
    _add_shell_options(new_parser, required=False)
    close_parser = commands.add_parser("close", help="Close a tab")
    close_parser.add_argument("tab_id")
    switch_parser = commands.add_parser("switch", help="Make a tab active")
    switch_parser.add_argument("tab_id")
    rename_parser = commands.add_parser("rename", help="Change a tab title")
    rename_parser.add_argument("tab_id")
    rename_parser.add_argument("title")
    theme_parser = commands.add_parser("theme", help="Change a tab color theme")
    theme_parser.add_argument("tab_id")
    theme_parser.add_argument("theme")
    move_parser = commands.add_parser("move", help="Move a tab to another position")
    move_parser.add_argument("from_index", type=_index_type)
    move_parser.add_argument("to_index", type=_index_type)
    commands.add_parser("themes", help="List the theme palette")
    shell_parser = commands.add_parser("set-shell", help="Persist the default shell for new tabs")
    _add_shell_options(shell_parser, required=True)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_config(namespace: argparse.Namespace) -> AppConfig:
    config = load_config(namespace.config)
    if namespace.store is not None:
        config.session_store = namespace.store
    if namespace.session_path is not None:
        config.session_path = str(namespace.session_path.expanduser())
    if namespace.session_url is not None:
        config.session_url = namespace.session_url
    return config


def format_tabs(manager: TabManager) -> list[str]:
    snapshot = manager.snapshot()
    lines = []
    for index, tab in enumerate(snapshot.tabs):
        marker = "*" if tab.id == snapshot.active_tab_id else " "
        shell = tab.shell_config.shell_type
        if tab.shell_config.wsl_distro:
            shell = f"{shell}:{tab.shell_config.wsl_distro}"
        lines.append(f"{marker} {index} {tab.id} {tab.title!r} shell={shell} theme={tab.color_theme}")
    return lines


def _apply_command(namespace: argparse.Namespace, manager: TabManager) -> None:
    command = namespace.command
    if command == "new":
        shell_config = None
        if namespace.shell is not None:
            shell_config = ShellConfig(
                shell_type=namespace.shell,
                wsl_distro=namespace.wsl_distro,
                wsl_home_path=namespace.wsl_home,
            )
        result = manager.create_tab(shell_config)
        if not result.success:
            raise ForgeTabsError(
                f"Tab limit reached ({manager.registry.max_tabs})",
                code=ExitCode.VALIDATION_ERROR,
                hint="Close a tab before opening a new one.",
            )
    elif command == "close":
        manager.close_tab(namespace.tab_id)
    elif command == "switch":
        manager.switch_tab(namespace.tab_id)
    elif command == "rename":
        manager.update_tab_title(namespace.tab_id, namespace.title)
    elif command == "theme":
        if not is_known_theme(namespace.theme):
            raise ForgeTabsError(
                f"Unknown theme: {namespace.theme}",
                code=ExitCode.VALIDATION_ERROR,
                hint=f"Use one of: {', '.join(THEME_ORDER)}.",
            )
        manager.update_tab_color_theme(namespace.tab_id, namespace.theme)
    elif command == "move":
        manager.reorder_tabs(namespace.from_index, namespace.to_index)


def run_session_command(
    namespace: argparse.Namespace,
    config: AppConfig,
    *,
    store_factory: StoreFactory = build_session_store,
    out: TextIO | None = None,
) -> int:
    output = out or sys.stdout
    store = store_factory(config)
    with TabManager(
        config.default_shell(),
        store,
        restore_enabled=config.session_restore_enabled,
    ) as manager:
        manager.load_session()
        _apply_command(namespace, manager)
        for line in format_tabs(manager):
            print(line, file=output)
    return int(ExitCode.SUCCESS)


def run_cli_flow(
    namespace: argparse.Namespace,
    *,
    store_factory: StoreFactory = build_session_store,
    out: TextIO | None = None,
) -> int:
    output = out or sys.stdout
    if namespace.command == "themes":
        for index, name in enumerate(THEME_ORDER):
            print(f"{index} {name} {describe_theme(name)}", file=output)
        return int(ExitCode.SUCCESS)
    if namespace.command == "set-shell":
        config = set_default_shell(
            namespace.shell,
            wsl_distro=namespace.wsl_distro,
            wsl_home_path=namespace.wsl_home,
            path=namespace.config,
        )
        print(f"Default shell: {config.shell_type}", file=output)
        return int(ExitCode.SUCCESS)
    config = resolve_config(namespace)
    return run_session_command(namespace, config, store_factory=store_factory, out=output)


def main(
    argv: Sequence[str] | None = None,
    *,
    store_factory: StoreFactory = build_session_store,
    out: TextIO | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging("WARN", log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    log_path = resolve_log_path(namespace.log_file or config.log_file)
    level = namespace.log_level or normalize_level(config.log_level) or "WARN"
    logger = configure_logging(level=level, log_file=log_path)

    try:
        logger.debug("Starting CLI command=%s", namespace.command)
        return run_cli_flow(namespace, store_factory=store_factory, out=out)
    except ForgeTabsError as exc:
        logger.error(
            "Handled ForgeTabsError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=level == "DEBUG",
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
