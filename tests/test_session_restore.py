from __future__ import annotations

from forgetabs.errors import ExitCode, ForgeTabsError
from forgetabs.tabs import MAX_TABS, SessionState, ShellConfig, TabManager
from forgetabs.themes import THEME_ORDER


def _record(count: int, *, active: str = "") -> dict[str, object]:
    return {
        "tabs": [
            {
                "id": f"t{index + 1}",
                "title": f"Shell {index + 1}",
                "shellConfig": {"shellType": "wsl", "wslDistro": "Ubuntu", "wslHomePath": "/home/dev"},
                "colorTheme": THEME_ORDER[(index + 2) % len(THEME_ORDER)],
            }
            for index in range(count)
        ],
        "activeTabId": active,
    }


def _manager(store, timers, **kwargs) -> TabManager:
    return TabManager(ShellConfig(shell_type="cmd"), store, timer_factory=timers, clock=lambda: 99.0, **kwargs)


def test_restore_reproduces_persisted_tabs_in_order(store, timers) -> None:
    store.record = _record(3, active="t2")
    manager = _manager(store, timers)

    assert manager.load_session() is True

    assert manager.session_state == SessionState.LOADED
    assert [tab.id for tab in manager.tabs] == ["t1", "t2", "t3"]
    assert [tab.title for tab in manager.tabs] == ["Shell 1", "Shell 2", "Shell 3"]
    assert [tab.color_theme for tab in manager.tabs] == ["forest", "midnight", "rose"]
    assert all(tab.shell_config == ShellConfig("wsl", "Ubuntu", "/home/dev") for tab in manager.tabs)
    assert all(tab.created_at == 99.0 for tab in manager.tabs)
    assert manager.active_tab_id == "t2"
    assert manager.active_tab is not None and manager.active_tab.title == "Shell 2"


def test_create_after_restore_continues_theme_rotation(store, timers) -> None:
    store.record = _record(3, active="t1")
    manager = _manager(store, timers)
    manager.load_session()

    result = manager.create_tab()

    assert result.tab is not None
    assert result.tab.color_theme == THEME_ORDER[3]
    assert result.tab.title == "Terminal 4"
    assert result.tab.id.startswith("tab-5-")
    assert result.tab.id not in {"t1", "t2", "t3"}


def test_unknown_active_id_falls_back_to_first_tab(store, timers) -> None:
    store.record = _record(2, active="t9")
    manager = _manager(store, timers)

    manager.load_session()

    assert manager.active_tab_id == "t1"


def test_missing_fields_are_defaulted(store, timers) -> None:
    store.record = {"tabs": [{}, {"id": "keep", "shellConfig": {"shellType": "powershell"}}]}
    manager = TabManager(
        ShellConfig(shell_type="wsl", wsl_distro="Debian", wsl_home_path="/home/me"),
        store,
        timer_factory=timers,
    )

    manager.load_session()

    first, second = manager.tabs
    assert first.id.startswith("tab-")
    assert first.title == "Terminal 1"
    assert first.color_theme == THEME_ORDER[0]
    assert first.shell_config == ShellConfig("wsl", "Debian", "/home/me")
    assert second.id == "keep"
    assert second.title == "Terminal 2"
    assert second.color_theme == THEME_ORDER[1]
    assert second.shell_config == ShellConfig("powershell", "Debian", "/home/me")
    assert manager.active_tab_id == first.id


def test_duplicate_ids_in_record_get_fresh_ids(store, timers) -> None:
    store.record = {"tabs": [{"id": "dup"}, {"id": "dup"}], "activeTabId": "dup"}
    manager = _manager(store, timers)

    manager.load_session()

    ids = [tab.id for tab in manager.tabs]
    assert ids[0] == "dup"
    assert ids[1] != "dup"
    assert manager.active_tab_id == "dup"


def test_oversized_record_keeps_first_max_tabs(store, timers) -> None:
    store.record = _record(MAX_TABS + 3, active="t23")
    manager = _manager(store, timers)

    manager.load_session()

    assert len(manager.tabs) == MAX_TABS
    assert manager.tabs[-1].id == f"t{MAX_TABS}"
    assert manager.active_tab_id == "t1"
    assert not manager.create_tab().success


def test_empty_record_keeps_default_tab(store, timers) -> None:
    store.record = {"tabs": [], "activeTabId": ""}
    manager = _manager(store, timers)
    default_tab = manager.tabs[0]

    manager.load_session()

    assert manager.tabs == (default_tab,)
    assert manager.session_loaded


def test_absent_record_keeps_default_tab(store, timers) -> None:
    manager = _manager(store, timers)
    default_tab = manager.tabs[0]

    manager.load_session()

    assert manager.tabs == (default_tab,)
    assert manager.active_tab_id == default_tab.id
    assert manager.session_loaded


def test_store_failure_keeps_default_tab_and_marks_loaded(store, timers, tab_logs) -> None:
    store.load_error = ForgeTabsError("unreachable", code=ExitCode.PERSISTENCE_ERROR)
    manager = _manager(store, timers)
    default_tab = manager.tabs[0]

    assert manager.load_session() is True

    assert manager.tabs == (default_tab,)
    assert manager.session_loaded
    assert "Failed to load session kind=persistence_unavailable" in tab_logs.text


def test_unexpected_store_exception_is_absorbed(store, timers) -> None:
    store.load_error = RuntimeError("boom")
    manager = _manager(store, timers)

    manager.load_session()

    assert manager.session_loaded
    assert len(manager.tabs) == 1


def test_malformed_payload_falls_back_to_default(store, timers, tab_logs) -> None:
    store.record = {"tabs": "not-a-list"}
    manager = _manager(store, timers)

    manager.load_session()

    assert len(manager.tabs) == 1
    assert manager.session_loaded
    assert "Malformed session payload" in tab_logs.text


def test_restore_runs_only_once(store, timers) -> None:
    store.record = _record(2, active="t2")
    manager = _manager(store, timers)

    assert manager.load_session() is True
    manager.create_tab()
    assert manager.load_session() is False

    assert store.load_calls == 1
    assert len(manager.tabs) == 3


def test_restore_disabled_skips_store(store, timers) -> None:
    store.record = _record(2)
    manager = _manager(store, timers, restore_enabled=False)

    assert manager.load_session() is True

    assert store.load_calls == 0
    assert manager.session_loaded
    assert len(manager.tabs) == 1


def test_start_restores_on_background_thread(store, timers) -> None:
    store.record = _record(2, active="t2")
    manager = _manager(store, timers)

    thread = manager.start()
    thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert manager.session_loaded
    assert manager.active_tab_id == "t2"


def test_saved_strings_restore_byte_for_byte(store, timers) -> None:
    shell = ShellConfig(shell_type="wsl", wsl_distro=" Ubuntu", wsl_home_path="/home/u/my dir ")
    first = _manager(store, timers)
    first.load_session()
    tab_id = first.tabs[0].id
    first.update_tab_title(tab_id, "  build  ")
    first.update_tab_shell_config(tab_id, shell)
    first.shutdown()

    second = _manager(store, timers)
    second.load_session()

    restored = second.tabs[0]
    assert restored.id == tab_id
    assert restored.title == "  build  "
    assert restored.shell_config == shell
    assert second.active_tab_id == tab_id


def test_whitespace_title_is_not_replaced_by_default(store, timers) -> None:
    store.record = {"tabs": [{"id": "t1", "title": "   "}], "activeTabId": "t1"}
    manager = _manager(store, timers)

    manager.load_session()

    assert manager.tabs[0].title == "   "


def test_restore_disabled_never_overwrites_stored_session(store, timers) -> None:
    store.record = _record(3, active="t2")
    manager = _manager(store, timers, restore_enabled=False)

    manager.load_session()
    manager.shutdown()

    assert timers.timers == []
    assert store.saved == []


def test_restore_disabled_saves_once_state_changes(store, timers) -> None:
    store.record = _record(3, active="t2")
    manager = _manager(store, timers, restore_enabled=False)
    manager.load_session()

    manager.create_tab()
    manager.shutdown()

    assert len(store.saved) == 1
    assert len(store.saved[0]["tabs"]) == 2
