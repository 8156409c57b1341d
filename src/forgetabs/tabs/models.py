"""Tab domain models."""

from __future__ import annotations

from dataclasses import dataclass, field

from forgetabs.errors import TabErrorKind

MAX_TABS = 20
DEFAULT_SHELL_TYPE = "cmd"


@dataclass(frozen=True)
class ShellConfig:
    shell_type: str = DEFAULT_SHELL_TYPE
    wsl_distro: str = ""
    wsl_home_path: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "shellType": self.shell_type or DEFAULT_SHELL_TYPE,
            "wslDistro": self.wsl_distro or "",
            "wslHomePath": self.wsl_home_path or "",
        }


@dataclass(frozen=True)
class Tab:
    id: str
    title: str
    shell_config: ShellConfig
    color_theme: str
    created_at: float = 0.0


@dataclass(frozen=True)
class CreateTabResult:
    success: bool
    tab: Tab | None = None
    error: TabErrorKind | None = None

    @property
    def tab_id(self) -> str | None:
        return self.tab.id if self.tab is not None else None


@dataclass(frozen=True)
class RegistrySnapshot:
    tabs: tuple[Tab, ...] = field(default_factory=tuple)
    active_tab_id: str | None = None

    @property
    def active_tab(self) -> Tab | None:
        for tab in self.tabs:
            if tab.id == self.active_tab_id:
                return tab
        return None
