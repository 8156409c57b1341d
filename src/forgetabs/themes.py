"""Fixed color theme palette assigned to tabs in round-robin order."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ThemeInfo:
    key: str
    name: str
    dark_accent: str
    light_accent: str


THEMES: dict[str, ThemeInfo] = {
    "molten": ThemeInfo("molten", "Molten Metal", "#f97316", "#ea580c"),
    "ocean": ThemeInfo("ocean", "Deep Ocean", "#38bdf8", "#0284c7"),
    "forest": ThemeInfo("forest", "Emerald Forest", "#22c55e", "#16a34a"),
    "midnight": ThemeInfo("midnight", "Midnight Purple", "#a855f7", "#9333ea"),
    "rose": ThemeInfo("rose", "Rose Gold", "#fb7185", "#e11d48"),
    "arctic": ThemeInfo("arctic", "Arctic Frost", "#67e8f9", "#0891b2"),
}

THEME_ORDER: tuple[str, ...] = ("molten", "ocean", "forest", "midnight", "rose", "arctic")


def theme_for_index(index: int, palette: tuple[str, ...] = THEME_ORDER) -> str:
    return palette[index % len(palette)]


def is_known_theme(name: str) -> bool:
    return name in THEMES


def describe_theme(name: str) -> str:
    info = THEMES.get(name)
    if info is None:
        return name
    return f"{info.name} ({info.dark_accent})"
