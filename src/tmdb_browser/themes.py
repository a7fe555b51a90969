"""Color palettes, media-type badge colors and Textual theme builders."""

from __future__ import annotations

from textual.theme import Theme as TextualTheme

DEFAULT_THEME = {
    "background": "#272822",
    "panel": "#1e1e1e",
    "panel_alt": "#3e3d32",
    "text": "#f8f8f2",
    "muted": "#75715e",
    "accent": "#66d9ef",
    "accent_alt": "#e6db74",
    "green": "#a6e22e",
    "yellow": "#e6db74",
    "orange": "#fd971f",
    "pink": "#f92672",
    "purple": "#ae81ff",
    "highlight": "#49483e",
    "highlight_focus": "#5a5950",
    "scrollbar": "#75715e",
    "scrollbar_active": "#66d9ef",
}

CATPPUCCIN_MOCHA_THEME: dict[str, str] = {
    "background": "#1e1e2e",
    "panel": "#181825",
    "panel_alt": "#313244",
    "text": "#cdd6f4",
    "muted": "#6c7086",
    "accent": "#89b4fa",
    "accent_alt": "#f9e2af",
    "green": "#a6e3a1",
    "yellow": "#f9e2af",
    "orange": "#fab387",
    "pink": "#f38ba8",
    "purple": "#cba6f7",
    "highlight": "#313244",
    "highlight_focus": "#45475a",
    "scrollbar": "#6c7086",
    "scrollbar_active": "#89b4fa",
}

SOLARIZED_DARK_THEME: dict[str, str] = {
    "background": "#002b36",
    "panel": "#073642",
    "panel_alt": "#586e75",
    "text": "#839496",
    "muted": "#586e75",
    "accent": "#268bd2",
    "accent_alt": "#b58900",
    "green": "#859900",
    "yellow": "#b58900",
    "orange": "#cb4b16",
    "pink": "#d33682",
    "purple": "#6c71c4",
    "highlight": "#073642",
    "highlight_focus": "#586e75",
    "scrollbar": "#657b83",
    "scrollbar_active": "#268bd2",
}

THEMES: dict[str, dict[str, str]] = {
    "monokai": DEFAULT_THEME,
    "catppuccin-mocha": CATPPUCCIN_MOCHA_THEME,
    "solarized-dark": SOLARIZED_DARK_THEME,
}
THEME_NAMES: list[str] = list(THEMES.keys())


def _build_textual_theme(name: str, colors: dict[str, str]) -> TextualTheme:
    """Convert an app color dict to a Textual Theme with $th-* CSS variables."""
    variables = {
        "th-background": colors["background"],
        "th-panel": colors["panel"],
        "th-panel-alt": colors["panel_alt"],
        "th-highlight": colors["highlight"],
        "th-highlight-focus": colors["highlight_focus"],
        "th-accent": colors["accent"],
        "th-accent-alt": colors["accent_alt"],
        "th-muted": colors["muted"],
        "th-text": colors["text"],
        "th-green": colors["green"],
        "th-pink": colors["pink"],
        "th-scrollbar-thumb": colors["scrollbar"],
        "th-scrollbar-active": colors["scrollbar_active"],
    }
    return TextualTheme(
        name=name,
        primary=colors["accent"],
        secondary=colors["accent_alt"],
        accent=colors["green"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["panel"],
        panel=colors["panel_alt"],
        warning=colors["orange"],
        error=colors["pink"],
        success=colors["green"],
        dark=True,
        variables=variables,
    )


TEXTUAL_THEMES: dict[str, TextualTheme] = {
    name: _build_textual_theme(name, colors) for name, colors in THEMES.items()
}

# Active Rich-markup palette; apply_theme() swaps it in place.
THEME_COLORS = DEFAULT_THEME.copy()

# Badge color per media type, keyed into the active palette
_MEDIA_TYPE_COLOR_KEYS: dict[str, str] = {
    "movie": "orange",
    "tv": "purple",
    "person": "green",
}


def apply_theme(name: str) -> str:
    """Activate palette ``name`` (falling back to monokai). Returns the applied name."""
    if name not in THEMES:
        name = "monokai"
    THEME_COLORS.clear()
    THEME_COLORS.update(THEMES[name])
    return name


def get_media_type_color(media_type: str) -> str:
    """Return the badge color for a media type in the active palette."""
    return THEME_COLORS[_MEDIA_TYPE_COLOR_KEYS.get(media_type, "muted")]


__all__ = [
    "CATPPUCCIN_MOCHA_THEME",
    "DEFAULT_THEME",
    "SOLARIZED_DARK_THEME",
    "TEXTUAL_THEMES",
    "THEMES",
    "THEME_COLORS",
    "THEME_NAMES",
    "apply_theme",
    "get_media_type_color",
]
