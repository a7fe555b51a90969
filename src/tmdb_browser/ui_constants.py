"""Internal UI constants for the TmdbBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#mode-tabs {
    background: $th-panel;
}

#controls {
    height: auto;
    padding: 0 1;
    background: $th-panel;
}

#controls Select {
    width: 36;
}

#search-form {
    height: auto;
    width: 1fr;
}

#search-input {
    width: 1fr;
    border: tall $th-accent;
    background: $th-background;
}

#search-input:focus {
    border: tall $th-accent-alt;
}

#search-button {
    margin-left: 1;
}

#validation-error, #api-error {
    padding: 0 1;
    color: $th-pink;
    display: none;
}

#validation-error.visible, #api-error.visible {
    display: block;
}

#list-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#result-list {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
    scrollbar-gutter: stable;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-active: $th-scrollbar-active;
}

#result-list:focus {
    border: tall $th-accent;
}

#result-list > .option-list--option-highlighted {
    background: $th-highlight;
}

#result-list:focus > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#result-list > .option-list--option-hover {
    background: $th-panel-alt;
}

#pager {
    height: auto;
    align: center middle;
    padding: 0 1;
}

#pager.hidden {
    display: none;
}

#page-label {
    padding: 1 2;
    color: $th-text;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit"),
    Binding("bracketleft", "prev_page", "Prev Page"),
    Binding("bracketright", "next_page", "Next Page"),
    Binding("1", "show_tab('movies')", "Movies", show=False),
    Binding("2", "show_tab('search')", "Search", show=False),
    Binding("3", "show_tab('tv')", "TV Shows", show=False),
    Binding("slash", "focus_search", "Search"),
    Binding("ctrl+t", "cycle_theme", "Theme", show=False),
    Binding("escape", "focus_results", "Results", show=False),
    Binding("j", "cursor_down", "Down", show=False),
    Binding("k", "cursor_up", "Up", show=False),
]


__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
]
