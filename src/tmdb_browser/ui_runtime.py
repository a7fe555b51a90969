"""Internal runtime helpers for TUI widget refs."""

from __future__ import annotations

from dataclasses import dataclass

from textual.widget import Widget
from textual.widgets import Button, Input, Label, OptionList, Select, Tabs


@dataclass(slots=True)
class UiRefs:
    """Cached widget references for hot UI paths.

    These refs are internal-only and must not be treated as a public API.
    """

    mode_tabs: Tabs | None = None
    movie_category: Select | None = None
    tv_category: Select | None = None
    search_form: Widget | None = None
    search_input: Input | None = None
    search_kind: Select | None = None
    validation_error: Label | None = None
    api_error: Label | None = None
    list_header: Label | None = None
    result_list: OptionList | None = None
    pager: Widget | None = None
    prev_button: Button | None = None
    next_button: Button | None = None
    page_label: Label | None = None
    status_bar: Label | None = None

    def reset(self) -> None:
        """Clear all cached refs (for unmount/teardown)."""
        for name in self.__slots__:  # type: ignore[attr-defined]
            setattr(self, name, None)


__all__ = [
    "UiRefs",
]
