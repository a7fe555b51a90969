"""UI-facing copy builders for errors and notifications."""

from __future__ import annotations

import httpx

from tmdb_browser.models import TAB_MOVIES, TAB_SEARCH, TAB_TV
from tmdb_browser.tmdb import MissingCredentialsError

_MODE_ACTIONS: dict[str, str] = {
    TAB_MOVIES: "load movies",
    TAB_TV: "load TV shows",
    TAB_SEARCH: "search",
}


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def describe_fetch_error(mode: str, exc: BaseException) -> str:
    """Turn a catalog failure into the message shown for the active tab."""
    action = _MODE_ACTIONS.get(mode, "load results")
    if isinstance(exc, MissingCredentialsError):
        return build_actionable_error(
            action,
            why="no TMDB credentials are configured",
            next_step="set TMDB_API_KEY or TMDB_READ_TOKEN and restart",
        )
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 401:
            return build_actionable_error(
                action,
                why="TMDB rejected the credentials (HTTP 401)",
                next_step="check your TMDB API key",
            )
        if status_code == 429:
            return build_actionable_error(
                action,
                why="TMDB rate limit reached (HTTP 429)",
                next_step="wait a few seconds and try again",
            )
        if status_code >= 500:
            return build_actionable_error(
                action,
                why=f"TMDB is unavailable right now (HTTP {status_code})",
                next_step="retry in a minute",
            )
        return build_actionable_error(
            action,
            why=f"TMDB rejected the request (HTTP {status_code})",
            next_step="check your TMDB API key",
        )
    if isinstance(exc, httpx.TimeoutException):
        return build_actionable_error(
            action,
            why="the request to TMDB timed out",
            next_step="check connectivity and try again",
        )
    if isinstance(exc, ValueError):
        return build_actionable_error(
            action,
            why="TMDB returned an unexpected response",
            next_step="try again",
        )
    return build_actionable_error(
        action,
        why="a network or I/O error occurred",
        next_step="check connectivity and your TMDB API key",
    )


__all__ = [
    "build_actionable_error",
    "build_next_step_hint",
    "describe_fetch_error",
]
