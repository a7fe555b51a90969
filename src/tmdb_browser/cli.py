"""CLI/bootstrap helpers for the TMDB browser application."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from tmdb_browser.action_messages import build_actionable_error
from tmdb_browser.config import load_config
from tmdb_browser.models import (
    CONFIG_APP_NAME,
    MOVIE_CATEGORIES,
    SEARCH_KINDS,
    TAB_KEYS,
    TAB_LABELS,
    TAB_SEARCH,
    TV_CATEGORIES,
    SessionState,
    UserConfig,
)
from tmdb_browser.tmdb import (
    TMDB_API_KEY_ENV,
    TMDB_READ_TOKEN_ENV,
    TmdbCredentials,
    resolve_credentials,
)

logger = logging.getLogger(__name__)


def _print_categories() -> None:
    """Print every tab, category and search kind value accepted on the command line."""
    sections = (
        (f"{TAB_LABELS['movies']} categories (--movie-category)", MOVIE_CATEGORIES),
        (f"{TAB_LABELS['tv']} categories (--tv-category)", TV_CATEGORIES),
        ("Search kinds (--search-kind)", SEARCH_KINDS),
    )
    for heading, options in sections:
        print(f"{heading}:")
        for label, value in options:
            print(f"  {value:<14}{label}")


def _resolve_session(args: argparse.Namespace, config: UserConfig) -> SessionState:
    """Build the starting session from saved state and command-line overrides."""
    base = config.session if not args.no_restore else SessionState()
    session = SessionState(
        active_tab=args.tab or base.active_tab,
        movie_category=args.movie_category or base.movie_category,
        tv_category=args.tv_category or base.tv_category,
        search_kind=args.search_kind or base.search_kind,
    )
    if args.search is not None:
        session.active_tab = TAB_SEARCH
    return session


def _check_credentials(credentials: TmdbCredentials) -> bool:
    if credentials.kind != "missing":
        logger.debug("Using TMDB credentials of kind %s", credentials.kind)
        return True
    print(
        build_actionable_error(
            "start tmdb-browser",
            why="no TMDB credentials were found",
            next_step=(
                f"export {TMDB_READ_TOKEN_ENV} or {TMDB_API_KEY_ENV}, "
                "or add tmdb_api_key to the config file"
            ),
        ),
        file=sys.stderr,
    )
    return False


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse movies and TV shows from The Movie Database in a TUI"
    )
    parser.add_argument(
        "--tab",
        choices=list(TAB_KEYS),
        default=None,
        help="Tab to open on start: movies, search, tv (default: last used)",
    )
    parser.add_argument(
        "--movie-category",
        choices=[value for _, value in MOVIE_CATEGORIES],
        default=None,
        help="Movie list to show on the Movies tab",
    )
    parser.add_argument(
        "--tv-category",
        choices=[value for _, value in TV_CATEGORIES],
        default=None,
        help="TV list to show on the TV Shows tab",
    )
    parser.add_argument(
        "--search",
        type=str,
        default=None,
        metavar="QUERY",
        help="Start on the Search Results tab and search for QUERY",
    )
    parser.add_argument(
        "--search-kind",
        choices=[value for _, value in SEARCH_KINDS],
        default=None,
        help="Search type: multi (movies and TV), movie, tv",
    )
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="List available categories and search kinds and exit",
    )
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Start with fresh session (ignore saved tab and categories)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/tmdb-browser/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    resolve_credentials_fn: Callable[[UserConfig], TmdbCredentials] = resolve_credentials,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)

    if args.list_categories:
        _print_categories()
        return 0

    if args.search is not None and not args.search.strip():
        print(
            build_actionable_error(
                "start a search",
                why="--search was given an empty query",
                next_step='pass a movie or TV show name, e.g. --search "alien"',
            ),
            file=sys.stderr,
        )
        return 1

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("tmdb-browser starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    if not _check_credentials(resolve_credentials_fn(config)):
        return 1

    if not validate_interactive_tty_fn():
        print(
            "Error: tmdb-browser requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run tmdb-browser directly in a terminal session", file=sys.stderr)
        print("  - Use --list-categories for non-interactive output", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    session = _resolve_session(args, config)

    if app_factory is None:
        from tmdb_browser.app import TmdbBrowser as _TmdbBrowser

        app_factory = _TmdbBrowser

    app = app_factory(
        config=config,
        restore_session=not args.no_restore,
        session=session,
        initial_query=args.search,
    )
    app.run()
    return 0


__all__ = [
    "_build_parser",
    "_check_credentials",
    "_configure_color_mode",
    "_configure_logging",
    "_print_categories",
    "_resolve_session",
    "_validate_interactive_tty",
    "main",
]
