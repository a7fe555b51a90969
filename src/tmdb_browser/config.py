"""Configuration persistence: load and save."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from tmdb_browser.models import CONFIG_APP_NAME, SessionState, UserConfig
from tmdb_browser.themes import THEME_NAMES

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                    Rule                           Handler
#   ───────────────────────  ─────────────────────────────  ───────────────────
#   session.active_tab       in TAB_KEYS                    SessionState
#   session.*_category       in MOVIE/TV_CATEGORIES         SessionState
#   session.search_kind      in SEARCH_KINDS                SessionState
#   request_timeout_seconds  1 ≤ x ≤ 120                    _coerce_timeout
#   theme_name               in THEME_NAMES                 _dict_to_config
#   scalar fields            type-checked via _safe_get()   _dict_to_config
#
CONFIG_FILENAME = "config.json"
MAX_REQUEST_TIMEOUT_SECONDS = 120
DEFAULT_REQUEST_TIMEOUT_SECONDS = 15


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/tmdb-browser/config.json
    - macOS: ~/Library/Application Support/tmdb-browser/config.json
    - Windows: %APPDATA%/tmdb-browser/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "tmdb_api_key": config.tmdb_api_key,
        "tmdb_read_token": config.tmdb_read_token,
        "language": config.language,
        "include_adult": config.include_adult,
        "request_timeout_seconds": _coerce_timeout(config.request_timeout_seconds),
        "theme_name": config.theme_name,
        "session": {
            "active_tab": config.session.active_tab,
            "movie_category": config.session.movie_category,
            "tv_category": config.session.tv_category,
            "search_kind": config.session.search_kind,
        },
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_timeout(value: Any) -> int:
    """Validate and clamp the configured request timeout."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_REQUEST_TIMEOUT_SECONDS
    return max(1, min(value, MAX_REQUEST_TIMEOUT_SECONDS))


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    """Parse the session section; SessionState resets unknown values."""
    session_data = data.get("session", {})
    if not isinstance(session_data, dict):
        session_data = {}
    defaults = SessionState()
    return SessionState(
        active_tab=_safe_get(session_data, "active_tab", defaults.active_tab, str),
        movie_category=_safe_get(session_data, "movie_category", defaults.movie_category, str),
        tv_category=_safe_get(session_data, "tv_category", defaults.tv_category, str),
        search_kind=_safe_get(session_data, "search_kind", defaults.search_kind, str),
    )


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    theme_name = _safe_get(data, "theme_name", "monokai", str)
    if theme_name not in THEME_NAMES:
        logger.warning("Unknown theme %r, defaulting to 'monokai'", theme_name)
        theme_name = "monokai"
    return UserConfig(
        session=_parse_session_state(data),
        tmdb_api_key=_safe_get(data, "tmdb_api_key", "", str),
        tmdb_read_token=_safe_get(data, "tmdb_read_token", "", str),
        language=_safe_get(data, "language", "en-US", str) or "en-US",
        include_adult=_safe_get(data, "include_adult", False, bool),
        request_timeout_seconds=_coerce_timeout(
            data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        ),
        theme_name=theme_name,
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    Logs specific errors to help diagnose config issues.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning("Config file root is not an object, using defaults")
            return UserConfig()
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() to prevent partial writes
    on crash/interrupt from corrupting the config file.

    Creates the config directory if it doesn't exist.
    Returns True on success, False on failure.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = _config_to_dict(config)
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "get_config_path",
    "load_config",
    "save_config",
]
