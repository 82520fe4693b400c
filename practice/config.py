# SPDX-License-Identifier: MIT
"""Configuration for Practice Builder.

Settings come from three places, highest precedence first:

1. Environment variables (a ``.env`` file is honoured via python-dotenv)
2. The JSON settings file (see ``PathResolver.settings_file``), read with
   dot-notation keys under ``practiceBuilder``
3. Built-in defaults for the practice workspace
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

try:
    from practice.errors import ConfigurationError
    from practice.models import DEFAULT_PLANNED_MINUTES, DEFAULT_SESSION_LABEL
    from practice.paths import PathResolver
except ImportError:
    from errors import ConfigurationError
    from models import DEFAULT_PLANNED_MINUTES, DEFAULT_SESSION_LABEL
    from paths import PathResolver


SETTINGS_NAMESPACE = "practiceBuilder"

# Data source IDs (collection IDs) - used for querying
DEFAULT_LIBRARY_DATA_SOURCE = "2d709433-8b1b-804c-897c-000b76c9e481"
DEFAULT_SESSIONS_DATA_SOURCE = "f4658dc0-2eb2-43fe-b268-1bba231c0156"
DEFAULT_LOGS_DATA_SOURCE = "2d709433-8b1b-809b-bae2-000b1343e18f"

# Database IDs - used as parents when creating pages
DEFAULT_LIBRARY_DATABASE = "2d7094338b1b80ea8a42f746682bf965"
DEFAULT_SESSIONS_DATABASE = "7c39d1ff5e2e4458be4c5cded1bc485d"
DEFAULT_LOGS_DATABASE = "2d7094338b1b80bf9e69fd78ecf57f44"

DEFAULT_SESSION_TEMPLATE = "2d7094338b1b8030a56fcca068c6f46c"

# Data source endpoints need the 2025-09 API
DEFAULT_NOTION_VERSION = "2025-09-03"


def load_env() -> None:
    """Load a .env file into the environment without overriding set vars."""
    load_dotenv(override=False)


def get_settings_path() -> Path:
    """Get path to the practice builder settings.json."""
    return PathResolver.settings_file()


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value by dot-notation key.

    Args:
        key: Dot-notation key like "practiceBuilder.sessionLabel"
        default: Default value if key not found

    Returns:
        Setting value or default
    """
    settings_path = get_settings_path()

    if not settings_path.exists():
        return default

    try:
        with open(settings_path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        return default

    parts = key.split(".")
    current = data
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]

    return current


def get_int_setting(key: str, default: int = 0) -> int:
    """Get an integer setting, falling back to default if conversion fails."""
    value = get_setting(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_float_setting(key: str, default: float = 0.0) -> float:
    """Get a float setting, falling back to default if conversion fails."""
    value = get_setting(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _resolve(env_var: str, setting: str, default: Optional[str]) -> Optional[str]:
    """Resolve a string option from env var, then settings file, then default."""
    value = os.environ.get(env_var)
    if value:
        return value
    value = get_setting(f"{SETTINGS_NAMESPACE}.{setting}")
    if isinstance(value, str) and value:
        return value
    return default


@dataclass
class Settings:
    """Resolved configuration for one run."""

    notion_api_key: Optional[str] = None
    notion_version: str = DEFAULT_NOTION_VERSION

    library_data_source: str = DEFAULT_LIBRARY_DATA_SOURCE
    sessions_data_source: str = DEFAULT_SESSIONS_DATA_SOURCE
    logs_data_source: str = DEFAULT_LOGS_DATA_SOURCE

    library_database: str = DEFAULT_LIBRARY_DATABASE
    sessions_database: str = DEFAULT_SESSIONS_DATABASE
    logs_database: str = DEFAULT_LOGS_DATABASE

    session_template: Optional[str] = DEFAULT_SESSION_TEMPLATE

    session_label: str = DEFAULT_SESSION_LABEL
    default_planned_minutes: int = DEFAULT_PLANNED_MINUTES
    status_message_seconds: float = 2.0
    timer_tick_seconds: float = 0.1

    @classmethod
    def load(cls) -> "Settings":
        """Build settings from .env, environment and the settings file."""
        load_env()
        ns = SETTINGS_NAMESPACE
        template = _resolve(
            "PRACTICE_SESSION_TEMPLATE", "sessionTemplate", DEFAULT_SESSION_TEMPLATE
        )
        return cls(
            notion_api_key=_resolve("NOTION_API_KEY", "notionApiKey", None),
            notion_version=_resolve(
                "NOTION_VERSION", "notionVersion", DEFAULT_NOTION_VERSION
            ),
            library_data_source=_resolve(
                "PRACTICE_LIBRARY_DATA_SOURCE", "libraryDataSource",
                DEFAULT_LIBRARY_DATA_SOURCE,
            ),
            sessions_data_source=_resolve(
                "PRACTICE_SESSIONS_DATA_SOURCE", "sessionsDataSource",
                DEFAULT_SESSIONS_DATA_SOURCE,
            ),
            logs_data_source=_resolve(
                "PRACTICE_LOGS_DATA_SOURCE", "logsDataSource",
                DEFAULT_LOGS_DATA_SOURCE,
            ),
            library_database=_resolve(
                "PRACTICE_LIBRARY_DATABASE", "libraryDatabase",
                DEFAULT_LIBRARY_DATABASE,
            ),
            sessions_database=_resolve(
                "PRACTICE_SESSIONS_DATABASE", "sessionsDatabase",
                DEFAULT_SESSIONS_DATABASE,
            ),
            logs_database=_resolve(
                "PRACTICE_LOGS_DATABASE", "logsDatabase", DEFAULT_LOGS_DATABASE
            ),
            session_template=template,
            session_label=_resolve("PRACTICE_SESSION_LABEL", "sessionLabel",
                                   DEFAULT_SESSION_LABEL),
            default_planned_minutes=max(
                1, get_int_setting(f"{ns}.defaultPlannedMinutes", DEFAULT_PLANNED_MINUTES)
            ),
            status_message_seconds=get_float_setting(f"{ns}.statusMessageSeconds", 2.0),
            timer_tick_seconds=get_float_setting(f"{ns}.timerTickSeconds", 0.1),
        )

    def require_api_key(self) -> str:
        """Return the Notion API key or raise ConfigurationError."""
        if not self.notion_api_key:
            raise ConfigurationError("NOTION_API_KEY environment variable not set")
        return self.notion_api_key
