# SPDX-License-Identifier: MIT
"""Centralized path resolution for Practice Builder.

All path resolution should go through this module to ensure consistency.
"""
import os
from pathlib import Path


class PathResolver:
    """Resolves paths for Practice Builder components."""

    @staticmethod
    def config_dir() -> Path:
        """Get the directory holding settings.json.

        Resolution order:
        1. PRACTICE_BUILDER_CONFIG env var
        2. XDG_CONFIG_HOME/practice-builder
        3. ~/.config/practice-builder
        """
        base = os.environ.get("PRACTICE_BUILDER_CONFIG")
        if base:
            return Path(base)
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "practice-builder"
        return Path.home() / ".config" / "practice-builder"

    @staticmethod
    def settings_file() -> Path:
        """Get the settings file path, respecting PRACTICE_BUILDER_SETTINGS."""
        custom = os.environ.get("PRACTICE_BUILDER_SETTINGS")
        if custom:
            return Path(custom)
        return PathResolver.config_dir() / "settings.json"

    @staticmethod
    def state_dir() -> Path:
        """Get the state directory for mutable data (debug log).

        Resolution order:
        1. PRACTICE_BUILDER_STATE env var
        2. XDG_STATE_HOME/practice-builder
        3. ~/.local/state/practice-builder
        """
        state = os.environ.get("PRACTICE_BUILDER_STATE")
        if state:
            return Path(state)
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            return Path(xdg_state) / "practice-builder"
        return Path.home() / ".local" / "state" / "practice-builder"

    @staticmethod
    def debug_log() -> Path:
        return PathResolver.state_dir() / "debug.log"
