# SPDX-License-Identifier: MIT
"""Practice Builder - compose practice sessions from a Notion library."""

from practice._version import __version__

__all__ = ["__version__"]
