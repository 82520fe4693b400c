#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Command line entry point for Practice Builder.

Usage:
    practice-builder                # Full TUI mode
    practice-builder --summary      # One-shot text summary (no TUI)
    practice-builder --version
"""

import argparse
import sys
from typing import List, Optional

try:
    from practice._version import __version__
    from practice.config import Settings, load_env
    from practice.debug_logger import get_logger
    from practice.errors import ConfigurationError, RemoteOperationError
except ImportError:
    from _version import __version__
    from config import Settings, load_env
    from debug_logger import get_logger
    from errors import ConfigurationError, RemoteOperationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="practice-builder",
        description="Practice Builder - compose and time practice sessions",
    )
    parser.add_argument(
        "--version", action="version", version=f"practice-builder {__version__}"
    )
    parser.add_argument(
        "--summary", action="store_true", help="One-shot text summary (no TUI)"
    )
    parser.add_argument(
        "--lines", "-n", type=int, default=10, help="Rows per section for --summary"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    load_env()
    settings = Settings.load()
    mode = "summary" if args.summary else "tui"
    get_logger().app_start(__version__, mode)

    try:
        from practice.notion_store import NotionSessionStore
    except ImportError:
        from notion_store import NotionSessionStore

    try:
        store = NotionSessionStore(settings)
    except ConfigurationError as e:
        get_logger().error("startup", str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.summary:
        try:
            from practice.tui.formatting import format_summary
        except ImportError:
            from tui.formatting import format_summary
        try:
            items = store.list_catalog_items()
            sessions = store.list_sessions()
        except RemoteOperationError as e:
            get_logger().error("summary", str(e))
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(format_summary(items, sessions, limit=args.lines))
        return 0

    try:
        from practice.tui.app import PracticeBuilderApp
    except ImportError:
        try:
            from tui.app import PracticeBuilderApp
        except ImportError as e:
            print(f"Error: TUI requires textual package: {e}", file=sys.stderr)
            print("Install with: pip install textual", file=sys.stderr)
            return 1
    app = PracticeBuilderApp(store, settings=settings)
    app.run()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
