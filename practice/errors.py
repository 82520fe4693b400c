# SPDX-License-Identifier: MIT
"""Exception types for Practice Builder."""

from typing import Optional


class PracticeError(Exception):
    """Base class for all Practice Builder errors."""


class ConfigurationError(PracticeError):
    """Missing credentials or identifiers. Fatal at startup."""


class RemoteOperationError(PracticeError):
    """A store call failed (transport, authorization, or API error).

    Attributes:
        op: Name of the store operation that failed (e.g. "update_log")
        cause: The underlying exception, if any
    """

    def __init__(self, op: str, cause: Optional[BaseException] = None) -> None:
        self.op = op
        self.cause = cause
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(f"{op} failed: {detail}")
