from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class FailureKind(str, Enum):
    NOT_ROOT = "not-root"
    NO_CONSOLE_USER = "no-console-user"
    DOCKUTIL_UNAVAILABLE = "dockutil-unavailable"
    DOCK_TIMEOUT = "dock-timeout"
    COMMAND_FAILED = "command-failed"


class StandardizeError(Exception):
    """Base error; every failure that stops a run is one of these."""

    kind: FailureKind = FailureKind.COMMAND_FAILED

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class NotRoot(StandardizeError):
    kind = FailureKind.NOT_ROOT


class NoConsoleUser(StandardizeError):
    kind = FailureKind.NO_CONSOLE_USER


class DockutilUnavailable(StandardizeError):
    kind = FailureKind.DOCKUTIL_UNAVAILABLE


class DockTimeout(StandardizeError):
    kind = FailureKind.DOCK_TIMEOUT


class CommandError(StandardizeError):
    kind = FailureKind.COMMAND_FAILED

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        detail = stderr.strip()
        message = f"command failed ({returncode}): {' '.join(argv)}"
        if detail:
            message = f"{message}: {detail}"
        # a negative code means the child was killed by a signal
        super().__init__(message, exit_code=returncode if returncode > 0 else 1)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
