from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from macstandardize.errors import CommandError


@dataclass
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(self, argv: Sequence[str], input_text: str | None = None) -> CommandResult: ...


class SubprocessRunner:
    """Run OS utilities with a fixed, explicit search path."""

    def __init__(self, search_paths: Sequence[str]) -> None:
        self.env = dict(os.environ)
        self.env["PATH"] = os.pathsep.join(search_paths)

    def run(self, argv: Sequence[str], input_text: str | None = None) -> CommandResult:
        cmd = [str(part) for part in argv]
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                text=True,
                capture_output=True,
                input=input_text,
                env=self.env,
            )
        except PermissionError as exc:
            # mirror the shell: 126 not executable, 127 not found
            return CommandResult(cmd, 126, "", str(exc))
        except OSError as exc:
            return CommandResult(cmd, 127, "", str(exc))
        return CommandResult(cmd, proc.returncode, proc.stdout, proc.stderr)


def check(runner: CommandRunner, argv: Sequence[str], input_text: str | None = None) -> str:
    """Run a command and raise CommandError unless it exits 0; returns stripped stdout."""
    result = runner.run(argv, input_text=input_text)
    if not result.ok:
        raise CommandError(result.argv, result.returncode, result.stderr)
    return result.stdout.strip()
