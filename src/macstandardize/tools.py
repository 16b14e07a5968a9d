"""Narrow wrappers around the OS utilities the runbook drives.

Each wrapper owns exactly one utility's argv shape; everything goes through a
CommandRunner so the orchestration can be exercised against a fake Mac.
"""

from __future__ import annotations

from collections.abc import Sequence

from macstandardize.commands import CommandRunner, check
from macstandardize.config import DEFAULTS_TYPE_FLAGS, PreferenceDirective
from macstandardize.logging_config import get_logger
from macstandardize.session import UserBridge

logger = get_logger("tools")


class PreferenceStore:
    """`defaults write`, per user (through the bridge) or system-wide (as root)."""

    def __init__(self, runner: CommandRunner, bridge: UserBridge) -> None:
        self.runner = runner
        self.bridge = bridge

    def write(self, directive: PreferenceDirective) -> None:
        session = self.bridge.session
        value = directive.cli_value(session.home)
        flag = DEFAULTS_TYPE_FLAGS[directive.type]
        if directive.scope == "system":
            domain = f"/Library/Preferences/{directive.domain}"
            check(self.runner, ["defaults", "write", domain, directive.key, flag, value])
        else:
            self.bridge.run(["defaults", "write", directive.domain, directive.key, flag, value])


class DockUtil:
    def __init__(self, path: str, bridge: UserBridge) -> None:
        self.path = path
        self.bridge = bridge

    @property
    def plist(self) -> str:
        return self.bridge.session.dock_plist

    def remove_all(self, restart: bool = False) -> None:
        argv = [self.path, "--remove", "all"]
        if not restart:
            argv.append("--no-restart")
        self.bridge.run([*argv, self.plist])

    def add(self, app_path: str, restart: bool = False) -> None:
        argv = [self.path, "--add", app_path]
        if not restart:
            argv.append("--no-restart")
        self.bridge.run([*argv, self.plist])


class Installer:
    """Installomator-style installer: `<script> <label> [KEY=value ...]`."""

    def __init__(self, runner: CommandRunner, path: str, extra_args: Sequence[str] = ()) -> None:
        self.runner = runner
        self.path = path
        self.extra_args = list(extra_args)

    def install(self, label: str) -> bool:
        result = self.runner.run([self.path, label, *self.extra_args])
        if not result.ok:
            logger.warning("⚠️ Installer exited %s for %s.", result.returncode, label)
        return result.ok


class ProcessControl:
    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def is_running(self, name: str) -> bool:
        return self.runner.run(["pgrep", "-x", name]).ok

    def kill(self, name: str) -> None:
        check(self.runner, ["killall", name])

    def restart_best_effort(self, name: str) -> bool:
        # the process may legitimately not be running
        result = self.runner.run(["killall", name])
        if not result.ok:
            logger.debug("killall %s exited %s; ignoring.", name, result.returncode)
        return result.ok


class Gatekeeper:
    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def enable(self) -> None:
        check(self.runner, ["spctl", "--master-enable"])


class EnrollmentStatus:
    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def query(self) -> bool | None:
        """True/False for "Enrolled via DEP", None when the status could not be read."""
        result = self.runner.run(["profiles", "status", "-type", "enrollment"])
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            if "Enrolled via DEP" in line and ":" in line:
                return line.split(":", 1)[1].strip() == "Yes"
        return False


