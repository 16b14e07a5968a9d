from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from macstandardize.commands import CommandResult
from macstandardize.config import StandardizeConfig
from macstandardize.logging_config import setup_logging
from macstandardize.runbook import Probes, Runbook

DOCKUTIL = "/usr/local/bin/dockutil"
INSTALLER = "/Library/Management/AppAutoPatch/Installomator/Installomator.sh"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeMac:
    """Simulates the handful of macOS utilities the runbook drives."""

    dockutil_path = DOCKUTIL
    installer_path = INSTALLER

    def __init__(self) -> None:
        self.console_user = "alice"
        self.uid = "501"
        self.home = "/Users/alice"
        self.dep_enrolled = True
        self.euid = 0
        self.executables: set[str] = {DOCKUTIL}
        self.files: set[str] = {INSTALLER}
        self.apps: set[str] = {
            "/Applications/Self Service.app",
            "/System/Applications/Launchpad.app",
            "/Applications/Safari.app",
        }
        self.install_succeeds = True
        self.dock_starts_after = 0
        self.systemuiserver_running = False
        self.prefs: dict[tuple[str, str, str], str] = {}
        self.dirs: set[str] = set()
        self.dock: dict[str, list[str]] = {}
        self.dock_restarts = 0
        self.gatekeeper_enabled = False
        self.failures: dict[tuple[str, ...], int] = {}
        self.calls: list[list[str]] = []
        self.clock = FakeClock()
        self._pgrep_calls = 0

    @property
    def dock_plist(self) -> str:
        return f"{self.home}/Library/Preferences/com.apple.dock.plist"

    def fail(self, *prefix: str, code: int = 1) -> None:
        self.failures[tuple(prefix)] = code

    def probes(self) -> Probes:
        return Probes(
            executable=lambda path: path in self.executables,
            file_exists=lambda path: path in self.files,
            path_exists=lambda path: path in self.apps,
            euid=lambda: self.euid,
            sleep=self.clock.sleep,
            clock=self.clock,
        )

    def user_commands(self) -> list[list[str]]:
        prefix = ["launchctl", "asuser", self.uid, "sudo", "-u", self.console_user]
        return [call[len(prefix) :] for call in self.calls if call[: len(prefix)] == prefix]

    def run(self, argv: Sequence[str], input_text: str | None = None) -> CommandResult:
        cmd = [str(part) for part in argv]
        self.calls.append(cmd)
        for prefix, code in self.failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return CommandResult(cmd, code, "", "simulated failure")
        return self._dispatch(cmd, cmd, input_text, as_user=False)

    def _ok(self, cmd: list[str], stdout: str = "") -> CommandResult:
        return CommandResult(cmd, 0, stdout, "")

    def _dispatch(
        self, full: list[str], cmd: list[str], input_text: str | None, as_user: bool
    ) -> CommandResult:
        name = cmd[0]
        if name == "scutil":
            assert input_text is not None and "State:/Users/ConsoleUser" in input_text
            if not self.console_user:
                return self._ok(full, "<dictionary> {\n}\n")
            listing = f"<dictionary> {{\n  Name : {self.console_user}\n  UID : {self.uid}\n}}\n"
            return self._ok(full, listing)
        if name == "id":
            return self._ok(full, f"{self.uid}\n")
        if name == "dscl":
            return self._ok(full, f"NFSHomeDirectory: {self.home}\n")
        if name == "profiles":
            answer = "Yes" if self.dep_enrolled else "No"
            return self._ok(full, f"Enrolled via DEP: {answer}\nMDM enrollment: Yes\n")
        if name == "pgrep":
            self._pgrep_calls += 1
            running = self._pgrep_calls > self.dock_starts_after
            return CommandResult(full, 0 if running else 1, "", "")
        if name == "killall":
            if cmd[1] == "Dock":
                self.dock_restarts += 1
                return self._ok(full)
            return CommandResult(full, 0 if self.systemuiserver_running else 1, "", "")
        if name == "spctl":
            self.gatekeeper_enabled = True
            return self._ok(full)
        if name == "launchctl":
            assert cmd[1] == "asuser" and cmd[3] == "sudo" and cmd[4] == "-u"
            return self._dispatch(full, cmd[6:], input_text, as_user=True)
        if name == "defaults":
            _, _, domain, key, _flag, value = cmd
            if domain.startswith("/Library/Preferences/"):
                scope, domain = "system", domain.rsplit("/", 1)[1]
            else:
                assert as_user, "per-user defaults must be written through the bridge"
                scope = "user"
            self.prefs[(scope, domain, key)] = value
            return self._ok(full)
        if name == "mkdir":
            self.dirs.add(cmd[-1])
            return self._ok(full)
        if name == DOCKUTIL:
            assert as_user, "dockutil must run as the console user"
            assert "--no-restart" in cmd
            plist = cmd[-1]
            if cmd[1] == "--remove":
                self.dock[plist] = []
            else:
                self.dock.setdefault(plist, []).append(cmd[2])
            return self._ok(full)
        if name == INSTALLER:
            if self.install_succeeds:
                self.executables.add(DOCKUTIL)
                return self._ok(full)
            return CommandResult(full, 1, "", "download failed")
        return CommandResult(full, 127, "", f"{name}: command not found")


@pytest.fixture()
def mac() -> FakeMac:
    return FakeMac()


@pytest.fixture()
def config() -> StandardizeConfig:
    return StandardizeConfig()


@pytest.fixture(autouse=True)
def log_file(tmp_path: Path) -> Path:
    path = tmp_path / "logs" / "standardize.log"
    setup_logging("Standardize-macOS", path)
    return path


@pytest.fixture()
def runbook(mac: FakeMac, config: StandardizeConfig, log_file: Path) -> Runbook:
    return Runbook(config, mac, mac.probes())
