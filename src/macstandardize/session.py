from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from macstandardize.commands import CommandRunner, check
from macstandardize.errors import CommandError, NoConsoleUser

# scutil reports this name while the login window owns the console
LOGINWINDOW = "loginwindow"


@dataclass(frozen=True)
class SessionContext:
    username: str
    uid: int
    home: str

    @property
    def dock_plist(self) -> str:
        return f"{self.home.rstrip('/')}/Library/Preferences/com.apple.dock.plist"


def parse_console_user(scutil_output: str) -> str:
    for line in scutil_output.splitlines():
        parts = line.split()
        # "  Name : alice"
        if len(parts) >= 3 and parts[0] == "Name" and parts[1] == ":":
            return parts[2]
    return ""


def parse_home_directory(dscl_output: str) -> str:
    # dscl wraps long values onto the next line, so split once and strip
    text = dscl_output.strip()
    if ":" not in text:
        return ""
    return text.split(":", 1)[1].strip()


class DirectoryService:
    """Read-only identity lookups: scutil, id and dscl."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def console_user(self) -> str:
        output = check(self.runner, ["scutil"], input_text="show State:/Users/ConsoleUser\n")
        return parse_console_user(output)

    def user_id(self, username: str) -> int:
        output = check(self.runner, ["id", "-u", username])
        try:
            return int(output)
        except ValueError as exc:
            raise CommandError(["id", "-u", username], 1, f"unexpected uid {output!r}") from exc

    def home_directory(self, username: str) -> str:
        argv = ["dscl", ".", "-read", f"/Users/{username}", "NFSHomeDirectory"]
        home = parse_home_directory(check(self.runner, argv))
        if not home:
            raise CommandError(argv, 1, "no NFSHomeDirectory in dscl output")
        return home


def resolve_session(directory: DirectoryService) -> SessionContext:
    username = directory.console_user()
    if not username or username == LOGINWINDOW:
        raise NoConsoleUser("❌ No user logged in. Exiting...")
    uid = directory.user_id(username)
    home = directory.home_directory(username)
    return SessionContext(username=username, uid=uid, home=home)


class UserBridge:
    """Run commands as the console user from a root context.

    `launchctl asuser` moves the child into the user's bootstrap namespace so
    GUI-facing services (cfprefsd, Dock) see the change; `sudo -u` drops the
    identity itself. Either alone is not enough.
    """

    def __init__(self, runner: CommandRunner, session: SessionContext) -> None:
        self.runner = runner
        self.session = session

    def argv(self, command: Sequence[str]) -> list[str]:
        return [
            "launchctl",
            "asuser",
            str(self.session.uid),
            "sudo",
            "-u",
            self.session.username,
            *command,
        ]

    def run(self, command: Sequence[str]) -> str:
        return check(self.runner, self.argv(command))
