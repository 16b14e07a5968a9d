from pathlib import Path

from macstandardize.commands import SubprocessRunner
from macstandardize.config import StandardizeConfig
from macstandardize.errors import FailureKind
from macstandardize.runbook import Runbook


def _non_executable_script(tmp_path: Path) -> Path:
    script = tmp_path / "Installomator.sh"
    script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    script.chmod(0o644)
    return script


def test_non_executable_command_reports_126(tmp_path: Path) -> None:
    script = _non_executable_script(tmp_path)
    result = SubprocessRunner(["/usr/bin", "/bin"]).run([str(script), "dockutil"])
    assert result.returncode == 126
    assert not result.ok


def test_missing_command_reports_127(tmp_path: Path) -> None:
    result = SubprocessRunner(["/usr/bin", "/bin"]).run([str(tmp_path / "nope"), "dockutil"])
    assert result.returncode == 127


class InstallerOnDisk:
    """Sends the installer to the real filesystem and everything else to the fake Mac."""

    def __init__(self, mac, installer_path: str) -> None:
        self.mac = mac
        self.installer_path = installer_path
        self.real = SubprocessRunner(["/usr/bin", "/bin"])

    def run(self, argv, input_text=None):
        if argv[0] == self.installer_path:
            return self.real.run(argv, input_text=input_text)
        return self.mac.run(argv, input_text=input_text)


def test_unrunnable_installer_fails_dependency_phase(
    tmp_path: Path, mac, log_file: Path
) -> None:
    script = _non_executable_script(tmp_path)
    config = StandardizeConfig(
        installer_path=str(script), dockutil_path=str(tmp_path / "dockutil")
    )
    mac.executables.clear()
    mac.files.add(str(script))

    report = Runbook(config, InstallerOnDisk(mac, str(script)), mac.probes()).run()

    assert report.exit_code == 1
    assert report.failed_phase.name == "dependencies"
    assert report.failed_phase.kind is FailureKind.DOCKUTIL_UNAVAILABLE
    text = log_file.read_text(encoding="utf-8")
    assert "Installer exited 126 for dockutil" in text
    assert "dockutil still not found after install" in text
