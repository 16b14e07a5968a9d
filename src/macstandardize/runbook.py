from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from macstandardize.commands import CommandRunner
from macstandardize.config import StandardizeConfig
from macstandardize.dock import reconfigure_dock, wait_for_dock
from macstandardize.errors import FailureKind, NoConsoleUser, NotRoot, StandardizeError
from macstandardize.logging_config import get_logger
from macstandardize.preferences import apply_preferences
from macstandardize.provision import ensure_dockutil, is_executable
from macstandardize.session import (
    DirectoryService,
    SessionContext,
    UserBridge,
    resolve_session,
)
from macstandardize.tools import (
    DockUtil,
    EnrollmentStatus,
    Gatekeeper,
    Installer,
    PreferenceStore,
    ProcessControl,
)

logger = get_logger("runbook")


@dataclass
class PhaseResult:
    name: str
    ok: bool
    detail: str = ""
    kind: FailureKind | None = None
    exit_code: int = 0


@dataclass
class RunReport:
    script_version: str
    started_at: str
    username: str | None = None
    elapsed_seconds: int = 0
    phases: list[PhaseResult] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(phase.ok for phase in self.phases)

    @property
    def failed_phase(self) -> PhaseResult | None:
        for phase in self.phases:
            if not phase.ok:
                return phase
        return None

    @property
    def exit_code(self) -> int:
        failed = self.failed_phase
        return failed.exit_code if failed else 0


@dataclass
class Probes:
    """Filesystem and process facts the runbook reads directly."""

    executable: Callable[[str], bool] = is_executable
    file_exists: Callable[[str], bool] = os.path.isfile
    path_exists: Callable[[str], bool] = os.path.exists
    euid: Callable[[], int] = os.geteuid
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic


class Runbook:
    """Sequential phases; the first failure stops the run and nothing is rolled back."""

    def __init__(
        self,
        config: StandardizeConfig,
        runner: CommandRunner,
        probes: Probes | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.probes = probes or Probes()
        self.processes = ProcessControl(runner)
        self.session: SessionContext | None = None
        self.bridge: UserBridge | None = None
        self.report = RunReport(
            script_version=config.script_version,
            started_at=datetime.now(tz=timezone.utc).isoformat(),
        )

    def phases(self) -> list[tuple[str, Callable[[], str]]]:
        return [
            ("preflight", self.preflight),
            ("session", self.resolve_user),
            ("dependencies", self.provision),
            ("preferences", self.apply_preferences),
            ("dock", self.configure_dock),
        ]

    def run(self) -> RunReport:
        start = self.probes.clock()
        for name, phase in self.phases():
            try:
                detail = phase()
            except StandardizeError as exc:
                if exc.kind is FailureKind.COMMAND_FAILED:
                    logger.error("❌ %s", exc.message)
                self.report.phases.append(
                    PhaseResult(name, False, exc.message, exc.kind, exc.exit_code)
                )
                break
            self.report.phases.append(PhaseResult(name, True, detail))

        self.report.elapsed_seconds = int(self.probes.clock() - start)
        if self.report.ok:
            logger.info("✅ Standardization complete for %s", self.report.username)
            logger.info("🕒 Script completed in %s seconds.", self.report.elapsed_seconds)
        return self.report

    def preflight(self) -> str:
        if self.config.require_root and self.probes.euid() != 0:
            logger.error("❌ This script must run as root. Exiting...")
            raise NotRoot("must run as root")

        enrolled = EnrollmentStatus(self.runner).query()
        if enrolled:
            logger.info("✅ Device is DEP-enrolled.")
        else:
            logger.info("⚠️ Device is NOT enrolled via DEP. Proceeding with caution.")
        logger.info("Running Standardize script version %s...", self.config.script_version)
        return "dep-enrolled" if enrolled else "not dep-enrolled"

    def resolve_user(self) -> str:
        try:
            self.session = resolve_session(DirectoryService(self.runner))
        except NoConsoleUser as exc:
            logger.error(exc.message)
            raise
        self.bridge = UserBridge(self.runner, self.session)
        self.report.username = self.session.username
        logger.info("👤 Logged-in user: %s", self.session.username)
        return self.session.username

    def provision(self) -> str:
        installer = Installer(self.runner, self.config.installer_path, self.config.installer_args)
        state = ensure_dockutil(
            self.config.dockutil_path,
            installer,
            label=self.config.installer_label,
            executable=self.probes.executable,
            exists=self.probes.file_exists,
        )
        return state.value

    def _user_bridge(self) -> UserBridge:
        if self.bridge is None:
            raise StandardizeError("console user session has not been resolved")
        return self.bridge

    def apply_preferences(self) -> str:
        bridge = self._user_bridge()
        logger.info("⚙️ Applying Finder and System preferences...")
        store = PreferenceStore(self.runner, bridge)
        count = apply_preferences(self.config.preferences, store, bridge, self.processes)
        if self.config.enable_gatekeeper:
            Gatekeeper(self.runner).enable()
        return f"{count} preference(s) written"

    def configure_dock(self) -> str:
        bridge = self._user_bridge()
        logger.info("🧼 Cleaning and configuring Dock...")
        wait_for_dock(
            self.processes,
            timeout=self.config.dock_wait_timeout,
            interval=self.config.dock_poll_interval,
            sleep=self.probes.sleep,
            clock=self.probes.clock,
        )
        store = PreferenceStore(self.runner, bridge)
        apply_preferences(self.config.dock_preferences, store, bridge, self.processes)

        dockutil = DockUtil(self.config.dockutil_path, bridge)
        outcome = reconfigure_dock(
            self.config.manifest,
            dockutil,
            self.processes,
            exists=self.probes.path_exists,
        )
        self.report.added = outcome.added
        self.report.skipped = outcome.skipped
        return f"{len(outcome.added)} added, {len(outcome.skipped)} skipped"
