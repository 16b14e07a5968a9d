from __future__ import annotations

import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from macstandardize.errors import DockTimeout
from macstandardize.logging_config import get_logger
from macstandardize.tools import DockUtil, ProcessControl

logger = get_logger("dock")

DOCK_PROCESS = "Dock"


@dataclass
class DockOutcome:
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def wait_for_dock(
    processes: ProcessControl,
    timeout: float = 300.0,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> float:
    """Poll until the Dock process exists. Returns the seconds spent waiting."""
    start = clock()
    while not processes.is_running(DOCK_PROCESS):
        waited = clock() - start
        if waited >= timeout:
            logger.error("❌ Dock did not start within %s seconds.", int(timeout))
            raise DockTimeout(f"Dock not running after {waited:.0f}s")
        sleep(interval)
    return clock() - start


def reconfigure_dock(
    manifest: Sequence[str],
    dockutil: DockUtil,
    processes: ProcessControl,
    exists: Callable[[str], bool] = os.path.exists,
) -> DockOutcome:
    """Replace the user's Dock with the manifest, in order, then restart the Dock once."""
    outcome = DockOutcome()
    dockutil.remove_all(restart=False)
    for app in manifest:
        if not exists(app):
            logger.warning("⚠️ App not found, skipping: %s", app)
            outcome.skipped.append(app)
            continue
        dockutil.add(app, restart=False)
        logger.info("➕ Added to Dock: %s", app)
        outcome.added.append(app)

    processes.kill(DOCK_PROCESS)
    logger.info("✅ Dock configuration complete.")
    return outcome
