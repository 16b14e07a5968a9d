from __future__ import annotations

import os
from collections.abc import Callable
from enum import Enum

from macstandardize.errors import DockutilUnavailable
from macstandardize.logging_config import get_logger
from macstandardize.tools import Installer

logger = get_logger("provision")


class ProvisionState(str, Enum):
    PRESENT = "present"
    INSTALLED = "installed"


def is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def ensure_dockutil(
    dockutil_path: str,
    installer: Installer,
    label: str = "dockutil",
    executable: Callable[[str], bool] = is_executable,
    exists: Callable[[str], bool] = os.path.isfile,
) -> ProvisionState:
    """Make sure dockutil is on disk, installing it once through the installer if needed.

    There is a single install attempt; no version pinning and no retries.
    """
    if executable(dockutil_path):
        logger.info("✅ dockutil found at: %s", dockutil_path)
        return ProvisionState.PRESENT

    logger.info("📦 dockutil not found, attempting to install via Installomator...")
    if not exists(installer.path):
        logger.error("⚠️ Installomator not found. Cannot install dockutil. Exiting.")
        raise DockutilUnavailable(f"installer not found at {installer.path}")

    installer.install(label)
    if not executable(dockutil_path):
        logger.error("❌ dockutil still not found after install. Exiting.")
        raise DockutilUnavailable(f"dockutil missing at {dockutil_path} after install")

    logger.info("✅ dockutil found at: %s", dockutil_path)
    return ProvisionState.INSTALLED
