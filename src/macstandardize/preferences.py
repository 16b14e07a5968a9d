from __future__ import annotations

from collections.abc import Iterable

from macstandardize.config import PreferenceDirective
from macstandardize.logging_config import get_logger
from macstandardize.session import UserBridge
from macstandardize.tools import PreferenceStore, ProcessControl

logger = get_logger("preferences")


def apply_preferences(
    directives: Iterable[PreferenceDirective],
    store: PreferenceStore,
    bridge: UserBridge,
    processes: ProcessControl,
) -> int:
    """Write every directive in order, unconditionally. Returns the number written.

    Failures are not caught here: the first failing write aborts the run.
    """
    count = 0
    for directive in directives:
        if directive.ensure_directory:
            target = directive.cli_value(bridge.session.home)
            bridge.run(["mkdir", "-p", target])
        store.write(directive)
        logger.debug("defaults write %s %s (%s)", directive.domain, directive.key, directive.scope)
        count += 1
        if directive.restart:
            processes.restart_best_effort(directive.restart)
    return count
