from __future__ import annotations

import json
from io import StringIO
from typing import Any

from rich.console import Console
from rich.table import Table

from macstandardize.runbook import RunReport


def render_table(report: RunReport) -> str:
    table = Table(title=f"Standardize macOS {report.script_version}")
    table.add_column("Phase")
    table.add_column("Status")
    table.add_column("Detail")

    for phase in report.phases:
        status = "OK" if phase.ok else f"FAIL ({phase.kind.value if phase.kind else 'error'})"
        table.add_row(phase.name, status, phase.detail)

    console = Console(record=True, file=StringIO(), width=100)
    console.print(table)
    return console.export_text()


def report_payload(report: RunReport) -> dict[str, Any]:
    return {
        "script_version": report.script_version,
        "started_at": report.started_at,
        "username": report.username,
        "ok": report.ok,
        "exit_code": report.exit_code,
        "elapsed_seconds": report.elapsed_seconds,
        "phases": [
            {
                "name": phase.name,
                "ok": phase.ok,
                "detail": phase.detail,
                "kind": phase.kind.value if phase.kind else None,
                "exit_code": phase.exit_code,
            }
            for phase in report.phases
        ],
        "dock": {"added": report.added, "skipped": report.skipped},
    }


def render_json(report: RunReport) -> str:
    return json.dumps(report_payload(report), indent=2)
