"""Provisioning result formatters.

Rich table and JSON output for provisioning runs.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bindery.models import ProvisionResult, StageOutcome, TargetResult


def _outcome_icon(outcome: StageOutcome) -> str:
    icons = {
        StageOutcome.DOWNLOADED: "↓",
        StageOutcome.BUILT: "⚙",
        StageOutcome.FAILED: "✗",
    }
    return icons.get(outcome, "?")


def _outcome_color(outcome: StageOutcome) -> str:
    colors = {
        StageOutcome.DOWNLOADED: "green",
        StageOutcome.BUILT: "green",
        StageOutcome.FAILED: "red",
    }
    return colors.get(outcome, "white")


def format_result_table(result: ProvisionResult, console: Console | None = None) -> None:
    """Format a provisioning result as a Rich table.

    Args:
        result: ProvisionResult to display
        console: Optional Rich console (creates one if not provided)
    """
    if console is None:
        console = Console()

    versions = result.versions
    header_text = Text()
    header_text.append("Runtime ", style="bold")
    header_text.append(f"{versions.runtime_version} (ABI {versions.abi_version})")
    header_text.append("\nBinding ", style="bold")
    header_text.append(versions.binding_version)
    header_text.append(
        f"\nTargets: {result.succeeded_count} provisioned, {result.failed_count} failed"
    )
    if result.total_duration_ms > 0:
        header_text.append(f"\nDuration: {result.total_duration_ms}ms")

    console.print(Panel(header_text, title="[bold]Native Binding Provisioning[/bold]"))

    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=2, justify="center")
    table.add_column("Target", min_width=14)
    table.add_column("Outcome", min_width=10)
    table.add_column("Artifact / Reason", min_width=30)
    table.add_column("Duration", justify="right", width=10)

    for target in result.targets:
        color = _outcome_color(target.outcome)
        outcome = target.outcome.value
        if target.failure_kind is not None:
            outcome = f"{outcome} ({target.failure_kind.value})"
        artifact = str(target.artifact_path) if target.artifact_path else target.message
        duration = f"{target.duration_ms}ms" if target.duration_ms > 0 else "-"

        table.add_row(
            _outcome_icon(target.outcome),
            Text(target.target.label, style=color),
            Text(outcome, style=color),
            Text(artifact or "-"),
            duration,
        )

    console.print(table)

    failed = [t for t in result.targets if t.failed]
    if failed:
        console.print()
        console.print("[bold red]Failed Target Details:[/bold red]")
        for target in failed:
            console.print(f"  [red]• {target.target.label}[/red]: {target.message}")
            for key, value in target.details.items():
                console.print(f"    {key}: {value}", style="dim")


def format_result_json(result: ProvisionResult, pretty: bool = True) -> str:
    """Format a provisioning result as JSON.

    Args:
        result: ProvisionResult to format
        pretty: Whether to use indentation

    Returns:
        JSON string representation
    """
    data = _result_to_dict(result)
    if pretty:
        return json.dumps(data, indent=2, default=str)
    return json.dumps(data, default=str)


def _result_to_dict(result: ProvisionResult) -> dict[str, Any]:
    return {
        "versions": result.versions.model_dump(),
        "summary": {
            "total": len(result.targets),
            "provisioned": result.succeeded_count,
            "failed": result.failed_count,
        },
        "duration_ms": result.total_duration_ms,
        "started_at": result.started_at.isoformat() if result.started_at else None,
        "finished_at": result.finished_at.isoformat() if result.finished_at else None,
        "targets": [_target_to_dict(target) for target in result.targets],
    }


def _target_to_dict(target: TargetResult) -> dict[str, Any]:
    return {
        "platform": target.target.platform,
        "arch": target.target.arch,
        "outcome": target.outcome.value,
        "stage": target.stage,
        "failure_kind": target.failure_kind.value if target.failure_kind else None,
        "message": target.message,
        "artifact": str(target.artifact_path) if target.artifact_path else None,
        "details": target.details,
        "duration_ms": target.duration_ms,
    }


def print_result(
    result: ProvisionResult,
    output_format: str = "table",
    console: Console | None = None,
) -> None:
    """Print a provisioning result in the requested format.

    Args:
        result: ProvisionResult to display
        output_format: Output format ("table" or "json")
        console: Optional Rich console
    """
    if console is None:
        console = Console()

    if output_format == "json":
        # Raw JSON keeps the output parseable
        json_str = format_result_json(result, pretty=True)
        if console.file is not None:
            console.file.write(json_str + "\n")
        else:
            print(json_str)
    else:
        format_result_table(result, console)
