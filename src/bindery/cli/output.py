"""Console output for the bindery CLI.

Status lines go through one module-level rich Console so ``--no-color``
can swap it. Rich already honours NO_COLOR.
"""

from __future__ import annotations

from rich.console import Console

_MARKERS: dict[str, str] = {
    "success": "[green]✓[/green]",
    "error": "[red]✗[/red]",
    "warning": "[yellow]⚠[/yellow]",
}


def create_console(no_color: bool = False) -> Console:
    """Return a console; ``no_color`` also disables terminal styling."""
    if no_color:
        return Console(force_terminal=False, no_color=True)
    return Console()


console = create_console()


def _status(kind: str, message: str) -> None:
    console.print(f"{_MARKERS[kind]} {message}")


def success(message: str) -> None:
    """Print ``✓ message``, e.g. after all targets were provisioned."""
    _status("success", message)


def error(message: str) -> None:
    """Print ``✗ message`` for fatal errors."""
    _status("error", message)


def warning(message: str) -> None:
    """Print ``⚠ message`` when some targets were left unprovisioned."""
    _status("warning", message)


def info(message: str) -> None:
    """Print a cyan progress line such as ``binDir=...``."""
    console.print(message, style="cyan", highlight=False)


def set_no_color(no_color: bool) -> None:
    """Replace the module console (used by the --no-color flag)."""
    global console
    console = create_console(no_color=no_color)
