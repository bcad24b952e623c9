"""CLI entry point for bindery.

Defines the main command group. Subcommands are loaded lazily so that
``bindery --help`` stays fast.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from bindery import __version__
from bindery.cli.output import set_no_color
from bindery.observability import configure_logging

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands lazily.

    Commands are only imported when actually invoked, not at import time.

    Attributes:
        lazy_subcommands: Mapping of command names to module paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"provision": "bindery.cli.commands.provision.provision"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_path = self.lazy_subcommands[cmd_name]
        module_name, attr_name = module_path.rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "provision": "bindery.cli.commands.provision.provision",
    "abi": "bindery.cli.commands.abi.abi",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="bindery")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Minimum log level.",
)
@click.option(
    "--json-logs",
    is_flag=True,
    default=False,
    help="Emit logs as JSON lines.",
)
def cli(log_level: str, json_logs: bool) -> None:
    """bindery - native SQLite binding provisioning for Electron apps.

    Makes sure a `better-sqlite3` binding compiled for your Electron ABI is
    present in `dist-native/` before the app is bundled.

    **Getting Started:**

    - `bindery provision` - Provision the binding for this machine
    - `bindery provision --x64 --arm64` - Provision several architectures
    - `bindery abi` - Show the ABI version of the project's Electron

    Set `SKIP_REBUILD=true` to skip provisioning entirely.
    """
    configure_logging(log_level=log_level, json_format=json_logs)


if __name__ == "__main__":
    cli()
