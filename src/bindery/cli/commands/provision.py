"""bindery provision command - install ABI-matched native bindings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError as PydanticValidationError

from bindery.cli import output
from bindery.cli.errors import (
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    handle_bindery_error,
    handle_validation_error,
)
from bindery.config import ProvisionSettings, skip_requested
from bindery.errors import ManifestError, VersionResolutionError

ARCH_FLAGS: tuple[str, ...] = ("x64", "arm64", "arm")
"""Architecture flags in processing order."""


@dataclass
class ProvisionOptions:
    """Grouped provision CLI options."""

    x64: bool
    arm64: bool
    arm: bool
    project_dir: Path | None
    runtime_version: str | None
    binding_version: str | None
    output_format: str

    @property
    def requested_arches(self) -> list[str]:
        flags = {"x64": self.x64, "arm64": self.arm64, "arm": self.arm}
        return [arch for arch in ARCH_FLAGS if flags[arch]]


def _load_settings(opts: ProvisionOptions) -> ProvisionSettings:
    """Build settings from the environment plus CLI overrides."""
    overrides: dict[str, Any] = {}
    if opts.project_dir is not None:
        overrides["project_dir"] = opts.project_dir
    try:
        return ProvisionSettings(**overrides)
    except PydanticValidationError as e:
        handle_validation_error(e, "environment")


def _run_provisioning(opts: ProvisionOptions, settings: ProvisionSettings) -> None:
    """Provision the requested targets and display the results."""
    from bindery.provisioner import provision as run_provision
    from bindery.report import print_result

    table = opts.output_format == "table"
    if table:
        output.info(f"projectDir={settings.project_root}")
        output.info(f"binDir={settings.output_path}")

    try:
        result = run_provision(
            settings,
            opts.requested_arches,
            runtime_version=opts.runtime_version,
            binding_version=opts.binding_version,
        )
    except VersionResolutionError as e:
        handle_bindery_error(e, EXIT_USER_ERROR)
    except ManifestError as e:
        handle_bindery_error(e, EXIT_SYSTEM_ERROR)

    print_result(result, output_format=opts.output_format, console=output.console)

    if not table:
        return
    if result.failed_count:
        output.warning(
            f"{result.failed_count} of {len(result.targets)} target(s) were not provisioned"
        )
    else:
        output.success(f"Provisioned {result.succeeded_count} target(s)")


@click.command()
@click.option("--x64", "x64", is_flag=True, default=False, help="Provision the x64 binding")
@click.option("--arm64", "arm64", is_flag=True, default=False, help="Provision the arm64 binding")
@click.option("--arm", "arm", is_flag=True, default=False, help="Provision the arm binding")
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root containing package.json [default: current directory]",
)
@click.option(
    "--runtime-version",
    default=None,
    help="Electron version [default: devDependencies.electron]",
)
@click.option(
    "--binding-version",
    default=None,
    help="better-sqlite3 version [default: dependencies.better-sqlite3]",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format [default: table]",
)
def provision(
    x64: bool,
    arm64: bool,
    arm: bool,
    project_dir: Path | None,
    runtime_version: str | None,
    binding_version: str | None,
    output_format: str,
) -> None:
    """Provision native better-sqlite3 bindings for Electron.

    Downloads a prebuilt binding matching the Electron ABI, or rebuilds it
    locally when no prebuilt binding is available. Without architecture flags
    the host architecture is provisioned. Individual target failures are
    reported but do not change the exit status.

    Examples:

        bindery provision

        bindery provision --x64 --arm64

        SKIP_REBUILD=true bindery provision
    """
    opts = ProvisionOptions(
        x64=x64,
        arm64=arm64,
        arm=arm,
        project_dir=project_dir,
        runtime_version=runtime_version,
        binding_version=binding_version,
        output_format=output_format,
    )

    if skip_requested():
        if output_format == "table":
            output.info("SKIP_REBUILD is set, skipping provisioning.")
        return

    _run_provisioning(opts, _load_settings(opts))
