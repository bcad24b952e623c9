"""bindery abi command - show the runtime's native module ABI version."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError as PydanticValidationError

from bindery.cli.errors import (
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    handle_bindery_error,
    handle_validation_error,
)
from bindery.config import ProvisionSettings
from bindery.errors import ManifestError, VersionResolutionError


@click.command()
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
def abi(project_dir: Path | None, runtime_version: str | None) -> None:
    """Print the native module ABI version for the project's Electron.

    Examples:

        bindery abi

        bindery abi --runtime-version 28.1.0
    """
    from bindery.manifest import read_manifest_versions
    from bindery.versions import resolve_abi_version

    overrides: dict[str, Any] = {}
    if project_dir is not None:
        overrides["project_dir"] = project_dir
    try:
        settings = ProvisionSettings(**overrides)
    except PydanticValidationError as e:
        handle_validation_error(e, "environment")

    try:
        if runtime_version is None:
            runtime_version = read_manifest_versions(
                settings.manifest_path,
                runtime_package=settings.runtime_package,
                binding_package=settings.module_name,
            ).runtime_version
        abi_version = resolve_abi_version(
            runtime_version,
            releases_url=settings.releases_url,
            timeout=settings.metadata_timeout_seconds,
        )
    except VersionResolutionError as e:
        handle_bindery_error(e, EXIT_USER_ERROR)
    except ManifestError as e:
        handle_bindery_error(e, EXIT_SYSTEM_ERROR)

    click.echo(abi_version)
