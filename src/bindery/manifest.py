"""Version metadata from the project's package.json."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from bindery.errors import ManifestError

logger = structlog.get_logger(__name__)


class ManifestVersions(BaseModel):
    """Runtime and binding versions declared by the project.

    Attributes:
        runtime_version: Host runtime version with range markers removed
        binding_version: Binding library version with range markers removed
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    runtime_version: str = Field(..., min_length=1)
    binding_version: str = Field(..., min_length=1)


def clean_version(declared: str) -> str:
    """Strip caret range markers from a dependency version.

    Example:
        >>> clean_version("^28.1.0")
        '28.1.0'
    """
    return declared.replace("^", "").strip()


def _lookup(
    data: dict[str, Any],
    sections: tuple[str, ...],
    package: str,
    manifest_path: Path,
) -> str:
    for section in sections:
        deps = data.get(section) or {}
        if isinstance(deps, dict) and isinstance(deps.get(package), str):
            return clean_version(deps[package])
    raise ManifestError(
        f"Package '{package}' is not declared",
        manifest_path=str(manifest_path),
        field_path=f"{sections[0]}.{package}",
    )


def read_manifest_versions(
    manifest_path: Path,
    *,
    runtime_package: str = "electron",
    binding_package: str = "better-sqlite3",
) -> ManifestVersions:
    """Read the runtime and binding versions from package.json.

    The runtime is looked up in devDependencies first, the binding in
    dependencies first. Either falls back to the other section.

    Args:
        manifest_path: Path to package.json.
        runtime_package: Name of the runtime package.
        binding_package: Name of the native binding package.

    Returns:
        ManifestVersions with cleaned version strings.

    Raises:
        ManifestError: If the file is missing, unreadable, or lacks either entry.
    """
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ManifestError(
            "Project manifest not found",
            manifest_path=str(manifest_path),
        ) from None
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestError(
            "Project manifest could not be read",
            manifest_path=str(manifest_path),
            internal_details=str(e),
        ) from e

    if not isinstance(data, dict):
        raise ManifestError(
            "Project manifest is not a JSON object",
            manifest_path=str(manifest_path),
        )

    versions = ManifestVersions(
        runtime_version=_lookup(
            data, ("devDependencies", "dependencies"), runtime_package, manifest_path
        ),
        binding_version=_lookup(
            data, ("dependencies", "devDependencies"), binding_package, manifest_path
        ),
    )
    logger.debug(
        "manifest_read",
        path=str(manifest_path),
        runtime_version=versions.runtime_version,
        binding_version=versions.binding_version,
    )
    return versions
