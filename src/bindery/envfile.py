"""Environment record for the application bundler.

The record is a dotenv-style file at the project root holding one
``<prefix><arch>=<relative path>`` line. It is overwritten, not merged.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from bindery.errors import ArtifactFileError

logger = structlog.get_logger(__name__)


def env_key(prefix: str, arch: str) -> str:
    """Return the architecture-qualified variable name.

    Example:
        >>> env_key("VITE_BETTER_SQLITE3_BINDING_", "x64")
        'VITE_BETTER_SQLITE3_BINDING_x64'
    """
    return f"{prefix}{arch}"


def relative_artifact_path(artifact: Path, project_root: Path) -> str:
    """Express an artifact path relative to the project root.

    Forward slashes are used on every platform. Artifacts outside the
    project root keep their absolute path.
    """
    try:
        return artifact.relative_to(project_root).as_posix()
    except ValueError:
        return artifact.as_posix()


def write_env_record(env_path: Path, key: str, value: str) -> None:
    """Overwrite the environment record with a single assignment.

    Raises:
        ArtifactFileError: If the file cannot be written.
    """
    try:
        env_path.write_text(f"{key}={value}\n", encoding="utf-8")
    except OSError as e:
        raise ArtifactFileError(
            "Could not write environment record",
            step="record",
            internal_details=f"{env_path}: {e}",
        ) from e
    logger.info("env_record_written", path=str(env_path), key=key, value=value)
