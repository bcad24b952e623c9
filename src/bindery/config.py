"""Provisioning configuration models.

- ProvisionSettings: environment-driven settings (BINDERY_ prefix, plus the
  un-prefixed SKIP_REBUILD switch)
- RebuildConfig: immutable parameters for one rebuild toolchain invocation
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RELEASES_URL = "https://releases.electronjs.org/releases.json"
DEFAULT_ARTIFACT_URL_TEMPLATE = (
    "https://github.com/JoshuaWise/better-sqlite3/releases/download/"
    "v{binding_version}/"
    "better-sqlite3-v{binding_version}-electron-v{abi_version}-{platform}-{arch}.tar.gz"
)
DEFAULT_REBUILD_COMMAND = "npx --no-install electron-rebuild"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})
"""Case-insensitive strings accepted as 'set' for SKIP_REBUILD."""

SKIP_ENV_VAR = "SKIP_REBUILD"


def is_truthy(value: str | None) -> bool:
    """Return True if an environment value counts as set."""
    return value is not None and value.strip().lower() in TRUTHY_VALUES


def skip_requested(environ: Mapping[str, str] | None = None) -> bool:
    """Check the skip switch without loading any other setting.

    Example:
        >>> skip_requested({"SKIP_REBUILD": "true"})
        True
    """
    env = os.environ if environ is None else environ
    return is_truthy(env.get(SKIP_ENV_VAR))


class ProvisionSettings(BaseSettings):
    """Settings for a provisioning run.

    Loaded from environment variables with the BINDERY_ prefix. The skip
    switch keeps its conventional name, SKIP_REBUILD. No dotenv file is read:
    the project's .env is an output of this tool.

    Example:
        >>> # From environment
        >>> settings = ProvisionSettings()
        >>>
        >>> # Explicit
        >>> settings = ProvisionSettings(project_dir=Path("/work/app"))
        >>> settings.output_path
        PosixPath('/work/app/dist-native')
    """

    model_config = SettingsConfigDict(
        env_prefix="BINDERY_",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    skip_rebuild: bool = Field(
        default=False,
        validation_alias=SKIP_ENV_VAR,
        description="Skip provisioning entirely",
    )
    project_dir: Path = Field(
        default_factory=Path.cwd,
        description="Project root containing package.json",
    )
    manifest_file: Path = Field(
        default=Path("package.json"),
        description="Project manifest, relative to project_dir",
    )
    output_dir: Path = Field(
        default=Path("dist-native"),
        description="Artifact output directory, relative to project_dir",
    )
    tmp_dir: Path = Field(
        default=Path("tmp/better-sqlite3"),
        description="Download scratch directory, relative to project_dir",
    )
    env_file: Path = Field(
        default=Path(".env"),
        description="Environment record file, relative to project_dir",
    )
    releases_url: str = Field(
        default=DEFAULT_RELEASES_URL,
        description="Runtime release index (runtime version -> ABI version)",
    )
    artifact_url_template: str = Field(
        default=DEFAULT_ARTIFACT_URL_TEMPLATE,
        description="Prebuilt archive URL template",
    )
    metadata_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        le=600,
        description="Timeout for the release index request",
    )
    download_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout for archive downloads (None waits indefinitely)",
    )
    rebuild_command: str = Field(
        default=DEFAULT_REBUILD_COMMAND,
        description="Rebuild toolchain command line",
    )
    runtime_package: str = Field(
        default="electron",
        description="Runtime package name in devDependencies",
    )
    module_name: str = Field(
        default="better-sqlite3",
        description="Native module to provision",
    )
    binary_name: str = Field(
        default="better_sqlite3.node",
        description="File name of the compiled binding",
    )
    env_key_prefix: str = Field(
        default="VITE_BETTER_SQLITE3_BINDING_",
        description="Prefix of the architecture-qualified record key",
    )

    @field_validator("skip_rebuild", mode="before")
    @classmethod
    def _parse_skip(cls, value: Any) -> bool:
        if isinstance(value, str):
            return is_truthy(value)
        return bool(value)

    def resolve_path(self, path: Path) -> Path:
        """Resolve a setting path against the project directory."""
        if path.is_absolute():
            return path
        return (self.project_dir / path).resolve()

    @property
    def project_root(self) -> Path:
        return self.project_dir.resolve()

    @property
    def manifest_path(self) -> Path:
        return self.resolve_path(self.manifest_file)

    @property
    def output_path(self) -> Path:
        return self.resolve_path(self.output_dir)

    @property
    def tmp_path(self) -> Path:
        return self.resolve_path(self.tmp_dir)

    @property
    def env_path(self) -> Path:
        return self.resolve_path(self.env_file)

    @property
    def archive_binary_path(self) -> Path:
        """Location of the binding inside an extracted prebuilt archive."""
        return Path("build") / "Release" / self.binary_name

    @property
    def module_binary_path(self) -> Path:
        """Location of the binding after a local rebuild."""
        return (
            self.project_root / "node_modules" / self.module_name / "build" / "Release"
        ) / self.binary_name

    def rebuild_argv(self) -> list[str]:
        """Split the rebuild command into an argument list."""
        return shlex.split(self.rebuild_command)


class RebuildConfig(BaseModel):
    """Parameters for one rebuild toolchain invocation.

    Attributes:
        project_root: Project whose node_modules are rebuilt
        build_path: Working directory of the toolchain process
        runtime_version: Runtime version the module is compiled against
        arch: Target architecture identifier
        only_modules: Restrict the rebuild to these modules
        force: Rebuild even when a build already exists

    Example:
        >>> config = RebuildConfig(
        ...     project_root=Path("/work/app"),
        ...     build_path=Path("/work/app"),
        ...     runtime_version="28.1.0",
        ...     arch="arm64",
        ... )
        >>> config.to_argv(["electron-rebuild"])[:3]
        ['electron-rebuild', '--version', '28.1.0']
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    project_root: Path = Field(..., description="Project root")
    build_path: Path = Field(..., description="Toolchain working directory")
    runtime_version: str = Field(..., min_length=1, description="Runtime version")
    arch: str = Field(..., min_length=1, description="Target architecture")
    only_modules: tuple[str, ...] = Field(
        default=("better-sqlite3",),
        min_length=1,
        description="Modules to rebuild",
    )
    force: bool = Field(default=True, description="Force rebuild")

    def to_argv(self, command: list[str]) -> list[str]:
        """Build the toolchain argument list.

        Args:
            command: Base command, e.g. ``["npx", "electron-rebuild"]``.

        Returns:
            Full argument list for the child process.
        """
        argv = [
            *command,
            "--version",
            self.runtime_version,
            "--arch",
            self.arch,
            "--module-dir",
            str(self.project_root),
            "--only",
            ",".join(self.only_modules),
        ]
        if self.force:
            argv.append("--force")
        return argv
