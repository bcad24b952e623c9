"""Local rebuild stage.

Compiles the binding against the target runtime with the rebuild
toolchain, installs it into the output directory, and records its
project-relative path in the environment record.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from bindery.config import RebuildConfig
from bindery.envfile import env_key, relative_artifact_path, write_env_record
from bindery.errors import ArtifactFileError, FailureKind, ToolchainError
from bindery.models import StageOutcome, TargetSpec, VersionTriple
from bindery.stages.base import BaseStage


class RebuildStage(BaseStage):
    """Build the binding from source for one target."""

    name = "rebuild"
    success_outcome = StageOutcome.BUILT
    default_failure_kind = FailureKind.TOOLCHAIN

    def rebuild_config(self, target: TargetSpec, versions: VersionTriple) -> RebuildConfig:
        """Immutable toolchain parameters for a target."""
        return RebuildConfig(
            project_root=self.settings.project_root,
            build_path=self.settings.project_root,
            runtime_version=versions.runtime_version,
            arch=target.arch,
            only_modules=(self.settings.module_name,),
            force=True,
        )

    def destination(self, target: TargetSpec) -> Path:
        """Output path of a built binding, e.g. better_sqlite3-x64.node."""
        binary = Path(self.settings.binary_name)
        return self.settings.output_path / f"{binary.stem}-{target.arch}{binary.suffix}"

    def _execute(self, target: TargetSpec, versions: VersionTriple) -> Path:
        self._log.info("building", arch=target.arch)
        self._run_toolchain(self.rebuild_config(target, versions))

        source = self.settings.module_binary_path
        destination = self.destination(target)
        self._log.info("copying_artifact", source=str(source), destination=str(destination))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as e:
            raise ArtifactFileError(
                "Copy failed",
                step="copy",
                internal_details=f"{source} -> {destination}: {e}",
            ) from e

        write_env_record(
            self.settings.env_path,
            env_key(self.settings.env_key_prefix, target.arch),
            relative_artifact_path(destination, self.settings.project_root),
        )
        return destination

    def _run_toolchain(self, config: RebuildConfig) -> None:
        """Run the rebuild toolchain, inheriting stdio so build output is visible."""
        command = self.settings.rebuild_argv()
        # Windows needs the full path to resolve npx.cmd and other shims
        command[0] = shutil.which(command[0]) or command[0]
        argv = config.to_argv(command)
        self._log.info("toolchain_started", command=" ".join(argv), cwd=str(config.build_path))
        try:
            subprocess.run(argv, cwd=config.build_path, check=True)
        except FileNotFoundError as e:
            raise ToolchainError(
                "Rebuild toolchain not found",
                internal_details=f"{argv[0]}: {e}",
            ) from e
        except subprocess.CalledProcessError as e:
            raise ToolchainError(
                "Build failed!",
                returncode=e.returncode,
                internal_details=f"{' '.join(argv)} exited with {e.returncode}",
            ) from e
