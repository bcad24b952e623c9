"""Unit tests for the local rebuild stage.

Run with:
    pytest tests/unit/stages/test_rebuild_stage.py -v
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bindery.config import ProvisionSettings
from bindery.errors import FailureKind
from bindery.models import StageOutcome, TargetSpec, VersionTriple
from bindery.stages import RebuildStage

BUILT_BYTES = b"\x7fELF-locally-built"

LINUX_X64 = TargetSpec(platform="linux", arch="x64")


def _place_built_binding(settings: ProvisionSettings) -> MagicMock:
    """Mock for subprocess.run that leaves a compiled binding behind."""

    def _build(argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[bytes]:
        source = settings.module_binary_path
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_bytes(BUILT_BYTES)
        return subprocess.CompletedProcess(argv, 0)

    return MagicMock(side_effect=_build)


class TestRebuildConfig:
    """Tests for RebuildStage.rebuild_config."""

    def test_config_for_target(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """Toolchain targets the runtime version and arch, restricted to the module."""
        config = RebuildStage(settings).rebuild_config(
            TargetSpec(platform="linux", arch="arm64"), versions
        )

        assert config.runtime_version == "28.1.0"
        assert config.arch == "arm64"
        assert config.project_root == project_dir
        assert config.build_path == project_dir
        assert config.only_modules == ("better-sqlite3",)
        assert config.force is True

    def test_destination(self, settings: ProvisionSettings, project_dir: Path) -> None:
        """Built bindings are named per arch."""
        assert RebuildStage(settings).destination(LINUX_X64) == (
            project_dir / "dist-native" / "better_sqlite3-x64.node"
        )


class TestRebuildStageRun:
    """Tests for RebuildStage.run."""

    @pytest.mark.requirement("rebuild-installs-artifact")
    def test_success_installs_binding(
        self, settings: ProvisionSettings, versions: VersionTriple
    ) -> None:
        """Successful build yields BUILT and copies the compiled binding."""
        with patch("bindery.stages.rebuild.subprocess.run", _place_built_binding(settings)):
            result = RebuildStage(settings).run(LINUX_X64, versions)

        destination = settings.output_path / "better_sqlite3-x64.node"
        assert result.outcome == StageOutcome.BUILT
        assert result.stage == "rebuild"
        assert result.artifact_path == destination
        assert destination.read_bytes() == BUILT_BYTES

    @pytest.mark.requirement("env-record-relative-path")
    def test_success_writes_relative_env_record(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """The environment record holds the project-relative artifact path."""
        with patch("bindery.stages.rebuild.subprocess.run", _place_built_binding(settings)):
            RebuildStage(settings).run(LINUX_X64, versions)

        content = (project_dir / ".env").read_text()
        assert content == "VITE_BETTER_SQLITE3_BINDING_x64=dist-native/better_sqlite3-x64.node\n"
        assert str(project_dir) not in content

    def test_env_record_is_overwritten(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """Each build replaces the record rather than appending to it."""
        (project_dir / ".env").write_text("STALE=1\n")

        with patch("bindery.stages.rebuild.subprocess.run", _place_built_binding(settings)):
            stage = RebuildStage(settings)
            stage.run(LINUX_X64, versions)
            stage.run(TargetSpec(platform="linux", arch="arm64"), versions)

        assert (project_dir / ".env").read_text() == (
            "VITE_BETTER_SQLITE3_BINDING_arm64=dist-native/better_sqlite3-arm64.node\n"
        )

    def test_toolchain_invocation(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """The toolchain runs from the project root with the rebuild arguments."""
        run = _place_built_binding(settings)

        with (
            patch("bindery.stages.rebuild.subprocess.run", run),
            patch("bindery.stages.rebuild.shutil.which", return_value=None),
        ):
            RebuildStage(settings).run(LINUX_X64, versions)

        run.assert_called_once()
        argv = run.call_args.args[0]
        assert argv[:3] == ["npx", "--no-install", "electron-rebuild"]
        assert argv[argv.index("--version") + 1] == "28.1.0"
        assert argv[argv.index("--arch") + 1] == "x64"
        assert argv[argv.index("--only") + 1] == "better-sqlite3"
        assert "--force" in argv
        assert run.call_args.kwargs["cwd"] == project_dir
        assert run.call_args.kwargs["check"] is True

    def test_toolchain_resolved_on_path(
        self, settings: ProvisionSettings, versions: VersionTriple
    ) -> None:
        """The executable is resolved through PATH, so Windows .cmd shims run."""
        run = _place_built_binding(settings)
        resolved = r"C:\Program Files\nodejs\npx.cmd"

        with (
            patch("bindery.stages.rebuild.subprocess.run", run),
            patch("bindery.stages.rebuild.shutil.which", return_value=resolved) as mock_which,
        ):
            result = RebuildStage(settings).run(LINUX_X64, versions)

        assert result.outcome == StageOutcome.BUILT
        mock_which.assert_called_once_with("npx")
        argv = run.call_args.args[0]
        assert argv[0] == resolved
        assert argv[1:3] == ["--no-install", "electron-rebuild"]

    @pytest.mark.requirement("rebuild-failure-is-soft")
    def test_toolchain_exit_status_fails_softly(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """A non-zero toolchain exit produces FAILED(toolchain) and no record."""
        run = MagicMock(side_effect=subprocess.CalledProcessError(1, ["npx"]))

        with patch("bindery.stages.rebuild.subprocess.run", run):
            result = RebuildStage(settings).run(LINUX_X64, versions)

        assert result.outcome == StageOutcome.FAILED
        assert result.failure_kind == FailureKind.TOOLCHAIN
        assert result.message == "Build failed!"
        assert not (project_dir / ".env").exists()

    def test_missing_toolchain_fails_softly(
        self, settings: ProvisionSettings, versions: VersionTriple
    ) -> None:
        """A toolchain that cannot be started produces FAILED(toolchain)."""
        run = MagicMock(side_effect=FileNotFoundError("npx"))

        with patch("bindery.stages.rebuild.subprocess.run", run):
            result = RebuildStage(settings).run(LINUX_X64, versions)

        assert result.failure_kind == FailureKind.TOOLCHAIN
        assert result.message == "Rebuild toolchain not found"

    def test_missing_build_output_fails_softly(
        self, settings: ProvisionSettings, versions: VersionTriple, project_dir: Path
    ) -> None:
        """A build that leaves no binding produces FAILED(filesystem)."""
        run = MagicMock(return_value=subprocess.CompletedProcess(["npx"], 0))

        with patch("bindery.stages.rebuild.subprocess.run", run):
            result = RebuildStage(settings).run(LINUX_X64, versions)

        assert result.outcome == StageOutcome.FAILED
        assert result.failure_kind == FailureKind.FILESYSTEM
        assert result.details["step"] == "copy"
        assert not (project_dir / ".env").exists()
