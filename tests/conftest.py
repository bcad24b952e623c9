"""Shared pytest fixtures for bindery tests.

Provides project directories, settings, version triples, prebuilt archive
payloads and CliRunner fixtures.
"""

from __future__ import annotations

import io
import json
import os
import sys
import tarfile
from collections.abc import Generator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog
from click.testing import CliRunner

from bindery.config import ProvisionSettings
from bindery.models import (
    ProvisionResult,
    StageOutcome,
    TargetResult,
    TargetSpec,
    VersionTriple,
)

if TYPE_CHECKING:
    from collections.abc import Callable

PACKAGE_JSON_FILENAME = "package.json"
BINDING_MEMBER = "build/Release/better_sqlite3.node"
BINDING_BYTES = b"\x7fELF-fake-better-sqlite3"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Route structlog to stderr so command stdout stays clean."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provisioning variables inherited from the host environment."""
    monkeypatch.delenv("SKIP_REBUILD", raising=False)
    for name in list(os.environ):
        if name.startswith("BINDERY_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a project root with a package.json declaring both versions.

    Returns:
        Resolved path of the project root.
    """
    manifest = {
        "name": "desktop-app",
        "dependencies": {"better-sqlite3": "^9.2.2"},
        "devDependencies": {"electron": "^28.1.0"},
    }
    (tmp_path / PACKAGE_JSON_FILENAME).write_text(json.dumps(manifest))
    return tmp_path.resolve()


@pytest.fixture
def settings(project_dir: Path) -> ProvisionSettings:
    """Settings rooted at the test project."""
    return ProvisionSettings(project_dir=project_dir)


@pytest.fixture
def versions() -> VersionTriple:
    """A resolved version triple."""
    return VersionTriple(runtime_version="28.1.0", abi_version="119", binding_version="9.2.2")


@pytest.fixture
def releases() -> list[dict[str, str]]:
    """Release index records, newest first."""
    return [
        {"version": "29.0.0-alpha.1", "modules": "121"},
        {"version": "28.1.0", "modules": "119"},
        {"version": "28.0.0", "modules": "119"},
        {"version": "27.2.0", "modules": "118"},
    ]


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Factory fixture building gzip tarball payloads.

    Returns:
        Function taking {member name: content} and returning archive bytes.
        Defaults to an archive holding the prebuilt binding.
    """

    def _make(members: dict[str, bytes] | None = None) -> bytes:
        if members is None:
            members = {BINDING_MEMBER: BINDING_BYTES}
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in members.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return _make


@pytest.fixture
def provision_result(versions: VersionTriple, project_dir: Path) -> ProvisionResult:
    """A run with one downloaded and one failed target."""
    return ProvisionResult(
        versions=versions,
        targets=[
            TargetResult(
                target=TargetSpec(platform="linux", arch="x64"),
                outcome=StageOutcome.DOWNLOADED,
                stage="download",
                message="Downloaded linux-x64 binding",
                artifact_path=project_dir / "dist-native" / "better_sqlite3_linux_x64.node",
                duration_ms=12,
            ),
            TargetResult(
                target=TargetSpec(platform="linux", arch="arm64"),
                outcome=StageOutcome.FAILED,
                stage="rebuild",
                message="Build failed!",
                details={"step": "rebuild", "download_failure": "network"},
            ),
        ],
        total_duration_ms=40,
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem."""
    with cli_runner.isolated_filesystem():
        yield cli_runner
