"""Artifact provisioner.

Resolves the version triple once, then provisions each requested target in
order: download first, rebuild when the download did not install an
artifact. Per-target failures are reported, never raised.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

import structlog

from bindery.config import ProvisionSettings
from bindery.manifest import read_manifest_versions
from bindery.models import (
    ProvisionResult,
    StageOutcome,
    TargetResult,
    TargetSpec,
    VersionTriple,
)
from bindery.platforms import host_arch, host_platform
from bindery.stages import BaseStage, DownloadStage, RebuildStage
from bindery.versions import resolve_abi_version

logger = structlog.get_logger(__name__)


def select_arches(requested: Iterable[str]) -> list[str]:
    """Return the architectures to provision, in request order.

    Duplicates are dropped. No request means the host architecture only.

    Example:
        >>> select_arches(["x64", "arm64"])
        ['x64', 'arm64']
    """
    arches: list[str] = []
    for arch in requested:
        if arch not in arches:
            arches.append(arch)
    return arches or [host_arch()]


def resolve_versions(
    settings: ProvisionSettings,
    *,
    runtime_version: str | None = None,
    binding_version: str | None = None,
) -> VersionTriple:
    """Resolve the version triple for a run.

    package.json is read only when an override is missing.

    Raises:
        ManifestError: If package.json cannot supply a missing version.
        VersionResolutionError: If the ABI version cannot be resolved.
    """
    if runtime_version is None or binding_version is None:
        declared = read_manifest_versions(
            settings.manifest_path,
            runtime_package=settings.runtime_package,
            binding_package=settings.module_name,
        )
        runtime_version = runtime_version or declared.runtime_version
        binding_version = binding_version or declared.binding_version

    abi_version = resolve_abi_version(
        runtime_version,
        releases_url=settings.releases_url,
        timeout=settings.metadata_timeout_seconds,
    )
    return VersionTriple(
        runtime_version=runtime_version,
        abi_version=abi_version,
        binding_version=binding_version,
    )


class Provisioner:
    """Provisions native bindings for a sequence of targets.

    Attributes:
        settings: Provisioning settings
        download_stage: First stage (prebuilt download)
        rebuild_stage: Fallback stage (local build)

    Example:
        >>> provisioner = Provisioner(ProvisionSettings())
        >>> result = provisioner.run(["x64", "arm64"], versions)
        >>> [t.outcome.value for t in result.targets]
        ['downloaded', 'built']
    """

    def __init__(
        self,
        settings: ProvisionSettings,
        *,
        download_stage: BaseStage | None = None,
        rebuild_stage: BaseStage | None = None,
    ) -> None:
        self.settings = settings
        self.download_stage = download_stage or DownloadStage(settings)
        self.rebuild_stage = rebuild_stage or RebuildStage(settings)
        self._log = logger.bind(component="provisioner")

    def prepare_directories(self) -> None:
        """Create the output and scratch directories if missing."""
        for directory in (self.settings.output_path, self.settings.tmp_path):
            if not directory.exists():
                self._log.info("creating_directory", path=str(directory))
                directory.mkdir(parents=True, exist_ok=True)

    def provision_target(self, target: TargetSpec, versions: VersionTriple) -> TargetResult:
        """Provision one target: download, falling back to a local build.

        Returns:
            The download result when it installed an artifact, otherwise the
            rebuild result annotated with the download failure.
        """
        downloaded = self.download_stage.run(target, versions)
        if downloaded.outcome == StageOutcome.DOWNLOADED:
            return downloaded

        self._log.info(
            "falling_back_to_rebuild",
            arch=target.arch,
            download_failure=downloaded.failure_kind.value if downloaded.failure_kind else None,
        )
        built = self.rebuild_stage.run(target, versions)
        return built.model_copy(
            update={
                "details": {
                    **built.details,
                    "download_failure": downloaded.failure_kind.value
                    if downloaded.failure_kind
                    else None,
                    "download_message": downloaded.message,
                },
            }
        )

    def run(self, arches: Sequence[str], versions: VersionTriple) -> ProvisionResult:
        """Provision every architecture, one after another.

        Args:
            arches: Architectures in processing order.
            versions: Resolved version triple.

        Returns:
            ProvisionResult with one TargetResult per architecture.
        """
        start_time = time.monotonic()
        started_at = datetime.now(UTC)
        platform = host_platform()

        self._log.info(
            "provisioning_started",
            project_dir=str(self.settings.project_root),
            output_dir=str(self.settings.output_path),
            arches=list(arches),
            runtime_version=versions.runtime_version,
            abi_version=versions.abi_version,
            binding_version=versions.binding_version,
        )
        self.prepare_directories()

        results = [
            self.provision_target(TargetSpec(platform=platform, arch=arch), versions)
            for arch in arches
        ]

        total_duration_ms = int((time.monotonic() - start_time) * 1000)
        self._log.info(
            "provisioning_completed",
            total_duration_ms=total_duration_ms,
            succeeded=sum(1 for r in results if r.succeeded),
            failed=sum(1 for r in results if r.failed),
        )
        return ProvisionResult(
            versions=versions,
            targets=results,
            started_at=started_at,
            finished_at=datetime.now(UTC),
            total_duration_ms=total_duration_ms,
        )


def provision(
    settings: ProvisionSettings,
    arches: Iterable[str] = (),
    *,
    runtime_version: str | None = None,
    binding_version: str | None = None,
) -> ProvisionResult:
    """Resolve versions and provision the requested architectures.

    Convenience function that resolves the version triple and runs a
    Provisioner.

    Raises:
        ManifestError: If package.json cannot supply version metadata.
        VersionResolutionError: If the ABI version cannot be resolved. Raised
            before any target is attempted.

    Example:
        >>> result = provision(ProvisionSettings(), ["x64"])
        >>> result.targets[0].outcome
        <StageOutcome.DOWNLOADED: 'downloaded'>
    """
    versions = resolve_versions(
        settings,
        runtime_version=runtime_version,
        binding_version=binding_version,
    )
    return Provisioner(settings).run(select_arches(arches), versions)
