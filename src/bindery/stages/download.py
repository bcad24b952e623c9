"""Prebuilt artifact download stage.

Fetches the release archive matching (binding version, ABI version,
platform, arch), extracts it into the scratch directory, copies the
binding into the output directory, and removes the extracted build tree.
Archives are not checksum- or signature-verified.
"""

from __future__ import annotations

import shutil
import tarfile
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx

from bindery.errors import (
    ArtifactFileError,
    DownloadError,
    ExtractionError,
    FailureKind,
)
from bindery.models import StageOutcome, TargetSpec, VersionTriple
from bindery.stages.base import BaseStage
from bindery.versions import USER_AGENT


class DownloadStage(BaseStage):
    """Install a prebuilt binding from the artifact host.

    Example:
        >>> stage = DownloadStage(ProvisionSettings())
        >>> result = stage.run(TargetSpec(platform="linux", arch="x64"), versions)
        >>> result.outcome
        <StageOutcome.DOWNLOADED: 'downloaded'>
    """

    name = "download"
    success_outcome = StageOutcome.DOWNLOADED
    default_failure_kind = FailureKind.NETWORK

    def artifact_url(self, target: TargetSpec, versions: VersionTriple) -> str:
        """Build the archive URL for a target."""
        return self.settings.artifact_url_template.format(
            binding_version=versions.binding_version,
            abi_version=versions.abi_version,
            runtime_version=versions.runtime_version,
            platform=target.platform,
            arch=target.arch,
        )

    def destination(self, target: TargetSpec) -> Path:
        """Output path of a downloaded binding, e.g. better_sqlite3_linux_x64.node."""
        binary = Path(self.settings.binary_name)
        return self.settings.output_path / f"{binary.stem}_{target.platform}_{target.arch}{binary.suffix}"

    def _execute(self, target: TargetSpec, versions: VersionTriple) -> Path:
        url = self.artifact_url(target, versions)
        tmp_dir = self.settings.tmp_path
        archive = tmp_dir / PurePosixPath(urlparse(url).path).name
        destination = self.destination(target)

        self._log.info("downloading", arch=target.arch, url=url)
        self._fetch(url, archive)
        self._extract(archive, tmp_dir)
        self._install(tmp_dir / self.settings.archive_binary_path, destination)
        self._cleanup(tmp_dir / self.settings.archive_binary_path.parts[0])
        return destination

    def _fetch(self, url: str, archive: Path) -> None:
        """Stream the archive to disk."""
        try:
            archive.parent.mkdir(parents=True, exist_ok=True)
            with httpx.stream(
                "GET",
                url,
                follow_redirects=True,
                timeout=self.settings.download_timeout_seconds,
                headers={"User-Agent": USER_AGENT},
            ) as response:
                response.raise_for_status()
                with archive.open("wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise DownloadError(
                "Download failed",
                step="download",
                internal_details=f"{url}: {type(e).__name__}: {e}",
            ) from e
        except OSError as e:
            raise ArtifactFileError(
                "Could not save downloaded archive",
                step="download",
                internal_details=f"{archive}: {e}",
            ) from e

    def _extract(self, archive: Path, target_dir: Path) -> None:
        """Unpack a gzip tarball into the scratch directory."""
        try:
            with tarfile.open(archive, "r:gz") as tar:
                tar.extractall(target_dir, filter="data")
        except (tarfile.TarError, EOFError, OSError) as e:
            raise ExtractionError(
                "Extract failed",
                step="extract",
                internal_details=f"{archive}: {type(e).__name__}: {e}",
            ) from e

    def _install(self, source: Path, destination: Path) -> None:
        """Copy the extracted binding into the output directory."""
        if not source.is_file():
            raise ArtifactFileError(
                "Archive does not contain the binding",
                step="copy",
                internal_details=f"missing {source}",
            )
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as e:
            raise ArtifactFileError(
                "Copy failed",
                step="copy",
                internal_details=f"{source} -> {destination}: {e}",
            ) from e

    def _cleanup(self, build_tree: Path) -> None:
        """Remove the extracted build tree. A missing tree is not an error."""
        if not build_tree.exists():
            return
        try:
            shutil.rmtree(build_tree)
        except OSError as e:
            raise ArtifactFileError(
                "Delete failed",
                step="cleanup",
                internal_details=f"{build_tree}: {e}",
            ) from e
