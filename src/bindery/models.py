"""Provisioning models.

Version metadata, target specs, and the tagged outcomes produced by the
download and build stages.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bindery.errors import FailureKind


class StageOutcome(str, Enum):
    """Outcome of provisioning one target.

    Attributes:
        DOWNLOADED: Prebuilt artifact was downloaded and installed
        BUILT: Artifact was compiled locally and installed
        FAILED: The stage did not produce an artifact
    """

    DOWNLOADED = "downloaded"
    BUILT = "built"
    FAILED = "failed"


class VersionTriple(BaseModel):
    """Versions that name an artifact.

    Attributes:
        runtime_version: Host runtime version (e.g. "28.1.0")
        abi_version: Native module ABI version for that runtime (e.g. "119")
        binding_version: Binding library version (e.g. "9.2.2")
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    runtime_version: str = Field(..., min_length=1, description="Runtime version")
    abi_version: str = Field(..., min_length=1, description="Native module ABI version")
    binding_version: str = Field(..., min_length=1, description="Binding version")


class TargetSpec(BaseModel):
    """Operating system and architecture an artifact is built for.

    Example:
        >>> TargetSpec(platform="linux", arch="x64").label
        'linux-x64'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    platform: str = Field(..., min_length=1, description="OS identifier")
    arch: str = Field(..., min_length=1, description="Architecture identifier")

    @property
    def label(self) -> str:
        return f"{self.platform}-{self.arch}"


class TargetResult(BaseModel):
    """Result of provisioning a single target.

    Attributes:
        target: The target that was provisioned
        outcome: Tagged stage outcome
        stage: Stage that produced this result ("download" or "rebuild")
        failure_kind: Failure category when outcome is FAILED
        message: Human-readable result message
        artifact_path: Installed artifact when outcome is not FAILED
        details: Additional details (URL, step, error text, ...)
        duration_ms: Stage duration in milliseconds
        timestamp: When the stage started

    Example:
        >>> result = TargetResult(
        ...     target=TargetSpec(platform="linux", arch="x64"),
        ...     outcome=StageOutcome.FAILED,
        ...     stage="download",
        ...     failure_kind=FailureKind.NETWORK,
        ...     message="Download failed",
        ... )
        >>> result.failed
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: TargetSpec = Field(..., description="Provisioned target")
    outcome: StageOutcome = Field(..., description="Stage outcome")
    stage: str = Field(..., min_length=1, description="Producing stage")
    failure_kind: FailureKind | None = Field(default=None, description="Failure category")
    message: str = Field(default="", description="Result message")
    artifact_path: Path | None = Field(default=None, description="Installed artifact")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional details")
    duration_ms: int = Field(default=0, ge=0, description="Duration in milliseconds")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Stage timestamp"
    )

    @property
    def succeeded(self) -> bool:
        """Check if an artifact was installed."""
        return self.outcome in (StageOutcome.DOWNLOADED, StageOutcome.BUILT)

    @property
    def failed(self) -> bool:
        """Check if the stage failed."""
        return self.outcome == StageOutcome.FAILED


class ProvisionResult(BaseModel):
    """Aggregated result of a provisioning run.

    Individual failures are reported here but never turn into a non-zero
    exit status.

    Attributes:
        versions: Version triple used for every target
        targets: Final result per target, in processing order
        started_at: When the run started
        finished_at: When the run finished
        total_duration_ms: Total duration in milliseconds
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    versions: VersionTriple = Field(..., description="Resolved versions")
    targets: list[TargetResult] = Field(default_factory=list, description="Target results")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Start time"
    )
    finished_at: datetime | None = Field(default=None, description="End time")
    total_duration_ms: int = Field(default=0, ge=0, description="Total duration")

    @property
    def succeeded_count(self) -> int:
        """Count of targets with an installed artifact."""
        return sum(1 for t in self.targets if t.succeeded)

    @property
    def failed_count(self) -> int:
        """Count of targets left without an artifact."""
        return sum(1 for t in self.targets if t.failed)

    @property
    def all_succeeded(self) -> bool:
        return self.failed_count == 0
