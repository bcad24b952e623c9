"""Base class for provisioning stages.

A stage turns a target into a TargetResult. Stage steps raise StageError
subclasses; the base class converts them into a FAILED outcome tagged with
the error's FailureKind, so callers branch on outcomes instead of catching
exceptions.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from bindery.errors import FailureKind, StageError
from bindery.models import StageOutcome, TargetResult, TargetSpec, VersionTriple
from bindery.observability import stage_span

if TYPE_CHECKING:
    from bindery.config import ProvisionSettings

logger = structlog.get_logger(__name__)


class BaseStage(ABC):
    """Base class for provisioning stages.

    Provides timing, logging, tracing and error conversion around
    ``_execute``.

    Attributes:
        name: Stage name for identification
        success_outcome: Outcome reported when ``_execute`` returns
        default_failure_kind: Kind reported for unexpected exceptions
        settings: Provisioning settings

    Example:
        >>> class MyStage(BaseStage):
        ...     name = "mine"
        ...     success_outcome = StageOutcome.BUILT
        ...     default_failure_kind = FailureKind.TOOLCHAIN
        ...     def _execute(self, target, versions) -> Path:
        ...         return Path("dist-native/binding.node")
    """

    name: str = "stage"
    success_outcome: StageOutcome = StageOutcome.BUILT
    default_failure_kind: FailureKind = FailureKind.FILESYSTEM

    def __init__(self, settings: ProvisionSettings) -> None:
        """Initialize the stage.

        Args:
            settings: Provisioning settings shared by all stages.
        """
        self.settings = settings
        self._log = logger.bind(stage=self.name)

    def run(self, target: TargetSpec, versions: VersionTriple) -> TargetResult:
        """Run the stage for one target.

        Args:
            target: Target to provision.
            versions: Resolved version triple.

        Returns:
            TargetResult with the stage outcome and duration. Never raises
            for StageError or other ordinary exceptions.
        """
        start_time = time.monotonic()
        timestamp = datetime.now(UTC)
        log = self._log.bind(arch=target.arch, platform=target.platform)

        log.info(f"{self.name}_started")

        try:
            with stage_span(self.name, attributes={"arch": target.arch, "platform": target.platform}):
                artifact = self._execute(target, versions)
        except StageError as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.warning(
                f"{self.name}_failed",
                step=e.step,
                kind=e.kind.value,
                error=e.user_message,
                details=e.internal_details,
            )
            details: dict[str, Any] = {"step": e.step}
            if e.internal_details:
                details["error"] = e.internal_details
            return self._make_result(
                target,
                StageOutcome.FAILED,
                failure_kind=e.kind,
                message=e.user_message,
                details=details,
                duration_ms=duration_ms,
                timestamp=timestamp,
            )
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(f"{self.name}_error", error=str(e), error_type=type(e).__name__)
            return self._make_result(
                target,
                StageOutcome.FAILED,
                failure_kind=self.default_failure_kind,
                message=f"{self.name.capitalize()} failed with error: {type(e).__name__}",
                details={"error": str(e), "error_type": type(e).__name__},
                duration_ms=duration_ms,
                timestamp=timestamp,
            )

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.info(f"{self.name}_succeeded", artifact=str(artifact), duration_ms=duration_ms)
        return self._make_result(
            target,
            self.success_outcome,
            message=self._success_message(target),
            artifact_path=artifact,
            duration_ms=duration_ms,
            timestamp=timestamp,
        )

    @abstractmethod
    def _execute(self, target: TargetSpec, versions: VersionTriple) -> Path:
        """Produce the artifact for a target.

        Returns:
            Path of the installed artifact.

        Raises:
            StageError: When a step fails. Other exceptions are caught by
                run() and reported with ``default_failure_kind``.
        """

    def _success_message(self, target: TargetSpec) -> str:
        return f"{self.success_outcome.value.capitalize()} {target.label} binding"

    def _make_result(
        self,
        target: TargetSpec,
        outcome: StageOutcome,
        **fields: Any,
    ) -> TargetResult:
        """Create a TargetResult with the common fields filled in."""
        return TargetResult(target=target, outcome=outcome, stage=self.name, **fields)
