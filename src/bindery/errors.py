"""Custom exception hierarchy for bindery.

This module defines the exception classes used throughout bindery:
- BinderyError: Base exception for all bindery errors
- VersionResolutionError: The runtime ABI version could not be resolved (fatal)
- ManifestError: package.json is missing or incomplete (fatal)
- StageError: A download or build stage step failed (soft)

Fatal errors abort the run. Stage errors are caught by the stage runner and
turned into a FAILED outcome carrying their FailureKind.

User-facing messages are safe to display. Technical details are logged
internally via structlog and never shown to the user.
"""

from __future__ import annotations

from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class FailureKind(str, Enum):
    """Category of a soft stage failure.

    Attributes:
        NETWORK: Remote host unreachable, bad status, or interrupted stream
        EXTRACTION: Archive could not be unpacked
        FILESYSTEM: Copy, cleanup, or record write failed
        TOOLCHAIN: Rebuild toolchain missing or exited non-zero
    """

    NETWORK = "network"
    EXTRACTION = "extraction"
    FILESYSTEM = "filesystem"
    TOOLCHAIN = "toolchain"


class BinderyError(Exception):
    """Base exception for bindery.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. Logged
            internally but never exposed to the user.

    Example:
        >>> raise BinderyError(
        ...     "Provisioning failed",
        ...     internal_details="errno 13 on /project/dist-native",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize BinderyError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details

        if internal_details:
            logger.error(
                "bindery_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class VersionResolutionError(BinderyError):
    """Raised when the runtime's ABI version cannot be resolved.

    Use this exception when:
    - The release index is unreachable or times out
    - The release index returns an error status or an undecodable body
    - No release record matches the runtime version
    - The matching record carries no ABI (modules) field

    No artifact can be named without the ABI version, so this aborts the run.

    Attributes:
        runtime_version: The runtime version being resolved.
    """

    def __init__(
        self,
        user_message: str,
        *,
        runtime_version: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.runtime_version = runtime_version


class ManifestError(BinderyError):
    """Raised when the project's package.json cannot supply version metadata.

    Attributes:
        manifest_path: Path to the manifest that was read (if known).
        field_path: Dot-separated path to the missing entry (if known).

    Example:
        >>> raise ManifestError(
        ...     "Missing runtime dependency",
        ...     manifest_path="package.json",
        ...     field_path="devDependencies.electron",
        ... )
        # User sees: "Missing runtime dependency (in package.json, field 'devDependencies.electron')"
    """

    def __init__(
        self,
        user_message: str,
        *,
        manifest_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        context_parts: list[str] = []
        if manifest_path:
            context_parts.append(f"in {manifest_path}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.manifest_path = manifest_path
        self.field_path = field_path


class StageError(BinderyError):
    """Raised when one step of a provisioning stage fails.

    Stage errors are soft: the stage runner converts them into a FAILED
    outcome and the provisioner moves on to the fallback or the next target.

    Attributes:
        kind: Failure category for diagnostics.
        step: Name of the step that failed (e.g. "download", "extract").
    """

    kind: FailureKind = FailureKind.FILESYSTEM

    def __init__(
        self,
        user_message: str,
        *,
        step: str,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.step = step


class DownloadError(StageError):
    """Raised when the artifact host cannot deliver the archive."""

    kind = FailureKind.NETWORK


class ExtractionError(StageError):
    """Raised when the downloaded archive cannot be extracted."""

    kind = FailureKind.EXTRACTION


class ArtifactFileError(StageError):
    """Raised when copying, cleaning up, or recording an artifact fails."""

    kind = FailureKind.FILESYSTEM


class ToolchainError(StageError):
    """Raised when the rebuild toolchain cannot be run or exits non-zero.

    Attributes:
        returncode: Exit status of the toolchain process, if it ran.
    """

    kind = FailureKind.TOOLCHAIN

    def __init__(
        self,
        user_message: str,
        *,
        step: str = "rebuild",
        returncode: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, step=step, internal_details=internal_details)
        self.returncode = returncode
