"""bindery: provision ABI-matched native SQLite bindings at build time.

This package provides:
- provision: resolve versions and install one binding per target architecture
- Provisioner: download-then-rebuild pipeline with tagged per-target outcomes
- ProvisionSettings / RebuildConfig: configuration models
- Error types with failure kinds for diagnostics
"""

from __future__ import annotations

__version__ = "0.1.0"

from bindery.config import ProvisionSettings, RebuildConfig
from bindery.errors import (
    ArtifactFileError,
    BinderyError,
    DownloadError,
    ExtractionError,
    FailureKind,
    ManifestError,
    StageError,
    ToolchainError,
    VersionResolutionError,
)
from bindery.models import (
    ProvisionResult,
    StageOutcome,
    TargetResult,
    TargetSpec,
    VersionTriple,
)
from bindery.provisioner import Provisioner, provision, resolve_versions, select_arches

__all__ = [
    "__version__",
    # Provisioning
    "Provisioner",
    "provision",
    "resolve_versions",
    "select_arches",
    # Configuration
    "ProvisionSettings",
    "RebuildConfig",
    # Models
    "ProvisionResult",
    "StageOutcome",
    "TargetResult",
    "TargetSpec",
    "VersionTriple",
    # Errors
    "ArtifactFileError",
    "BinderyError",
    "DownloadError",
    "ExtractionError",
    "FailureKind",
    "ManifestError",
    "StageError",
    "ToolchainError",
    "VersionResolutionError",
]
