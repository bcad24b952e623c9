"""Provisioning stages.

Stages are tried in order for each target:
- DownloadStage: install a prebuilt binding from the artifact host
- RebuildStage: compile the binding locally (fallback)
"""

from __future__ import annotations

from bindery.stages.base import BaseStage
from bindery.stages.download import DownloadStage
from bindery.stages.rebuild import RebuildStage

__all__ = [
    "BaseStage",
    "DownloadStage",
    "RebuildStage",
]
