"""Runtime ABI version resolution.

The runtime's release index maps every runtime release to the native module
ABI version it was built with. Prebuilt artifacts are named by that ABI
version, so provisioning cannot start without it.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from bindery import __version__
from bindery.errors import VersionResolutionError
from bindery.observability import stage_span

logger = structlog.get_logger(__name__)

USER_AGENT = f"bindery/{__version__}"


def fetch_release_index(url: str, *, timeout: float) -> list[dict[str, Any]]:
    """Download the runtime release index.

    Args:
        url: Release index URL.
        timeout: Upper bound for the whole request in seconds.

    Returns:
        List of release records.

    Raises:
        VersionResolutionError: On network failure, timeout, error status,
            or a body that is not a non-empty JSON list.
    """
    try:
        response = httpx.get(
            url,
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise VersionResolutionError(
            f"Runtime release index timed out after {timeout:g}s",
            internal_details=f"{url}: {e}",
        ) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise VersionResolutionError(
            "Can not get runtime releases",
            internal_details=f"{url}: {type(e).__name__}: {e}",
        ) from e

    try:
        releases = response.json()
    except ValueError as e:
        raise VersionResolutionError(
            "Runtime release index is not valid JSON",
            internal_details=f"{url}: {e}",
        ) from e

    if not isinstance(releases, list) or not releases:
        raise VersionResolutionError(
            "Can not get runtime releases",
            internal_details=f"{url}: expected a non-empty list, got {type(releases).__name__}",
        )
    return releases


def find_abi_version(releases: list[dict[str, Any]], runtime_version: str) -> str:
    """Return the ABI version of the first release matching a runtime version.

    A release matches when its version string contains ``runtime_version``.
    The index lists newest releases first.

    Args:
        releases: Release records, each with ``version`` and ``modules`` fields.
        runtime_version: Runtime version to look up.

    Returns:
        ABI version string.

    Raises:
        VersionResolutionError: If no release matches or it carries no ABI version.

    Example:
        >>> find_abi_version([{"version": "28.1.0", "modules": "119"}], "28.1.0")
        '119'
    """
    for record in releases:
        if not isinstance(record, dict):
            continue
        version = record.get("version")
        if isinstance(version, str) and runtime_version in version:
            modules = record.get("modules")
            if modules in (None, ""):
                break
            return str(modules)

    raise VersionResolutionError(
        "Can not find runtime module version in runtime releases",
        runtime_version=runtime_version,
    )


def resolve_abi_version(
    runtime_version: str,
    *,
    releases_url: str,
    timeout: float = 120.0,
) -> str:
    """Resolve the native module ABI version for a runtime version.

    Args:
        runtime_version: Host runtime version (e.g. "28.1.0").
        releases_url: Release index URL.
        timeout: Upper bound for the index request in seconds.

    Returns:
        ABI version string (e.g. "119").

    Raises:
        VersionResolutionError: If the index is unavailable or has no match.
    """
    with stage_span("resolve_abi_version", attributes={"runtime_version": runtime_version}):
        releases = fetch_release_index(releases_url, timeout=timeout)
        abi_version = find_abi_version(releases, runtime_version)

    logger.info("abi_resolved", runtime_version=runtime_version, abi_version=abi_version)
    return abi_version
