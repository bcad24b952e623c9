"""Host platform and architecture identifiers.

Artifact names use the host runtime's vocabulary (``linux``, ``darwin``,
``win32`` and ``x64``, ``arm64``, ``arm``, ``ia32``), not Python's.
"""

from __future__ import annotations

import platform
import sys

SUPPORTED_ARCHES: tuple[str, ...] = ("x64", "arm64", "arm", "ia32")
"""Architecture identifiers accepted as targets."""

_MACHINE_TO_ARCH: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
}


def host_platform() -> str:
    """Return the host OS identifier.

    Python's ``sys.platform`` already matches the runtime's identifiers for
    the platforms that ship prebuilt bindings, apart from the ``linux2``
    spelling of very old interpreters and ``cygwin``.
    """
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "cygwin":
        return "win32"
    return sys.platform


def normalize_arch(machine: str) -> str:
    """Map a machine name to the runtime's architecture identifier.

    Args:
        machine: Machine name as reported by ``platform.machine()``.

    Returns:
        Architecture identifier. Unknown names are returned lower-cased.
    """
    key = machine.strip().lower()
    return _MACHINE_TO_ARCH.get(key, key)


def host_arch() -> str:
    """Return the host architecture identifier."""
    return normalize_arch(platform.machine())
