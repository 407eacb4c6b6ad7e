from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from yutu_mcp import PRODUCT_NAME

from .errors import UnsupportedPlatformError

OsName = Literal["darwin", "linux", "windows"]
ArchName = Literal["amd64", "arm64"]

# Keys are lowercased platform.system() / platform.machine() values.
_OS_MAP: dict[str, OsName] = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
}

_ARCH_MAP: dict[str, ArchName] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

_CI_ENV_VARS = ("CI", "GITHUB_ACTIONS")


@dataclass(frozen=True, slots=True)
class HostContext:
    """
    Read-only view of the host: OS name, CPU architecture and environment.

    Everything that would otherwise consult ``platform`` or ``os.environ``
    takes one of these, so tests can describe any host with a literal.
    """

    system: str
    machine: str
    environ: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_host(cls) -> HostContext:
        return cls(
            system=platform.system(),
            machine=platform.machine(),
            environ=dict(os.environ),
        )

    def getenv(self, name: str) -> str | None:
        value = self.environ.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    def is_ci(self) -> bool:
        """True when running under an automated build (provisioning is suppressed)."""
        return any(self.getenv(name) for name in _CI_ENV_VARS)


@dataclass(frozen=True, slots=True)
class PlatformKey:
    os: OsName
    arch: ArchName

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"


@dataclass(frozen=True, slots=True)
class ArtifactDescriptor:
    """Name of the prebuilt binary for one platform and where it lives locally."""

    canonical_name: str
    local_path: Path

    @property
    def cache_dir(self) -> Path:
        return self.local_path.parent

    @property
    def is_windows(self) -> bool:
        return self.canonical_name.endswith(".exe")


def resolve_platform(ctx: HostContext) -> PlatformKey:
    os_name = _OS_MAP.get(ctx.system.strip().lower())
    arch = _ARCH_MAP.get(ctx.machine.strip().lower())
    if os_name is None or arch is None:
        raise UnsupportedPlatformError(ctx.system, ctx.machine)
    return PlatformKey(os=os_name, arch=arch)


def canonical_name(key: PlatformKey) -> str:
    name = f"{PRODUCT_NAME}-{key.os}-{key.arch}"
    return f"{name}.exe" if key.is_windows else name


def to_artifact_descriptor(key: PlatformKey, cache_dir: Path) -> ArtifactDescriptor:
    name = canonical_name(key)
    return ArtifactDescriptor(canonical_name=name, local_path=cache_dir / name)


def describe_host(ctx: HostContext) -> str:
    return f"{ctx.system} {ctx.machine}"
