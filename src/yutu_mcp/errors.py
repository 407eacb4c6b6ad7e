from __future__ import annotations

from pathlib import Path


class ProvisionError(Exception):
    """Base error for locating, downloading and launching the native binary."""


class UnsupportedPlatformError(ProvisionError):
    """The host OS or CPU architecture has no prebuilt binary."""

    def __init__(self, system: str, machine: str) -> None:
        super().__init__(f"Unsupported platform: {system} {machine}")
        self.system = system
        self.machine = machine


class MetadataFetchError(ProvisionError):
    """Release metadata could not be fetched, parsed, or had no matching asset."""


class DownloadFailedError(ProvisionError):
    """Transferring the binary failed (bad HTTP status or transport error)."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ArtifactMissingError(ProvisionError):
    """The binary is not at its expected cache path."""

    def __init__(self, path: Path, platform: str) -> None:
        super().__init__(f"Binary not found: {path}")
        self.path = path
        self.platform = platform


class SpawnFailedError(ProvisionError):
    """The OS refused to start the binary."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot execute {path}: {reason}")
        self.path = path
