from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from .downloader import download_to_path
from .errors import ProvisionError
from .platforms import ArtifactDescriptor
from .release import REQUEST_HEADERS, resolve_source_url
from .transport import Transport, UrllibTransport
from .util import eprint, format_bytes

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def is_installed(descriptor: ArtifactDescriptor) -> bool:
    return descriptor.local_path.exists()


def ensure_installed(
    descriptor: ArtifactDescriptor,
    *,
    version: str | None = None,
    transport: Transport | None = None,
    force: bool = False,
    show_progress: bool | None = None,
) -> Path:
    """
    Make sure the binary for descriptor exists in the cache and return its path.

    An existing file is trusted as-is: no checksum, no version check, no
    network call. Otherwise the asset is located (release metadata first,
    deterministic URL as fallback), downloaded next to its final path and
    renamed into place, so a failed download never leaves a partial file
    at descriptor.local_path.

    Progress goes to stderr; stdout belongs to the binary once it runs.
    """
    dest = descriptor.local_path
    if dest.exists() and not force:
        return dest

    if transport is None:
        transport = UrllibTransport()

    try:
        descriptor.cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProvisionError(f"install: cannot create cache directory {descriptor.cache_dir}") from e

    source = resolve_source_url(descriptor.canonical_name, transport=transport, version=version)

    eprint(f"Downloading binary: {descriptor.canonical_name}")
    eprint(f"Downloading from: {source.url}")

    tmp_path = _temp_path_for(descriptor)
    try:
        n = download_to_path(
            source.url,
            tmp_path,
            transport=transport,
            headers=REQUEST_HEADERS,
            show_progress=show_progress,
        )
        _finalize(tmp_path, dest, executable=not descriptor.is_windows)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    eprint(f"Installed {descriptor.canonical_name} ({format_bytes(n)}) to {dest}")
    return dest


def _temp_path_for(descriptor: ArtifactDescriptor) -> Path:
    # Same directory as the destination so the final rename stays on one filesystem.
    try:
        fd, name = tempfile.mkstemp(
            prefix=f".{descriptor.canonical_name}.",
            suffix=".part",
            dir=descriptor.cache_dir,
        )
    except OSError as e:
        raise ProvisionError(f"install: cannot create temp file in {descriptor.cache_dir}") from e
    os.close(fd)
    return Path(name)


def _finalize(tmp_path: Path, dest: Path, *, executable: bool) -> None:
    try:
        if executable:
            mode = tmp_path.stat().st_mode
            tmp_path.chmod(mode | stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH | _EXEC_BITS)
        os.replace(tmp_path, dest)
    except OSError as e:
        raise ProvisionError(f"install: cannot move binary into place at {dest}") from e
