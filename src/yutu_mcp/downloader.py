from __future__ import annotations

import http.client
import sys
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urljoin

from tqdm import tqdm

from .errors import DownloadFailedError
from .transport import TRANSPORT_ERRORS, HttpResponse, Transport, UrllibTransport

MAX_REDIRECTS = 10
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

_CHUNK_SIZE = 1024 * 1024


def download_to_path(
    url: str,
    dest: Path,
    *,
    transport: Transport | None = None,
    headers: Mapping[str, str] | None = None,
    max_redirects: int = MAX_REDIRECTS,
    show_progress: bool | None = None,
) -> int:
    """
    Stream the resource at url into dest, following redirects.

    Each 3xx response is re-issued against its Location header (relative
    locations resolve against the current URL), at most max_redirects times.
    Any other non-200 status raises DownloadFailedError carrying that status.

    No timeout is applied: a stalled server stalls the download.

    Returns the number of bytes written.
    """
    if transport is None:
        transport = UrllibTransport()

    current = url
    for _ in range(max_redirects + 1):
        try:
            response = transport.open(current, headers=headers, timeout=None)
        except TRANSPORT_ERRORS as e:
            raise DownloadFailedError(f"Failed to download: {current} ({e})", url=current) from e

        with response:
            if response.status in REDIRECT_STATUSES:
                location = response.header("Location")
                if location is None:
                    raise DownloadFailedError(
                        f"Redirect without Location header: {current}",
                        url=current,
                        status=response.status,
                    )
                current = urljoin(current, location)
                continue

            if response.status != 200:
                raise DownloadFailedError(
                    f"Failed to download: {response.status} ({current})",
                    url=current,
                    status=response.status,
                )

            return _stream_to_file(response, dest, url=current, show_progress=show_progress)

    raise DownloadFailedError(
        f"Too many redirects (more than {max_redirects}) starting from: {url}",
        url=url,
    )


def _stream_to_file(
    response: HttpResponse,
    dest: Path,
    *,
    url: str,
    show_progress: bool | None,
) -> int:
    if show_progress is None:
        show_progress = sys.stderr.isatty()

    total = _content_length(response)
    written = 0

    try:
        with (
            dest.open("wb") as f,
            tqdm(
                total=total,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                desc=dest.name,
                disable=not show_progress,
                file=sys.stderr,
                leave=False,
            ) as bar,
        ):
            for chunk in iter(lambda: response.read(_CHUNK_SIZE), b""):
                f.write(chunk)
                written += len(chunk)
                bar.update(len(chunk))
    except (OSError, http.client.HTTPException) as e:
        raise DownloadFailedError(f"Download interrupted: {url} ({e})", url=url) from e

    if total is not None and written != total:
        raise DownloadFailedError(
            f"Incomplete download: got {written} of {total} bytes ({url})",
            url=url,
            status=response.status,
        )
    return written


def _content_length(response: HttpResponse) -> int | None:
    raw = response.header("Content-Length")
    if raw is None:
        return None
    try:
        n = int(raw)
    except ValueError:
        return None
    return n if n >= 0 else None
