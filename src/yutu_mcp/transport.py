from __future__ import annotations

import http.client
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol
from urllib.error import HTTPError

# What a Transport (or reading its response body) may raise on a network or protocol failure.
# http.client.HTTPException (BadStatusLine, IncompleteRead, ...) is not an OSError.
TRANSPORT_ERRORS: tuple[type[Exception], ...] = (OSError, ValueError, http.client.HTTPException)


@dataclass
class HttpResponse:
    """
    A single HTTP response, redirects included.

    Redirect responses are returned as-is (never followed here) so callers
    decide how many hops to take.
    """

    status: int
    headers: Mapping[str, str]
    body: BinaryIO | None = None

    def header(self, name: str) -> str | None:
        value = self.headers.get(name)
        return value if value else None

    def read(self, size: int = -1) -> bytes:
        if self.body is None:
            return b""
        return self.body.read(size)

    def close(self) -> None:
        if self.body is not None:
            self.body.close()

    def __enter__(self) -> HttpResponse:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Transport(Protocol):
    def open(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Issue a GET for url and return the raw response without following redirects."""
        raise NotImplementedError


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    # Returning None makes urllib surface 3xx as HTTPError instead of following it.
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None


@dataclass(frozen=True, slots=True)
class UrllibTransport:
    """
    Default transport using stdlib urllib.

    Supports https://, http:// and file:// (useful for offline tests).
    Raises OSError (URLError included) on transport failure.
    """

    def open(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        opener = urllib.request.build_opener(_NoRedirectHandler())
        req = urllib.request.Request(url, headers=dict(headers or {}), method="GET")

        try:
            r = opener.open(req, timeout=timeout)
        except HTTPError as e:
            # Non-2xx (and every 3xx, see _NoRedirectHandler) still carries headers/body.
            return HttpResponse(status=e.code, headers=e.headers or {}, body=e.fp)

        # file:// responses carry no HTTP status.
        status = getattr(r, "status", None) or 200
        return HttpResponse(status=status, headers=r.headers or {}, body=r)
