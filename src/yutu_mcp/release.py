from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

from yutu_mcp import RELEASE_REPO

from .errors import MetadataFetchError
from .platforms import HostContext
from .transport import TRANSPORT_ERRORS, Transport, UrllibTransport

_ENV_VERSION = "YUTU_MCP_VERSION"

API_ROOT = "https://api.github.com"
DOWNLOAD_ROOT = "https://github.com"
RELEASES_PAGE = f"{DOWNLOAD_ROOT}/{RELEASE_REPO}/releases/latest"

USER_AGENT = "yutu-mcp-installer"
METADATA_TIMEOUT_SECONDS = 30.0

REQUEST_HEADERS = {"User-Agent": USER_AGENT}
METADATA_HEADERS = {**REQUEST_HEADERS, "Accept": "application/vnd.github+json"}


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    name: str
    download_url: str


@dataclass(frozen=True, slots=True)
class ResolvedSource:
    """Where the binary will be downloaded from, and how that URL was found."""

    url: str
    origin: Literal["metadata", "fallback"]


def configured_version(ctx: HostContext) -> str | None:
    """Pinned release version from YUTU_MCP_VERSION; None means latest."""
    value = ctx.getenv(_ENV_VERSION)
    if value is None or value.lower() == "latest":
        return None
    return value


def release_tag(version: str | None) -> str:
    if version is None or version == "latest":
        return "latest"
    return version if version.startswith("v") else f"v{version}"


def metadata_url(version: str | None = None) -> str:
    tag = release_tag(version)
    if tag == "latest":
        return f"{API_ROOT}/repos/{RELEASE_REPO}/releases/latest"
    return f"{API_ROOT}/repos/{RELEASE_REPO}/releases/tags/{tag}"


def fallback_download_url(name: str, version: str | None = None) -> str:
    """
    Deterministic download URL for a release asset.

    Layout:
      https://github.com/{repo}/releases/download/{latest | v<version>}/{name}
    """
    return f"{DOWNLOAD_ROOT}/{RELEASE_REPO}/releases/download/{release_tag(version)}/{name}"


def fetch_release_assets(transport: Transport, version: str | None = None) -> list[ReleaseAsset]:
    url = metadata_url(version)
    try:
        with transport.open(url, headers=METADATA_HEADERS, timeout=METADATA_TIMEOUT_SECONDS) as r:
            if r.status != 200:
                raise MetadataFetchError(f"Release metadata request failed: {r.status} ({url})")
            raw = r.read()
    except TRANSPORT_ERRORS as e:
        raise MetadataFetchError(f"Release metadata request failed: {url}") from e

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MetadataFetchError(f"Release metadata is not valid JSON: {url}") from e

    return _parse_assets(data, url)


def _parse_assets(data: Any, url: str) -> list[ReleaseAsset]:
    if not isinstance(data, dict) or not isinstance(data.get("assets"), list):
        raise MetadataFetchError(f"Release metadata has no 'assets' list: {url}")

    assets: list[ReleaseAsset] = []
    for item in data["assets"]:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        download_url = item.get("browser_download_url")
        if isinstance(name, str) and isinstance(download_url, str) and download_url:
            assets.append(ReleaseAsset(name=name, download_url=download_url))
    return assets


def find_asset(assets: list[ReleaseAsset], name: str) -> ReleaseAsset | None:
    # Exact, case-sensitive match on the canonical name.
    for asset in assets:
        if asset.name == name:
            return asset
    return None


def resolve_source_url(
    name: str,
    *,
    transport: Transport | None = None,
    version: str | None = None,
) -> ResolvedSource:
    """
    Pick the download URL for the asset called name.

    Asks the release metadata endpoint first. Any failure there (network,
    bad JSON, no asset with that exact name) falls back to the
    deterministic releases/download URL; it is never reported to the user.
    """
    if transport is None:
        transport = UrllibTransport()

    try:
        asset = find_asset(fetch_release_assets(transport, version), name)
        if asset is None:
            raise MetadataFetchError(f"No release asset named {name}")
    except MetadataFetchError:
        return ResolvedSource(url=fallback_download_url(name, version), origin="fallback")

    return ResolvedSource(url=asset.download_url, origin="metadata")
