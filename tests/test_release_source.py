from __future__ import annotations

import pytest
from _fakes import FakeTransport, ok, release_json

from yutu_mcp.errors import MetadataFetchError
from yutu_mcp.platforms import HostContext
from yutu_mcp.release import (
    USER_AGENT,
    configured_version,
    fallback_download_url,
    fetch_release_assets,
    metadata_url,
    release_tag,
    resolve_source_url,
)

NAME = "yutu-linux-amd64"
LATEST_META = "https://api.github.com/repos/eat-pray-ai/yutu/releases/latest"
ASSET_URL = "https://github.com/eat-pray-ai/yutu/releases/download/v1.0.0/yutu-linux-amd64"
FALLBACK_URL = "https://github.com/eat-pray-ai/yutu/releases/download/latest/yutu-linux-amd64"


def test_metadata_match_uses_asset_download_url() -> None:
    t = FakeTransport({LATEST_META: release_json({NAME: ASSET_URL, "yutu-darwin-arm64": "x"})})

    src = resolve_source_url(NAME, transport=t)

    assert src.url == ASSET_URL
    assert src.origin == "metadata"
    assert t.calls == [LATEST_META]
    assert t.headers_seen[0]["User-Agent"] == USER_AGENT


def test_metadata_unreachable_falls_back_to_deterministic_url() -> None:
    t = FakeTransport()  # every request fails

    src = resolve_source_url(NAME, transport=t)

    assert src.url == FALLBACK_URL
    assert src.origin == "fallback"
    assert t.calls == [LATEST_META]


def test_no_matching_asset_falls_back() -> None:
    t = FakeTransport({LATEST_META: release_json({"yutu-darwin-arm64": "x"})})
    assert resolve_source_url(NAME, transport=t).url == FALLBACK_URL


def test_asset_match_is_case_sensitive() -> None:
    t = FakeTransport({LATEST_META: release_json({NAME.upper(): ASSET_URL})})
    assert resolve_source_url(NAME, transport=t).origin == "fallback"


@pytest.mark.parametrize(
    "route",
    [
        ok(b"not json"),
        ok(b'{"message": "API rate limit exceeded"}'),
        ok(b"[]"),
        (403, {}, b'{"message": "Forbidden"}'),
        (500, {}, b""),
    ],
)
def test_bad_metadata_falls_back(route) -> None:
    t = FakeTransport({LATEST_META: route})
    assert resolve_source_url(NAME, transport=t).url == FALLBACK_URL


def test_fetch_release_assets_raises_metadata_error() -> None:
    with pytest.raises(MetadataFetchError):
        _ = fetch_release_assets(FakeTransport({LATEST_META: ok(b"{}")}))


def test_malformed_asset_entries_are_skipped() -> None:
    body = b'{"assets": [1, {"name": "a"}, {"name": "b", "browser_download_url": "u"}]}'
    assets = fetch_release_assets(FakeTransport({LATEST_META: ok(body)}))
    assert [(a.name, a.download_url) for a in assets] == [("b", "u")]


@pytest.mark.parametrize(
    "version,tag",
    [(None, "latest"), ("latest", "latest"), ("1.2.3", "v1.2.3"), ("v1.2.3", "v1.2.3")],
)
def test_release_tag(version, tag) -> None:
    assert release_tag(version) == tag


def test_pinned_version_uses_tag_endpoints() -> None:
    assert metadata_url("1.2.3").endswith("/repos/eat-pray-ai/yutu/releases/tags/v1.2.3")
    assert fallback_download_url(NAME, "1.2.3") == (
        "https://github.com/eat-pray-ai/yutu/releases/download/v1.2.3/yutu-linux-amd64"
    )

    t = FakeTransport()
    src = resolve_source_url(NAME, transport=t, version="1.2.3")
    assert t.calls == [metadata_url("1.2.3")]
    assert src.url.endswith("/download/v1.2.3/yutu-linux-amd64")


def test_configured_version_from_environment() -> None:
    assert configured_version(HostContext("Linux", "x86_64", {})) is None
    assert configured_version(HostContext("Linux", "x86_64", {"YUTU_MCP_VERSION": "latest"})) is None
    assert configured_version(HostContext("Linux", "x86_64", {"YUTU_MCP_VERSION": "0.9.8"})) == "0.9.8"
