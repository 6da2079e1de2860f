"""Tests for release version resolution."""

import aiohttp
import pytest

from gscache_setup.binaries.releases import is_latest, latest_release_url, resolve_version
from gscache_setup.constants import MAX_RETRIES
from gscache_setup.errors import MalformedReleaseError, VersionLookupFailedError


@pytest.mark.parametrize("requested", [None, "", "  ", "latest", " latest "])
def test_is_latest(requested):
    assert is_latest(requested)


@pytest.mark.parametrize("requested", ["v1.2.3", "v0.1.0-rc1", "Latest"])
def test_is_not_latest(requested):
    assert not is_latest(requested)


def test_latest_release_url():
    assert latest_release_url() == "https://api.github.com/repos/breezewish/gscache/releases/latest"
    assert latest_release_url("http://mirror/") == "http://mirror/repos/breezewish/gscache/releases/latest"


@pytest.mark.asyncio
async def test_resolve_latest(release_server):
    version = await resolve_version("latest", api_base=release_server.api_base)
    assert version == "v1.2.3"
    assert release_server.paths() == ["/repos/breezewish/gscache/releases/latest"]


@pytest.mark.asyncio
@pytest.mark.parametrize("requested", [None, ""])
async def test_resolve_empty_means_latest(release_server, requested):
    release_server.latest = {"tag_name": "v2.0.0", "name": "gscache v2.0.0"}
    assert await resolve_version(requested, api_base=release_server.api_base) == "v2.0.0"


@pytest.mark.asyncio
async def test_concrete_version_passes_through(release_server):
    assert await resolve_version(" v0.9.0 ", api_base=release_server.api_base) == "v0.9.0"
    assert release_server.requests == []


@pytest.mark.asyncio
async def test_token_sent_as_bearer(release_server):
    await resolve_version("latest", token="secret", api_base=release_server.api_base)
    _, headers = release_server.requests[0]
    assert headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_no_token_no_authorization(release_server):
    await resolve_version("latest", api_base=release_server.api_base)
    _, headers = release_server.requests[0]
    assert "Authorization" not in headers


@pytest.mark.asyncio
async def test_non_success_status(release_server):
    release_server.latest_status = 404
    with pytest.raises(VersionLookupFailedError) as exc_info:
        await resolve_version("latest", api_base=release_server.api_base)
    assert exc_info.value.status == 404
    assert "HTTP 404" in str(exc_info.value)
    # Client errors are not retried
    assert len(release_server.requests) == 1


@pytest.mark.asyncio
async def test_transient_server_errors_retried(release_server):
    release_server.latest_failures = 2
    assert await resolve_version("latest", api_base=release_server.api_base) == "v1.2.3"
    assert len(release_server.requests) == 3


@pytest.mark.asyncio
async def test_retry_budget_exhausted(release_server):
    release_server.latest_failures = MAX_RETRIES + 10
    with pytest.raises(VersionLookupFailedError) as exc_info:
        await resolve_version("latest", api_base=release_server.api_base)
    assert exc_info.value.status == 503
    assert len(release_server.requests) == MAX_RETRIES + 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {}, {"tag_name": ""}, {"tag_name": "  "}, {"tag_name": None}, {"tag_name": 123}, [],
])
async def test_missing_tag(release_server, body):
    release_server.latest = body
    with pytest.raises(MalformedReleaseError):
        await resolve_version("latest", api_base=release_server.api_base)


@pytest.mark.asyncio
async def test_invalid_json_wrapped(release_server):
    release_server.latest = "{not json"
    with pytest.raises(VersionLookupFailedError) as exc_info:
        await resolve_version("latest", api_base=release_server.api_base)
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_network_fault_wrapped():
    with pytest.raises(VersionLookupFailedError) as exc_info:
        await resolve_version("latest", api_base="http://127.0.0.1:1")
    assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)
    assert exc_info.value.status is None
