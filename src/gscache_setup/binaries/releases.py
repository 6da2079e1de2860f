"""Release version resolution for gscache."""
import asyncio
from typing import Optional

import aiohttp

from gscache_setup.constants import (
    GITHUB_API_BASE,
    GITHUB_REPOS_PATH,
    GSCACHE_OWNER,
    GSCACHE_REPO,
    LATEST,
    LATEST_PATH,
    RELEASES_PATH,
)
from gscache_setup.errors import MalformedReleaseError, VersionLookupFailedError
from gscache_setup.logging import get_logger
from gscache_setup.utils.fetching import auth_headers, fetch_json

logger = get_logger(__name__)


def is_latest(requested: Optional[str]) -> bool:
    """True when ``requested`` asks for the newest published release."""
    return not requested or not requested.strip() or requested.strip() == LATEST


def latest_release_url(api_base: str = GITHUB_API_BASE) -> str:
    return (
        f"{api_base.rstrip('/')}/{GITHUB_REPOS_PATH}/{GSCACHE_OWNER}/{GSCACHE_REPO}"
        f"/{RELEASES_PATH}/{LATEST_PATH}"
    )


async def get_github_latest_release(
    token: Optional[str] = None,
    api_base: str = GITHUB_API_BASE,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """Return the tag of the newest gscache release."""
    url = latest_release_url(api_base)
    try:
        status, release = await fetch_json(url, headers=auth_headers(token), session=session)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise VersionLookupFailedError(str(e) or e.__class__.__name__) from e

    if status != 200:
        raise VersionLookupFailedError(f"HTTP {status}", status=status)

    tag = release.get("tag_name") if isinstance(release, dict) else None
    if not isinstance(tag, str) or not tag.strip():
        raise MalformedReleaseError()
    return tag.strip()


async def resolve_version(
    requested: Optional[str],
    token: Optional[str] = None,
    api_base: str = GITHUB_API_BASE,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """Turn a version request into a concrete release tag.

    Concrete tags pass through untouched; whether they exist is only found
    out when the archive is downloaded.
    """
    if not is_latest(requested):
        return requested.strip()

    logger.info("resolving_latest_version", owner=GSCACHE_OWNER, repo=GSCACHE_REPO)
    version = await get_github_latest_release(token, api_base, session)
    logger.info("resolved_latest_version", version=version)
    return version
