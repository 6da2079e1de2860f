import asyncio
import sys
import tarfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import aiohttp

from gscache_setup.constants import COMPRESSION_MODES, MAX_RETRIES, RETRY_BASE_DELAY, USER_AGENT
from gscache_setup.errors import ArchiveExtractionFailedError, ArtifactDownloadFailedError
from gscache_setup.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=300)
CHUNK_SIZE = 8192


def auth_headers(token: Optional[str]) -> Dict[str, str]:
    """Build request headers, with a bearer token when one is given."""
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def create_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(timeout=DEFAULT_TIMEOUT)


async def _backoff(attempt: int, base_delay: Optional[float]) -> None:
    delay = RETRY_BASE_DELAY if base_delay is None else base_delay
    await asyncio.sleep(delay * 2 ** attempt)


async def fetch_json(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None,
    max_retries: int = MAX_RETRIES,
    base_delay: Optional[float] = None,
) -> Tuple[int, Any]:
    """GET a JSON document and return (status, payload).

    Connection faults and 5xx answers are retried up to ``max_retries``
    times. The payload is only decoded for a 200 answer and is None
    otherwise. The last connection fault is re-raised once the budget is
    spent.
    """
    if session is None:
        async with create_session() as session:
            return await fetch_json(url, headers, session, max_retries, base_delay)

    for attempt in range(max_retries + 1):
        try:
            async with session.get(url, headers=headers) as response:
                if response.status >= 500 and attempt < max_retries:
                    logger.warning(
                        "request_retry", url=url, status=response.status, attempt=attempt + 1
                    )
                elif response.status != 200:
                    return response.status, None
                else:
                    return response.status, await response.json(content_type=None)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            if attempt == max_retries:
                raise
            logger.warning("request_retry", url=url, error=str(e), attempt=attempt + 1)
        await _backoff(attempt, base_delay)

    raise AssertionError("unreachable")


async def download_file(
    url: str,
    dest: Path,
    headers: Optional[Dict[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None,
    max_retries: int = MAX_RETRIES,
    base_delay: Optional[float] = None,
) -> Path:
    """Stream ``url`` into ``dest``. A partial file never survives a failure."""
    if session is None:
        async with create_session() as session:
            return await download_file(url, dest, headers, session, max_retries, base_delay)

    for attempt in range(max_retries + 1):
        try:
            async with session.get(url, headers=headers) as response:
                if response.status >= 500 and attempt < max_retries:
                    logger.warning(
                        "download_retry", url=url, status=response.status, attempt=attempt + 1
                    )
                elif response.status != 200:
                    raise ArtifactDownloadFailedError(
                        url, f"unexpected HTTP status {response.status}", status=response.status
                    )
                else:
                    with open(dest, "wb") as f:
                        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                            f.write(chunk)
                    logger.debug("download_complete", url=url, size=dest.stat().st_size)
                    return dest
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            dest.unlink(missing_ok=True)
            if attempt == max_retries:
                raise ArtifactDownloadFailedError(url, str(e) or e.__class__.__name__) from e
            logger.warning("download_retry", url=url, error=str(e), attempt=attempt + 1)
        except ArtifactDownloadFailedError:
            dest.unlink(missing_ok=True)
            raise
        await _backoff(attempt, base_delay)

    raise AssertionError("unreachable")


def _validate_member(member: tarfile.TarInfo, dest_dir: Path) -> None:
    root = dest_dir.resolve()
    target = (root / member.name).resolve()
    if not target.is_relative_to(root):
        raise ArchiveExtractionFailedError(
            member.name, "archive member attempts directory traversal"
        )

    # Symlink targets are relative to the member, hardlink targets to the archive root
    if member.issym():
        link_target = (target.parent / member.linkname).resolve()
    elif member.islnk():
        link_target = (root / member.linkname).resolve()
    else:
        return
    if not link_target.is_relative_to(root):
        raise ArchiveExtractionFailedError(
            member.name, f"archive link points outside the extraction directory: {member.linkname}"
        )


def extract_archive(archive_path: Path, dest_dir: Path, compression: str) -> Path:
    """Extract a tarball whose inner stream uses ``compression``."""
    mode = COMPRESSION_MODES.get(compression)
    if mode is None:
        raise ValueError(f"Unsupported archive compression: {compression}")

    logger.debug("extract_archive", archive=str(archive_path), dest=str(dest_dir), mode=mode)
    dest_dir.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, mode) as archive:
            for member in archive.getmembers():
                _validate_member(member, dest_dir)
            if sys.version_info >= (3, 12):
                archive.extractall(dest_dir, filter="data")
            else:
                archive.extractall(dest_dir)
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveExtractionFailedError(archive_path.name, str(e)) from e

    logger.debug("archive_extracted", archive=str(archive_path), extracted_to=str(dest_dir))
    return dest_dir
