"""Download, unpack and register gscache release archives."""
import stat
import tempfile
from pathlib import Path
from typing import Optional

import aiohttp

from gscache_setup.binaries import cache
from gscache_setup.binaries.platforms import arch_token, legacy_arch_token
from gscache_setup.constants import (
    ASSET_TEMPLATE,
    COMPRESSION_MODES,
    DEFAULT_COMPRESSION,
    DOWNLOAD_BASE,
    LEGACY_BINARY_TEMPLATE,
)
from gscache_setup.errors import ArtifactMissingAfterExtractionError, PermissionSetFailedError
from gscache_setup.logging import get_logger
from gscache_setup.types import ArtifactKey, CacheEntry
from gscache_setup.utils.fetching import auth_headers, download_file, extract_archive

logger = get_logger(__name__)

EXECUTABLE_MODE = 0o755


def download_url(
    key: ArtifactKey,
    compression: Optional[str] = None,
    download_base: str = DOWNLOAD_BASE,
) -> str:
    """Release asset URL for ``key``, e.g. ``.../v1.2.3/gscache_Linux_x86_64.tar.gz``."""
    asset = ASSET_TEMPLATE.format(
        name=key.name,
        arch_token=arch_token(key.arch),
        ext=compression or DEFAULT_COMPRESSION,
    )
    return f"{download_base.rstrip('/')}/{key.version}/{asset}"


def normalize_layout(extracted_dir: Path, key: ArtifactKey) -> Path:
    """Rename the legacy executable to the canonical name when needed.

    Early releases shipped ``gscache_linux_<arch>`` instead of ``gscache``.
    A missing legacy name is only worth a warning; the existence check
    that follows decides whether the run fails.
    """
    binary = extracted_dir / key.name
    if binary.exists():
        return binary

    legacy = extracted_dir / LEGACY_BINARY_TEMPLATE.format(
        name=key.name, arch_token=legacy_arch_token(key.arch)
    )
    if legacy.exists():
        logger.info("renaming_legacy_binary", source=legacy.name, target=key.name)
        legacy.rename(binary)
    else:
        logger.warning("binary_name_unexpected", expected=key.name, legacy=legacy.name,
                       found=sorted(p.name for p in extracted_dir.iterdir()))
    return binary


def _check_regular_file(binary: Path) -> None:
    if binary.is_symlink():
        raise ArtifactMissingAfterExtractionError(str(binary), "executable is a symlink")
    if not binary.is_file():
        raise ArtifactMissingAfterExtractionError(str(binary))


def ensure_executable(entry: CacheEntry) -> Path:
    """Make the entry's executable runnable by the current user."""
    binary = entry.binary
    _check_regular_file(binary)
    try:
        binary.chmod(EXECUTABLE_MODE)
    except OSError as e:
        raise PermissionSetFailedError(str(binary), str(e)) from e

    if not binary.stat().st_mode & stat.S_IXUSR:
        raise PermissionSetFailedError(str(binary), "execute bit not set after chmod")
    return binary


async def fetch_artifact(
    key: ArtifactKey,
    token: Optional[str] = None,
    compression: Optional[str] = None,
    download_base: str = DOWNLOAD_BASE,
    root: Optional[Path] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> CacheEntry:
    """Download the release archive for ``key`` and register it in the tool cache."""
    compression = compression or DEFAULT_COMPRESSION
    if compression not in COMPRESSION_MODES:
        raise ValueError(f"Unsupported archive compression: {compression}")
    url = download_url(key, compression, download_base)
    logger.info("downloading_binary", url=url)

    if token:
        logger.info("using_github_token")
    else:
        logger.warning("no_github_token", hint="downloading may encounter rate limits")

    with tempfile.TemporaryDirectory(prefix="gscache-setup-") as tmpdir:
        tmp_path = Path(tmpdir)
        archive_path = tmp_path / url.rsplit("/", 1)[-1]
        extracted_dir = tmp_path / "extracted"

        await download_file(url, archive_path, headers=auth_headers(token), session=session)
        logger.info("binary_downloaded", path=str(archive_path))

        extract_archive(archive_path, extracted_dir, compression)
        binary = normalize_layout(extracted_dir, key)
        _check_regular_file(binary)

        logger.info("installing_to_cache", extracted=str(extracted_dir))
        entry = cache.register(extracted_dir, key, root=root)

    ensure_executable(entry)
    return entry
