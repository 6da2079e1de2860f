"""Tool cache lookup and registration.

Layout mirrors the runner's hosted tool cache::

    <root>/<name>/<version>/<arch>/           extracted tree
    <root>/<name>/<version>/<arch>.complete   marker, written last

An entry is only visible once its marker exists, so a lookup can never
observe a half-copied tree.
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import appdirs

from gscache_setup.errors import CacheRegistrationFailedError
from gscache_setup.logging import get_logger
from gscache_setup.types import ArtifactKey, CacheEntry

logger = get_logger(__name__)

TOOL_CACHE_ENV = "RUNNER_TOOL_CACHE"
MARKER_SUFFIX = ".complete"


def cache_root() -> Path:
    """Runner tool cache when set, a per-user cache directory otherwise."""
    runner_cache = os.environ.get(TOOL_CACHE_ENV)
    if runner_cache:
        return Path(runner_cache)
    return Path(appdirs.user_cache_dir("gscache-setup")) / "tool-cache"


def _entry_dir(key: ArtifactKey, root: Optional[Path]) -> Path:
    return (root or cache_root()) / key.name / key.version / key.arch.value


def _marker(entry_dir: Path) -> Path:
    return entry_dir.with_name(entry_dir.name + MARKER_SUFFIX)


def find(key: ArtifactKey, root: Optional[Path] = None) -> Optional[CacheEntry]:
    """Return the cached entry for ``key`` or None. No network, no mutation."""
    entry_dir = _entry_dir(key, root)
    logger.debug("checking_cache", path=str(entry_dir))

    if not entry_dir.is_dir() or not _marker(entry_dir).exists():
        return None
    return CacheEntry(key=key, path=entry_dir)


def register(source_dir: Path, key: ArtifactKey, root: Optional[Path] = None) -> CacheEntry:
    """Copy ``source_dir`` into the cache under ``key`` and mark it complete."""
    entry_dir = _entry_dir(key, root)
    marker = _marker(entry_dir)
    staging: Optional[Path] = None

    try:
        entry_dir.parent.mkdir(parents=True, exist_ok=True)
        # A leftover tree without a marker is from an interrupted run
        marker.unlink(missing_ok=True)
        if entry_dir.exists():
            shutil.rmtree(entry_dir)

        staging = Path(tempfile.mkdtemp(dir=entry_dir.parent, prefix=f".{entry_dir.name}."))
        shutil.copytree(source_dir, staging, symlinks=True, dirs_exist_ok=True)
        os.replace(staging, entry_dir)
        staging = None
        marker.write_text("")
    except OSError as e:
        if staging is not None:
            shutil.rmtree(staging, ignore_errors=True)
        raise CacheRegistrationFailedError(str(entry_dir), str(e)) from e

    logger.info("binary_cached", name=key.name, version=key.version, arch=key.arch.value,
                path=str(entry_dir))
    return CacheEntry(key=key, path=entry_dir)
