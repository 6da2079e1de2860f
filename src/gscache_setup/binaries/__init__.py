"""Binary acquisition: platform, version, cache and fetch."""
from gscache_setup.binaries.platforms import resolve_platform
from gscache_setup.binaries.releases import resolve_version
from gscache_setup.binaries.cache import find, register
from gscache_setup.binaries.fetcher import fetch_artifact, ensure_executable

__all__ = [
    "resolve_platform",
    "resolve_version",
    "find",
    "register",
    "fetch_artifact",
    "ensure_executable",
]
