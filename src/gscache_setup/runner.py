"""Setup step orchestration: platform, version, cache, fetch, publish."""
import asyncio
from pathlib import Path
from typing import Optional

from gscache_setup import actions
from gscache_setup.binaries import cache
from gscache_setup.binaries.fetcher import ensure_executable, fetch_artifact
from gscache_setup.binaries.platforms import resolve_platform
from gscache_setup.binaries.releases import resolve_version
from gscache_setup.constants import DOWNLOAD_BASE, GITHUB_API_BASE
from gscache_setup.environment import publish
from gscache_setup.errors import log_error
from gscache_setup.logging import configure_logging, get_logger
from gscache_setup.types import ArtifactKey, Decision, Fetch, PublishedEnvironment, Reuse, SetupInputs

logger = get_logger(__name__)


def plan(key: ArtifactKey, root: Optional[Path] = None) -> Decision:
    """Decide between reusing a cached entry and fetching a new one."""
    entry = cache.find(key, root=root)
    if entry is not None:
        return Reuse(entry)
    return Fetch(key)


async def prepare_binary(
    inputs: SetupInputs,
    host_os: Optional[str] = None,
    host_arch: Optional[str] = None,
    root: Optional[Path] = None,
) -> Path:
    """Resolve, cache and return the absolute path of the gscache executable."""
    platform_key = resolve_platform(host_os, host_arch)
    version = await resolve_version(
        inputs.version, inputs.token, api_base=inputs.api_base or GITHUB_API_BASE
    )
    logger.info("setting_up_gscache", version=version, arch=platform_key.arch.value)

    decision = plan(ArtifactKey(version=version, platform=platform_key), root=root)
    if isinstance(decision, Reuse):
        entry = decision.entry
        logger.info("reusing_cached_binary", path=str(entry.path))
    else:
        entry = await fetch_artifact(
            decision.key,
            token=inputs.token,
            compression=inputs.compression,
            download_base=inputs.download_base or DOWNLOAD_BASE,
            root=root,
        )
        logger.info("binary_ready", path=str(entry.path))

    return ensure_executable(entry).absolute()


async def run_setup(
    inputs: SetupInputs,
    host_os: Optional[str] = None,
    host_arch: Optional[str] = None,
    root: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> PublishedEnvironment:
    binary = await prepare_binary(inputs, host_os, host_arch, root)
    published = await publish(
        binary, inputs.config, start=inputs.start_daemon, config_path=config_path
    )
    actions.apply(published)
    logger.info("setup_completed", binary=str(binary))
    return published


def main() -> int:
    """Run the setup step; any failure is reported once and exits non-zero."""
    configure_logging()
    try:
        inputs = actions.read_inputs()
        asyncio.run(run_setup(inputs))
    except Exception as e:
        log_error(e, logger=logger)
        actions.set_failed(str(e))
        return 1
    return 0
