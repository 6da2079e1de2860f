"""Configuration, daemon start and environment handoff for gscache."""
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w

from gscache_setup.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME, GOCACHEPROG_VAR, PROG_SUFFIX
from gscache_setup.errors import ConfigWriteFailedError, DaemonStartFailedError
from gscache_setup.logging import get_logger
from gscache_setup.types import ConfigOptions, GscacheConfig, PublishedEnvironment, RawConfig
from gscache_setup.utils.fs import async_subprocess_run, atomic_write_text

logger = get_logger(__name__)


def default_config_path() -> Path:
    return Path.home() / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def render_config(options: ConfigOptions) -> str:
    """Serialize structured options into the gscache TOML document."""
    document: Dict[str, Any] = {"blob": {"url": options.storage}}
    if options.debug:
        document["log"] = {"level": "debug"}
    return tomli_w.dumps(document)


def write_config(config: GscacheConfig, config_path: Optional[Path] = None) -> Path:
    """Write the config document, replacing whatever was there."""
    config_path = config_path or default_config_path()
    if isinstance(config, RawConfig):
        content = config.document
    else:
        content = render_config(config)

    try:
        atomic_write_text(config_path, content)
    except OSError as e:
        raise ConfigWriteFailedError(str(config_path), str(e)) from e

    logger.info("config_written", path=str(config_path), config=content)
    return config_path


async def start_daemon(binary: Path) -> None:
    """Run ``gscache daemon start`` so a broken binary or config fails this step."""
    logger.info("starting_daemon", binary=str(binary))
    try:
        returncode, stdout, stderr = await async_subprocess_run(str(binary), "daemon", "start")
    except OSError as e:
        raise DaemonStartFailedError(str(e)) from e

    if stdout:
        logger.info("daemon_output", output=stdout.strip())
    if returncode != 0:
        raise DaemonStartFailedError(
            f"exited with code {returncode}", returncode=returncode, stderr=stderr.strip()
        )
    logger.info("daemon_started")


def gocacheprog_value(binary: Path) -> str:
    return f"{binary} {PROG_SUFFIX}"


async def publish(
    binary: Path,
    config: Optional[GscacheConfig] = None,
    start: bool = True,
    config_path: Optional[Path] = None,
) -> PublishedEnvironment:
    """Prepare everything later steps need and describe it.

    Nothing is exported here; the caller applies the returned environment
    once every step has succeeded.
    """
    binary = binary.absolute()

    written: Optional[Path] = None
    if config is not None:
        written = write_config(config, config_path)
    else:
        logger.info("config_skipped", reason="no storage or config input, gscache defaults apply")

    if start:
        await start_daemon(binary)

    return PublishedEnvironment(
        path_entries=(binary.parent,),
        variables={GOCACHEPROG_VAR: gocacheprog_value(binary)},
        config_path=written,
    )
