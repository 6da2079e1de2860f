"""Step inputs and outputs following the GitHub Actions runner conventions.

Inputs arrive as ``INPUT_<NAME>`` variables. Path and environment changes
for later steps are appended to the files named by ``GITHUB_PATH`` and
``GITHUB_ENV``; the current process environment is updated as well.
"""
import os
import sys
import uuid
from pathlib import Path
from typing import Mapping, Optional

from gscache_setup.constants import API_BASE_ENV, COMPRESSION_MODES, DOWNLOAD_BASE_ENV
from gscache_setup.errors import InvalidBooleanInputError, InvalidInputError
from gscache_setup.logging import get_logger
from gscache_setup.types import ConfigOptions, PublishedEnvironment, RawConfig, SetupInputs

logger = get_logger(__name__)

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def _input_var(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get(_input_var(name), "").strip()


def get_boolean_input(
    name: str, default: bool = False, environ: Optional[Mapping[str, str]] = None
) -> bool:
    """Parse a boolean input using the YAML 1.2 core schema."""
    value = get_input(name, environ)
    if not value:
        return default
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InvalidBooleanInputError(name, value, "true | True | TRUE | false | False | FALSE")


def read_inputs(environ: Optional[Mapping[str, str]] = None) -> SetupInputs:
    """Collect every step input into a SetupInputs value."""
    environ = os.environ if environ is None else environ

    raw = get_input("config", environ)
    storage = get_input("storage", environ)
    debug = get_boolean_input("debug", environ=environ)

    config = None
    if raw:
        if storage or debug:
            logger.warning("config_inputs_ignored", reason="raw config given", ignored="storage, debug")
        # Raw documents keep their exact bytes, including surrounding whitespace
        config = RawConfig(document=environ[_input_var("config")])
    elif storage:
        config = ConfigOptions(storage=storage, debug=debug)
    elif debug:
        logger.warning("config_inputs_ignored", reason="no storage given", ignored="debug")

    compression = get_input("compression", environ) or None
    if compression is not None and compression not in COMPRESSION_MODES:
        raise InvalidInputError("compression", compression, " | ".join(sorted(COMPRESSION_MODES)))

    return SetupInputs(
        version=get_input("version", environ) or None,
        token=get_input("github-token", environ) or None,
        config=config,
        start_daemon=get_boolean_input("start-daemon", default=True, environ=environ),
        compression=compression,
        api_base=environ.get(API_BASE_ENV) or None,
        download_base=environ.get(DOWNLOAD_BASE_ENV) or None,
    )


def _append_file_command(env_name: str, line: str) -> bool:
    file_path = os.environ.get(env_name)
    if not file_path:
        return False
    with open(file_path, "a", encoding="utf-8") as f:
        f.write(line + "\n")
    return True


def add_path(path: Path) -> None:
    """Prepend ``path`` to PATH for this process and every later step."""
    _append_file_command("GITHUB_PATH", str(path))
    os.environ["PATH"] = f"{path}{os.pathsep}{os.environ.get('PATH', '')}"
    logger.info("path_added", path=str(path))


def export_variable(name: str, value: str) -> None:
    """Set ``name`` for this process and every later step."""
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError("Unexpected input: value should not contain the delimiter")
    _append_file_command("GITHUB_ENV", f"{name}<<{delimiter}\n{value}\n{delimiter}")
    os.environ[name] = value
    logger.info("variable_exported", name=name, value=value)


def apply(published: PublishedEnvironment) -> None:
    for entry in published.path_entries:
        add_path(entry)
    for name, value in published.variables.items():
        export_variable(name, value)


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_failed(message: str) -> None:
    """Report the terminal failure the way the runner annotates it."""
    sys.stdout.write(f"::error::{_escape_data(message)}\n")
    sys.stdout.flush()
