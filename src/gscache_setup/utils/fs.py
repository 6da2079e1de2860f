import asyncio
import os
import tempfile
from pathlib import Path
from typing import Tuple

from gscache_setup.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FILE_MODE = 0o644


async def async_subprocess_run(*args) -> Tuple[int, str, str]:
    """
    Run a command asynchronously and return its exit code, stdout, and stderr.

    Output goes to temporary files rather than pipes, so a background process
    left behind by the command cannot keep this call waiting after it exits.

    :param args: Command and arguments to run
    :return: Tuple of (returncode, stdout, stderr)
    """
    logger.debug("subprocess_exec", cmd=[str(a) for a in args])
    with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
        proc = await asyncio.create_subprocess_exec(
            *args, stdin=asyncio.subprocess.DEVNULL, stdout=out, stderr=err
        )
        returncode = await proc.wait()
        out.seek(0)
        err.seek(0)
        return (
            returncode,
            out.read().decode(errors="replace"),
            err.read().decode(errors="replace"),
        )


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` through a temp file in the same directory, then rename.

    The result gets the permissions a plain ``open(path, "w")`` would give it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        # newline="" keeps the document byte-for-byte
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        tmp_path.chmod(DEFAULT_FILE_MODE & ~_current_umask())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
