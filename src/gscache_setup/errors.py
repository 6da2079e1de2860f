"""Error handling for gscache setup."""
from typing import Any, Dict, Optional

import structlog

from gscache_setup.logging import get_logger


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None
) -> None:
    """Log an error with context."""
    logger = logger or get_logger(__name__)

    error_info: Dict[str, Any] = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, SetupError) and error.details:
        error_info["details"] = error.details
    if error.__cause__ is not None:
        error_info["cause"] = repr(error.__cause__)

    logger.error("setup_failed", **error_info)


class SetupError(Exception):
    """Base error class for the setup step. Every subclass is fatal."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedPlatformError(SetupError):
    """Host operating system has no published gscache build."""
    def __init__(self, os_name: str):
        super().__init__(
            f"Unsupported platform: {os_name}. Only Linux is currently supported.",
            details={"os": os_name}
        )


class UnsupportedArchitectureError(SetupError):
    """Host CPU architecture has no published gscache build."""
    def __init__(self, arch: str):
        super().__init__(
            f"Unsupported architecture: {arch}. Only x64 (amd64) and arm64 are supported.",
            details={"arch": arch}
        )


class VersionLookupFailedError(SetupError):
    """Release index query failed."""
    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(
            f"Failed to fetch latest gscache version: {reason}",
            details={"status": status} if status is not None else {}
        )
        self.status = status


class MalformedReleaseError(SetupError):
    """Release index answered without a tag."""
    def __init__(self):
        super().__init__("Latest release tag not found")


class ArtifactDownloadFailedError(SetupError):
    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        details: Dict[str, Any] = {"url": url}
        if status is not None:
            details["status"] = status
        super().__init__(f"Failed to download {url}: {reason}", details=details)
        self.status = status


class ArchiveExtractionFailedError(SetupError):
    def __init__(self, archive: str, reason: str):
        super().__init__(
            f"Failed to extract {archive}: {reason}",
            details={"archive": archive}
        )


class ArtifactMissingAfterExtractionError(SetupError):
    """Expected executable is not where the archive layout says it is."""
    def __init__(self, binary_path: str, reason: Optional[str] = None):
        message = f"gscache binary not found after extraction {binary_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, details={"binary_path": binary_path})


class CacheRegistrationFailedError(SetupError):
    def __init__(self, destination: str, reason: str):
        super().__init__(
            f"Failed to cache gscache binary at {destination}: {reason}",
            details={"destination": destination}
        )


class PermissionSetFailedError(SetupError):
    def __init__(self, binary_path: str, reason: str):
        super().__init__(
            f"Failed to make {binary_path} executable: {reason}",
            details={"binary_path": binary_path}
        )


class DaemonStartFailedError(SetupError):
    """``gscache daemon start`` could not be spawned or exited non-zero."""
    def __init__(self, reason: str, returncode: Optional[int] = None, stderr: str = ""):
        details: Dict[str, Any] = {}
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr
        super().__init__(f"Failed to start gscache daemon: {reason}", details=details)
        self.returncode = returncode


class ConfigWriteFailedError(SetupError):
    def __init__(self, config_path: str, reason: str):
        super().__init__(
            f"Failed to write gscache configuration {config_path}: {reason}",
            details={"config_path": config_path}
        )


class InvalidInputError(SetupError):
    """A step input has a value outside the accepted set."""
    def __init__(self, name: str, value: str, expected: str, message: Optional[str] = None):
        super().__init__(
            message or f"Invalid value for input {name}: {value!r}, expected one of: {expected}",
            details={"input": name, "value": value}
        )


class InvalidBooleanInputError(InvalidInputError):
    def __init__(self, name: str, value: str, expected: str):
        super().__init__(
            name,
            value,
            expected,
            message=(
                f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
                f"Support boolean input list: `{expected}`"
            ),
        )
