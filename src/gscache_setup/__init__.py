"""gscache setup step package."""

from gscache_setup.types import (
    Arch,
    PlatformKey,
    ArtifactKey,
    CacheEntry,
    ConfigOptions,
    RawConfig,
    PublishedEnvironment,
    SetupInputs,
)
from gscache_setup.errors import (
    SetupError,
    UnsupportedPlatformError,
    UnsupportedArchitectureError,
    VersionLookupFailedError,
    MalformedReleaseError,
    ArtifactDownloadFailedError,
    ArchiveExtractionFailedError,
    ArtifactMissingAfterExtractionError,
    CacheRegistrationFailedError,
    PermissionSetFailedError,
    DaemonStartFailedError,
    ConfigWriteFailedError,
    InvalidInputError,
    InvalidBooleanInputError,
)
from gscache_setup.runner import run_setup, main

__version__ = "0.1.0"

__all__ = [
    # Data model
    "Arch",
    "PlatformKey",
    "ArtifactKey",
    "CacheEntry",
    "ConfigOptions",
    "RawConfig",
    "PublishedEnvironment",
    "SetupInputs",

    # Entry points
    "run_setup",
    "main",

    # Error types
    "SetupError",
    "UnsupportedPlatformError",
    "UnsupportedArchitectureError",
    "VersionLookupFailedError",
    "MalformedReleaseError",
    "ArtifactDownloadFailedError",
    "ArchiveExtractionFailedError",
    "ArtifactMissingAfterExtractionError",
    "CacheRegistrationFailedError",
    "PermissionSetFailedError",
    "DaemonStartFailedError",
    "ConfigWriteFailedError",
    "InvalidInputError",
    "InvalidBooleanInputError",
]
