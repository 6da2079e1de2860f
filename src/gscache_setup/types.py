"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from gscache_setup.constants import ARTIFACT_NAME


class Arch(Enum):
    X64 = "x64"
    ARM64 = "arm64"


@dataclass(frozen=True)
class PlatformKey:
    """Supported host platform"""
    os_name: str
    arch: Arch


@dataclass(frozen=True)
class ArtifactKey:
    """Identity of one cached installation"""
    version: str
    platform: PlatformKey
    name: str = ARTIFACT_NAME

    @property
    def arch(self) -> Arch:
        return self.platform.arch


@dataclass(frozen=True)
class CacheEntry:
    """Registered tool-cache directory for one ArtifactKey"""
    key: ArtifactKey
    path: Path

    @property
    def binary(self) -> Path:
        return self.path / self.key.name


@dataclass(frozen=True)
class Reuse:
    """Cache hit: use the entry as is"""
    entry: CacheEntry


@dataclass(frozen=True)
class Fetch:
    """Cache miss: download, extract and register the key"""
    key: ArtifactKey


Decision = Union[Reuse, Fetch]


@dataclass(frozen=True)
class ConfigOptions:
    """Structured options rendered into the gscache config document"""
    storage: str
    debug: bool = False


@dataclass(frozen=True)
class RawConfig:
    """Pre-rendered config document, written verbatim"""
    document: str


GscacheConfig = Union[ConfigOptions, RawConfig]


@dataclass(frozen=True)
class PublishedEnvironment:
    """State handed to later pipeline steps"""
    path_entries: Tuple[Path, ...]
    variables: Dict[str, str] = field(default_factory=dict)
    config_path: Optional[Path] = None


@dataclass(frozen=True)
class SetupInputs:
    """Step inputs"""
    version: Optional[str] = None
    token: Optional[str] = None
    config: Optional[GscacheConfig] = None
    start_daemon: bool = True
    compression: Optional[str] = None
    api_base: Optional[str] = None
    download_base: Optional[str] = None
