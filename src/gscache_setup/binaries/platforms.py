"""Platform detection and mapping."""
import platform
from typing import Dict, Optional

from gscache_setup.errors import UnsupportedArchitectureError, UnsupportedPlatformError
from gscache_setup.types import Arch, PlatformKey

SUPPORTED_OS = "linux"

# Host machine names as reported by different tools
ARCH_ALIASES: Dict[str, Arch] = {
    "x86_64": Arch.X64,
    "amd64": Arch.X64,
    "x64": Arch.X64,
    "aarch64": Arch.ARM64,
    "arm64": Arch.ARM64,
}

# Release asset naming
ARCH_TOKENS: Dict[Arch, str] = {
    Arch.X64: "x86_64",
    Arch.ARM64: "arm64",
}

# Older releases shipped the executable under a Go-style arch name
LEGACY_ARCH_TOKENS: Dict[Arch, str] = {
    Arch.X64: "amd64",
    Arch.ARM64: "arm64",
}


def resolve_platform(host_os: Optional[str] = None, host_arch: Optional[str] = None) -> PlatformKey:
    """Map the host OS and CPU architecture onto a supported PlatformKey."""
    if host_os is None:
        host_os = platform.system()
    if host_arch is None:
        host_arch = platform.machine()

    if host_os.lower() != SUPPORTED_OS:
        raise UnsupportedPlatformError(host_os)

    arch = ARCH_ALIASES.get(host_arch.lower())
    if arch is None:
        raise UnsupportedArchitectureError(host_arch)

    return PlatformKey(os_name=SUPPORTED_OS, arch=arch)


def arch_token(arch: Arch) -> str:
    return ARCH_TOKENS[arch]


def legacy_arch_token(arch: Arch) -> str:
    return LEGACY_ARCH_TOKENS[arch]
