"""Tests for host platform resolution."""

from unittest.mock import patch

import pytest

from gscache_setup.binaries.platforms import (
    arch_token,
    legacy_arch_token,
    resolve_platform,
)
from gscache_setup.errors import UnsupportedArchitectureError, UnsupportedPlatformError
from gscache_setup.types import Arch, PlatformKey


@pytest.mark.parametrize(
    "host_os,host_arch,expected",
    [
        ("Linux", "x86_64", Arch.X64),
        ("linux", "amd64", Arch.X64),
        ("Linux", "x64", Arch.X64),
        ("Linux", "aarch64", Arch.ARM64),
        ("LINUX", "arm64", Arch.ARM64),
    ],
)
def test_resolve_supported(host_os, host_arch, expected):
    key = resolve_platform(host_os, host_arch)
    assert key == PlatformKey(os_name="linux", arch=expected)


@pytest.mark.parametrize("host_os", ["Darwin", "Windows", "FreeBSD", ""])
def test_resolve_unsupported_os(host_os):
    with pytest.raises(UnsupportedPlatformError) as exc_info:
        resolve_platform(host_os, "x86_64")
    assert exc_info.value.details == {"os": host_os}


@pytest.mark.parametrize("host_arch", ["i386", "armv7l", "riscv64", "ppc64le", "s390x"])
def test_resolve_unsupported_arch(host_arch):
    with pytest.raises(UnsupportedArchitectureError) as exc_info:
        resolve_platform("Linux", host_arch)
    assert host_arch in str(exc_info.value)


def test_os_checked_before_arch():
    with pytest.raises(UnsupportedPlatformError):
        resolve_platform("Darwin", "sparc")


def test_tokens_are_stable():
    first = resolve_platform("Linux", "x86_64")
    second = resolve_platform("Linux", "amd64")
    assert first == second
    assert arch_token(first.arch) == arch_token(second.arch) == "x86_64"
    assert arch_token(Arch.ARM64) == "arm64"
    assert legacy_arch_token(Arch.X64) == "amd64"


def test_resolve_defaults_to_host():
    with patch("platform.system", return_value="Linux"), \
         patch("platform.machine", return_value="aarch64"):
        assert resolve_platform().arch == Arch.ARM64

    with patch("platform.system", return_value="Darwin"), \
         patch("platform.machine", return_value="arm64"):
        with pytest.raises(UnsupportedPlatformError):
            resolve_platform()
