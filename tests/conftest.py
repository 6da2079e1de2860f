import io
import os
import tarfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from gscache_setup.types import Arch, ArtifactKey, PlatformKey

FAKE_BINARY = b"#!/bin/sh\nexit 0\n"

RUNNER_VARS = ("GITHUB_PATH", "GITHUB_ENV", "RUNNER_TOOL_CACHE", "RUNNER_DEBUG", "GOCACHEPROG",
               "GSCACHE_SETUP_API_BASE", "GSCACHE_SETUP_DOWNLOAD_BASE", "GSCACHE_SETUP_LOG_FORMAT")


def build_tarball(
    members: Dict[str, bytes],
    compression: str = "gz",
    links: Optional[Dict[str, Tuple[bytes, str]]] = None,
) -> bytes:
    """Build an archive of regular files plus ``links`` as name -> (tar type, target)."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=f"w:{compression}") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
        for name, (link_type, target) in (links or {}).items():
            info = tarfile.TarInfo(name)
            info.type = link_type
            info.linkname = target
            tf.addfile(info)
    return buf.getvalue()


class ReleaseServer:
    """Serves a release index and release assets the way GitHub lays them out."""

    def __init__(self):
        self.latest: object = {"tag_name": "v1.2.3"}
        self.latest_status = 200
        self.latest_failures = 0
        self.asset_failures = 0
        self.assets: Dict[str, bytes] = {}
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.base_url = ""

    @property
    def api_base(self) -> str:
        return self.base_url

    @property
    def download_base(self) -> str:
        return f"{self.base_url}/download"

    def add_asset(self, version: str, asset: str, body: bytes) -> None:
        self.assets[f"{version}/{asset}"] = body

    def paths(self) -> List[str]:
        return [path for path, _ in self.requests]

    async def _latest(self, request: web.Request) -> web.StreamResponse:
        self.requests.append((request.path, dict(request.headers)))
        if self.latest_failures:
            self.latest_failures -= 1
            return web.Response(status=503)
        if self.latest_status != 200:
            return web.Response(status=self.latest_status)
        if isinstance(self.latest, str):
            return web.Response(text=self.latest, content_type="application/json")
        return web.json_response(self.latest)

    async def _asset(self, request: web.Request) -> web.StreamResponse:
        self.requests.append((request.path, dict(request.headers)))
        if self.asset_failures:
            self.asset_failures -= 1
            return web.Response(status=502)
        body = self.assets.get(f"{request.match_info['version']}/{request.match_info['asset']}")
        if body is None:
            return web.Response(status=404)
        return web.Response(body=body, content_type="application/octet-stream")

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/repos/breezewish/gscache/releases/latest", self._latest)
        app.router.add_get("/download/{version}/{asset}", self._asset)
        return app


@pytest.fixture(autouse=True)
def runner_env(tmp_path: Path, monkeypatch):
    """Keep runner variables, HOME and PATH changes local to each test"""
    saved = os.environ.copy()
    for name in list(os.environ):
        if name.startswith("INPUT_") or name in RUNNER_VARS:
            del os.environ[name]
    os.environ["HOME"] = str(tmp_path / "home")
    monkeypatch.setattr("gscache_setup.utils.fetching.RETRY_BASE_DELAY", 0)
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)


@pytest_asyncio.fixture
async def release_server():
    server = ReleaseServer()
    test_server = TestServer(server.make_app())
    await test_server.start_server()
    server.base_url = str(test_server.make_url("")).rstrip("/")
    try:
        yield server
    finally:
        await test_server.close()


@pytest.fixture
def tool_cache(tmp_path: Path) -> Path:
    root = tmp_path / "tool-cache"
    root.mkdir()
    return root


@pytest.fixture
def x64_key() -> ArtifactKey:
    return ArtifactKey(version="v1.2.3", platform=PlatformKey(os_name="linux", arch=Arch.X64))


@pytest.fixture
def tarball():
    return build_tarball


@pytest.fixture
def fake_binary() -> bytes:
    return FAKE_BINARY
