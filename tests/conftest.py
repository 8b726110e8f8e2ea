"""Shared fixtures for the devkit test suite.

Provides a throwaway React Native project layout under tmp_path and an
in-memory fake of the remote API that records every call, so sync and
packaging tests run without a server.
"""

import logging
from pathlib import Path

import pytest

from devkit.core.config import Settings
from devkit.files.types import SyncConfig
from devkit.project.config import AirborneConfig
from tests.fakes import FakeRemote

ORG = "acme"
NAMESPACE = "shop"


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """An empty project root with the android build output directory."""
    (tmp_path / "android" / "build" / "generated" / "airborne").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def build_dir(project_dir) -> Path:
    return project_dir / "android" / "build" / "generated" / "airborne"


@pytest.fixture
def write_build_file(build_dir):
    """Write a file into the android build output and return its bytes."""

    def _write(file_path: str, content: bytes) -> bytes:
        path = build_dir / file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return content

    return _write


@pytest.fixture
def sync_config(project_dir) -> SyncConfig:
    return SyncConfig(
        directory_path=str(project_dir),
        platform="android",
        organisation=ORG,
        namespace=NAMESPACE,
        token="test-token",
    )


@pytest.fixture
def airborne_config() -> AirborneConfig:
    return AirborneConfig(organisation=ORG, namespace=NAMESPACE)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url="http://airborne.test",
        CI=False,
        ios_post_write_script="scripts/bundleRC.rb",
    )


@pytest.fixture(autouse=True)
def restore_root_logging():
    """configure_structlog replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
