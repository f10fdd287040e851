"""Shared pytest fixtures for the create-robo test suite.

Provides reusable fixtures for:
- Project specs for each role and authoring mode
- Generation configs rooted in a temporary directory
- A mocked ``run_command`` for the package manager subprocesses
- A recording sleep for retry tests
- A small plugin registry
"""

from __future__ import annotations

import io
import json
import tarfile
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import pytest

from create_robo.config import Config, InstallConfig
from create_robo.models import AuthoringMode, PluginDescriptor, ProjectSpec, Role
from create_robo.plugins import PluginRegistry


# ---------------------------------------------------------------------------
# Project specs
# ---------------------------------------------------------------------------

@pytest.fixture
def bot_spec() -> ProjectSpec:
    return ProjectSpec(name="test-bot", role=Role.BOT, mode=AuthoringMode.STANDALONE)


@pytest.fixture
def app_spec() -> ProjectSpec:
    return ProjectSpec(name="test-app", role=Role.APP, mode=AuthoringMode.STANDALONE)


@pytest.fixture
def plugin_spec() -> ProjectSpec:
    return ProjectSpec(
        name="test-plugin", role=Role.BOT, mode=AuthoringMode.PLUGIN, typescript=True
    )


# ---------------------------------------------------------------------------
# Paths & configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory for configs that write under ``tmp_path`` and never install.

    Usage::

        def test_something(make_config):
            config = make_config(kit=Role.APP, plugin=True)
    """

    def factory(**overrides: Any) -> Config:
        values: dict[str, Any] = {
            "project_name": "test-robo",
            "output_dir": tmp_path,
            "installer": InstallConfig(install=False, package_manager="npm"),
        }
        values.update(overrides)
        return Config(**values)

    return factory


# ---------------------------------------------------------------------------
# Subprocess and timing mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch the installer's ``run_command`` so no package manager runs.

    Returns the ``AsyncMock``; set ``return_value`` or ``side_effect`` to
    simulate failures.
    """
    with patch(
        "create_robo.scaffolder.installer.run_command",
        new_callable=AsyncMock,
        return_value=(0, "", ""),
    ) as mock:
        yield mock


@pytest.fixture
def recorded_sleep() -> AsyncMock:
    """Sleep replacement that returns immediately and records delays."""
    return AsyncMock(return_value=None)


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------

@pytest.fixture
def small_registry() -> PluginRegistry:
    return PluginRegistry({
        "server": PluginDescriptor(
            package="@robojs/server",
            label="Web Server",
            keywords=("server", "web"),
            config={"cors": True},
            env=(("PORT", "3000"),),
        ),
        "local": PluginDescriptor(
            package="local-plugin",
            label="Local",
            keywords=("local",),
            config={"greeting": "Hi from {{name}}", "{{name}}-key": ["{{name}} and {{name}}"]},
        ),
        "bare": PluginDescriptor(package="@robojs/bare", label="Bare"),
    })


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------

def make_tarball(files: dict[str, str]) -> bytes:
    """Build an in-memory ``.tar.gz`` holding *files* (path -> text)."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, text in files.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def template_tarball() -> bytes:
    """Codeload-style archive of ``owner/templates`` at ``main``."""
    return make_tarball({
        "templates-main/README.md": "# root",
        "templates-main/starter/package.json": json.dumps({"name": "starter"}),
        "templates-main/starter/src/index.js": "export default {}",
        "templates-main/other/package.json": json.dumps({"name": "other"}),
    })
