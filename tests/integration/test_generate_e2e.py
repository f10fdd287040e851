"""Integration tests for end-to-end project generation.

These tests run the real generator against the bundled kits and templates
with dependency installation disabled, then verify that the generated
project directory is complete and well formed.

No package manager, network, or Discord credentials are required.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from create_robo.cli import main
from create_robo.config import Config, InstallConfig
from create_robo.models import Capability, Role, Selections
from create_robo.scaffolder import Credentials, ProjectGenerator
from create_robo.sources.local import KITS_DIR, LocalTemplate

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _generate(
    tmp_path: Path,
    kit: Role,
    capabilities: tuple[Capability, ...],
    plugin: bool = False,
) -> Path:
    config = Config(
        project_name="e2e-robo",
        output_dir=tmp_path,
        kit=kit,
        plugin=plugin,
        installer=InstallConfig(install=False, package_manager="npm"),
    )
    generator = ProjectGenerator(config, Selections(capabilities=capabilities))
    result = await generator.generate(Credentials("123456789", "secret"))
    return result.project_dir


def _kit_files(template: LocalTemplate) -> list[Path]:
    root = KITS_DIR / template.value
    return [p.relative_to(root) for p in root.rglob("*") if p.is_file()]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "kit, capabilities, template",
    [
        (Role.BOT, (), LocalTemplate.BOT_JS),
        (Role.BOT, (Capability.TYPESCRIPT,), LocalTemplate.BOT_TS),
        (Role.APP, (), LocalTemplate.APP_JS),
        (Role.APP, (Capability.TYPESCRIPT,), LocalTemplate.APP_TS),
        (Role.APP, (Capability.REACT,), LocalTemplate.APP_JS_REACT),
        (Role.APP, (Capability.TYPESCRIPT, Capability.REACT), LocalTemplate.APP_TS_REACT),
        (
            Role.APP,
            (Capability.REACT, Capability.COLYSEUS),
            LocalTemplate.ACTIVITY_COLYSEUS_REACT,
        ),
    ],
)
class TestEveryKit:
    """Each kit produces a complete, parseable project."""

    async def test_project_is_complete(self, tmp_path: Path, kit, capabilities, template):
        root = await _generate(tmp_path, kit, capabilities)

        for relative in _kit_files(template):
            assert (root / relative).is_file(), relative

        package = json.loads((root / "package.json").read_text())
        assert package["name"] == "e2e-robo"
        assert package["dependencies"]["robo.js"] == "latest"
        assert list(package["dependencies"]) == sorted(package["dependencies"])
        assert list(package["scripts"]) == sorted(package["scripts"])

        assert (root / "config" / "robo.mjs").is_file()
        assert (root / ".gitignore").is_file()
        assert "DISCORD_CLIENT_ID=123456789" in (root / ".env").read_text()

        for path in root.rglob("*"):
            if path.is_file():
                assert "{{" not in path.read_text(), path

    async def test_regeneration_keeps_env_stable(self, tmp_path: Path, kit, capabilities, template):
        root = await _generate(tmp_path, kit, capabilities)
        first = (root / ".env").read_text()
        await _generate(tmp_path, kit, capabilities)
        assert (root / ".env").read_text() == first


class TestPluginProject:
    async def test_typescript_plugin(self, tmp_path: Path):
        root = await _generate(
            tmp_path, Role.BOT, (Capability.TYPESCRIPT, Capability.ESLINT), plugin=True
        )
        package = json.loads((root / "package.json").read_text())
        assert package["main"] == ".robo/build/index.js"
        assert package["publishConfig"]["access"] == "public"
        assert (root / "DEVELOPMENT.md").is_file()
        eslintrc = json.loads((root / ".eslintrc.json").read_text())
        assert eslintrc["parser"] == "@typescript-eslint/parser"


class TestCommandLine:
    def test_main_generates_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("CREATE_ROBO_KIT", raising=False)
        main([
            "cli-robo",
            "--output", str(tmp_path),
            "--no-install",
            "--package-manager", "npm",
            "--features", "typescript,prettier",
            "--plugins", "",
        ])
        root = tmp_path / "cli-robo"
        assert (root / "src" / "commands" / "ping.ts").is_file()
        assert (root / ".prettierrc.mjs").is_file()
        assert "DISCORD_TOKEN=\n" in (root / ".env").read_text()
