"""Per-plugin configuration files under ``config/plugins/``.

Scoped packages such as ``@robojs/ai`` are written to
``config/plugins/robojs/ai.mjs``; unscoped packages to
``config/plugins/<name>.mjs``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from create_robo.models import PluginDescriptor
from create_robo.plugins import NAME_PLACEHOLDER

from .templates import TemplateRenderer

CONFIG_EXTENSION = "mjs"


def substitute_placeholder(value: Any, placeholder: str, replacement: str) -> Any:
    """Return a deep copy of *value* with every *placeholder* replaced.

    Replacement applies to all occurrences inside every string, including
    mapping keys.  The input is never modified.
    """
    if isinstance(value, str):
        return value.replace(placeholder, replacement)
    if isinstance(value, dict):
        return {
            substitute_placeholder(key, placeholder, replacement): substitute_placeholder(
                item, placeholder, replacement
            )
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [substitute_placeholder(item, placeholder, replacement) for item in value]
    return value


def plugin_config_path(plugins_dir: Path, package: str, extension: str = CONFIG_EXTENSION) -> Path:
    """Where the configuration for *package* lives inside *plugins_dir*."""
    parts = package.removeprefix("@").split("/")
    return plugins_dir.joinpath(*parts[:-1], f"{parts[-1]}.{extension}")


class PluginConfigEmitter:
    """Writes ``export default {...}`` config modules for selected plugins."""

    TEMPLATE = "config/plugin.mjs.j2"

    def __init__(self, renderer: TemplateRenderer, plugins_dir: Path) -> None:
        self.renderer = renderer
        self.plugins_dir = plugins_dir

    async def emit(
        self,
        project_name: str,
        plugins: Iterable[PluginDescriptor],
    ) -> list[Path]:
        """Write one config file per plugin that declares a config template.

        Files are written concurrently.

        Raises:
            ValueError: If two plugins would write the same file.
        """
        targets: dict[Path, dict[str, Any]] = {}
        for plugin in plugins:
            if plugin.config is None:
                continue
            path = plugin_config_path(self.plugins_dir, plugin.package)
            if path in targets:
                raise ValueError(f"Duplicate plugin config target: {path}")
            targets[path] = substitute_placeholder(plugin.config, NAME_PLACEHOLDER, project_name)

        return list(
            await asyncio.gather(
                *(self.write(path, config) for path, config in targets.items())
            )
        )

    async def write(self, path: Path, config: dict[str, Any]) -> Path:
        return await self.renderer.render_to_file(self.TEMPLATE, path, {"config": config})
