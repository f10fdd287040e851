"""Main generation orchestrator.

Takes a ``Config`` and the user's ``Selections`` and produces a complete
Robo.js project directory: ``package.json``, documentation, Robo and tooling
configuration, scaffold files from a kit or a remote template, plugin
configuration, and the ``.env`` file.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from rich.markup import escape

from create_robo.config import Config
from create_robo.manifest import BuiltManifest, ManifestBuilder
from create_robo.manifest.rules import BASE_NODE_OPTIONS
from create_robo.models import Capability, PackageManifest, PluginDescriptor, Selections
from create_robo.plugins import DEFAULT_PLUGINS, PluginRegistry
from create_robo.sources import (
    GitHubClient,
    RemoteSource,
    TemplateSource,
    TemplateSourceResolver,
)
from create_robo.utils import (
    get_package_manager,
    highlight_list,
    print_debug,
    print_section,
    print_step,
    print_warning,
    write_text,
)

from .credentials import CredentialProvisioner, Credentials
from .installer import InstallOrchestrator
from .plugin_config import PluginConfigEmitter, plugin_config_path
from .templates import TemplateRenderer

COLYSEUS_SERVER_PACKAGE = "@robojs/server"


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


@dataclass
class GenerationResult:
    """What a generation run produced and which recoverable steps failed."""

    project_dir: Path
    source: TemplateSource
    manifest: Optional[PackageManifest] = None
    files: list[Path] = field(default_factory=list)
    install_failed: bool = False
    plugins_failed: bool = False
    missing_env: bool = False


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Generates one Robo.js project.

    A run has four stages, in order:
    - package: ``package.json``, docs, ``config/robo.mjs`` and lint/format
      configuration, then dependency installation
    - scaffold: kit copy or remote template download
    - plugins: ``robo add`` registration and per-plugin config files
    - credentials: ``.env`` and, for TypeScript, ``env.d.ts``

    A remote template ships its own ``package.json``, so only the scaffold,
    install, and credentials stages run for it.
    """

    def __init__(
        self,
        config: Config,
        selections: Selections,
        *,
        registry: PluginRegistry = DEFAULT_PLUGINS,
        renderer: Optional[TemplateRenderer] = None,
        resolver: Optional[TemplateSourceResolver] = None,
        installer: Optional[InstallOrchestrator] = None,
    ) -> None:
        self.config = config
        self.selections = selections
        self.registry = registry
        self.spec = config.project_spec
        self.package_manager = config.installer.package_manager or get_package_manager()
        self.renderer = renderer or TemplateRenderer()
        self.resolver = resolver or TemplateSourceResolver(
            GitHubClient(
                api_url=config.network.api_url,
                codeload_url=config.network.codeload_url,
                timeout=config.network.timeout,
            ),
            trusted_origin=config.network.trusted_origin,
            attempts=config.network.download_attempts,
            base_delay=config.network.backoff_base,
            max_delay=config.network.backoff_max,
            on_retry=self._on_retry,
        )
        self.installer = installer or InstallOrchestrator(
            config.working_dir,
            self.package_manager,
            timeout=config.installer.timeout,
            verbose=config.verbose,
        )
        self.plugin_emitter = PluginConfigEmitter(self.renderer, config.plugins_config_dir)
        self.credentials = CredentialProvisioner(self.spec, self.renderer, config.working_dir)

    @property
    def typescript(self) -> bool:
        return self.spec.uses_typescript(self.selections.capabilities)

    @property
    def plugins(self) -> list[PluginDescriptor]:
        return self.registry.resolve(self.selections.plugins)

    # -- Public API --------------------------------------------------------

    async def generate(self, credentials: Credentials = Credentials()) -> GenerationResult:
        """Generate the complete project.

        The template source is resolved before anything is written, so an
        invalid remote URL leaves the file system untouched.

        Raises:
            TemplateSourceError: If the remote template URL is rejected.
            RetryError: If the remote template could not be downloaded.
        """
        source = await self.resolver.resolve(
            self.spec, self.selections.capabilities, self.config.template
        )
        project_dir = self.config.working_dir
        await asyncio.to_thread(project_dir.mkdir, parents=True, exist_ok=True)
        print_debug(f"Using {self.package_manager} in {project_dir}", self.config.verbose)

        result = GenerationResult(project_dir=project_dir, source=source)
        node_options: list[str] = []

        if isinstance(source, RemoteSource):
            result.files = await self.download_template(source)
            outcome = await self.installer.install_existing(self.config.installer.install)
            result.install_failed = outcome.install_failed
            result.manifest = outcome.manifest
        else:
            built = await self.create_package(result)
            node_options = built.node_options
            result.files += await self.resolver.materialize(source, project_dir)
            print_debug(f"Copied kit {source.template.value}", self.config.verbose)
            if self.plugins:
                await self.add_plugins(result)

        await self.apply_credentials(result, credentials, node_options)
        return result

    # -- Stages ------------------------------------------------------------

    async def create_package(self, result: GenerationResult) -> BuiltManifest:
        """Write ``package.json`` and project configuration, then install."""
        language = "TypeScript" if self.typescript else "JavaScript"
        kind = "plugin" if self.spec.is_plugin else "project"
        print_section(f"\U0001f4e6 Creating [cyan]{language}[/cyan] {kind}")

        builder = ManifestBuilder(
            self.spec,
            package_manager=self.package_manager,
            robo_version=self.config.installer.robo_version,
        )
        built = builder.build(self.selections.capabilities, self.plugins)

        context = self._build_context()
        result.files += await self._render_docs(context)
        result.files.append(await self._render_robo_config(context))
        result.files += await self._render_tooling(context)

        outcome = await self.installer.install(built, install=self.config.installer.install)
        result.manifest = outcome.manifest
        result.install_failed = outcome.install_failed
        if not outcome.install_failed:
            features = [c.label for c in self.selections.capabilities if c is not Capability.TYPESCRIPT]
            extra = f" with {highlight_list(features)}" if features else ""
            print_step(f"Project created successfully{extra}.")
        return built

    async def download_template(self, source: RemoteSource) -> list[Path]:
        print_section("\U0001f310 Creating from template")
        files = await self.resolver.materialize(source, self.config.working_dir)
        print_step(
            f"Bootstrapped project successfully from [bold cyan]{escape(source.repo.slug)}[/bold cyan]."
        )
        return files

    async def add_plugins(self, result: GenerationResult) -> None:
        """Register the selected plugins and write their configuration.

        Config files are written even when registration fails, so a later
        manual ``robo add`` picks them up.
        """
        print_section("\U0001f50c Installing plugins")
        plugins = self.plugins
        registered = await self.installer.register_plugins([p.package for p in plugins])
        result.plugins_failed = not registered
        result.files += await self.plugin_emitter.emit(self.spec.name, plugins)

        if Capability.COLYSEUS in self.selections.capabilities:
            path = plugin_config_path(self.config.plugins_config_dir, COLYSEUS_SERVER_PACKAGE)
            print_debug("Overriding server config for Colyseus", self.config.verbose)
            await self.renderer.render_to_file("config/colyseus-server.mjs.j2", path, {})
            if path not in result.files:
                result.files.append(path)

        if registered:
            noun = "Skills" if len(plugins) > 1 else "Skill"
            print_step(f"{noun} acquired: {highlight_list([p.label for p in plugins])}.")

    async def apply_credentials(
        self,
        result: GenerationResult,
        credentials: Credentials,
        node_options: list[str],
    ) -> None:
        print_section("\U0001f511 Setting up credentials")
        provisioned = await self.credentials.provision(
            credentials,
            node_options=node_options or BASE_NODE_OPTIONS,
            plugins=() if isinstance(result.source, RemoteSource) else self.plugins,
            typescript=self.typescript,
        )
        result.missing_env = provisioned.missing_env
        result.files.append(provisioned.env_path)
        if provisioned.env_types_path is not None:
            result.files.append(provisioned.env_types_path)
        if provisioned.missing_env:
            print_warning("Some Discord credentials are empty; add them before running your Robo.")
        print_step("Manage your credentials in the [bold cyan].env[/bold cyan] file.")

    # -- Rendering helpers -------------------------------------------------

    def _build_context(self) -> dict[str, Any]:
        capabilities = self.selections.capabilities
        return {
            "project_name": self.spec.name,
            "plugin_variable_name": plugin_variable_name(self.spec.name),
            "is_app": self.spec.is_app,
            "is_plugin": self.spec.is_plugin,
            "typescript": self.typescript,
            "react": Capability.REACT in capabilities,
            "package_manager": self.package_manager,
        }

    async def _render_docs(self, context: dict[str, Any]) -> list[Path]:
        root = self.config.working_dir
        if self.spec.is_plugin:
            targets = [
                ("docs/plugin-readme.md.j2", root / "README.md"),
                ("docs/plugin-development.md.j2", root / "DEVELOPMENT.md"),
            ]
        else:
            name = "docs/robo-readme-app.md.j2" if self.spec.is_app else "docs/robo-readme.md.j2"
            targets = [(name, root / "README.md")]
        return [
            await self.renderer.render_to_file(template, output, context)
            for template, output in targets
        ]

    async def _render_robo_config(self, context: dict[str, Any]) -> Path:
        await asyncio.to_thread(
            self.config.plugins_config_dir.mkdir, parents=True, exist_ok=True
        )
        return await self.renderer.render_to_file(
            "config/robo.mjs.j2", self.config.config_dir / "robo.mjs", context
        )

    async def _render_tooling(self, context: dict[str, Any]) -> list[Path]:
        root = self.config.working_dir
        files = [await self.renderer.render_to_file("gitignore.j2", root / ".gitignore", context)]
        capabilities = self.selections.capabilities

        if Capability.ESLINT in capabilities:
            eslintrc = root / ".eslintrc.json"
            await asyncio.to_thread(
                write_text, eslintrc, json.dumps(eslint_config(self.typescript), indent=2)
            )
            files.append(eslintrc)
            files.append(
                await self.renderer.render_to_file("eslintignore.j2", root / ".eslintignore", context)
            )

        if Capability.PRETTIER in capabilities:
            files.append(
                await self.renderer.render_to_file(
                    "prettierrc.mjs.j2", root / ".prettierrc.mjs", context
                )
            )
        return files

    def _on_retry(self, attempt: int, error: BaseException, delay: float) -> None:
        print_warning(
            f"Template download failed ({escape(str(error))}); retrying in {delay:.0f}s..."
        )
        print_debug(f"Attempt {attempt} failed: {error!r}", self.config.verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def plugin_variable_name(project_name: str) -> str:
    """Import name suggested in a plugin's README: ``my-cool`` -> ``myCoolPlugin``."""
    words = re.sub(r"[^a-zA-Z0-9]", " ", project_name).split(" ")
    name = "".join(word[:1].upper() + word[1:] for word in words)
    name = name[:1].lower() + name[1:]
    if "plugin" not in name.lower():
        name += "Plugin"
    return name


def eslint_config(typescript: bool) -> dict[str, Any]:
    """The ``.eslintrc.json`` contents."""
    config: dict[str, Any] = {
        "extends": ["eslint:recommended"],
        "env": {"node": True},
        "plugins": [],
        "root": True,
        "rules": {},
    }
    if typescript:
        config["extends"].append("plugin:@typescript-eslint/recommended")
        config["parser"] = "@typescript-eslint/parser"
        config["plugins"].append("@typescript-eslint")
    return config
