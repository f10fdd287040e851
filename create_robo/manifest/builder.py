"""Manifest builder: assembles ``package.json`` from the selections of a run.

The builder moves through three phases.  *Seed* writes the base fields for
the authoring mode, *accumulate* applies the rule table for the role and each
selected capability, and *finalize* sorts every collection and produces the
``PackageManifest``.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

from create_robo.models import (
    Capability,
    PackageManifest,
    PluginDescriptor,
    ProjectSpec,
    PublishConfig,
)
from create_robo.selection import available_capabilities
from create_robo.utils import run_prefix, sort_object_keys

from .rules import (
    BASE_KEYWORDS,
    BASE_NODE_OPTIONS,
    CAPABILITY_RULES,
    COMMON_RULES,
    CORE_PEER_RANGE,
    CORE_RUNTIME_PACKAGE,
    PLUGIN_SCRIPTS,
    ROBO_SCRIPTS,
    ROLE_RULES,
    ManifestRule,
    RuleContext,
)

LATEST = "latest"

_PLUGIN_AUTHOR = "Your Name <email>"
_PLUGIN_FILES = [".robo/", "src/", "LICENSE", "README.md"]
_PLUGIN_MAIN = ".robo/build/index.js"


class BuilderPhase(str, Enum):
    SEED = "seed"
    ACCUMULATE = "accumulate"
    FINALIZED = "finalized"


@dataclass
class ManifestDraft:
    """Mutable accumulator owned by ``ManifestBuilder``.

    Dependency entries are ``name`` or ``name@version`` tokens.
    """

    keywords: list[str] = field(default_factory=list)
    scripts: dict[str, str] = field(default_factory=dict)
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    peer_dependencies: dict[str, str] = field(default_factory=dict)
    node_options: list[str] = field(default_factory=list)

    def add_keywords(self, keywords: Iterable[str]) -> None:
        _extend_unique(self.keywords, keywords)

    def add_dependencies(self, tokens: Iterable[str]) -> None:
        _extend_unique(self.dependencies, tokens)

    def add_dev_dependencies(self, tokens: Iterable[str]) -> None:
        _extend_unique(self.dev_dependencies, tokens)

    def add_node_options(self, options: Iterable[str]) -> None:
        _extend_unique(self.node_options, options)


@dataclass(frozen=True)
class BuiltManifest:
    """Result of :meth:`ManifestBuilder.finalize`.

    ``manifest`` carries populated dependency maps.  ``dependencies`` and
    ``dev_dependencies`` are the sorted install tokens handed to the package
    manager.
    """

    manifest: PackageManifest
    dependencies: list[str]
    dev_dependencies: list[str]
    node_options: list[str]

    def without_dependencies(self) -> PackageManifest:
        """The manifest with empty dependency maps, written before installing."""
        return self.manifest.model_copy(
            update={"dependencies": {}, "dev_dependencies": {}}, deep=True
        )


class ManifestBuilder:
    """Builds the ``package.json`` for one ``ProjectSpec``.

    Usage::

        builder = ManifestBuilder(spec, package_manager="pnpm")
        built = builder.build([Capability.PRETTIER], plugins)
        built.manifest.to_json_dict()
    """

    def __init__(
        self,
        spec: ProjectSpec,
        *,
        package_manager: str = "npm",
        robo_version: Optional[str] = None,
        capability_rules: dict[Capability, tuple[ManifestRule, ...]] = CAPABILITY_RULES,
    ) -> None:
        self.spec = spec
        self.package_manager = package_manager
        self.robo_version = robo_version
        self.capability_rules = capability_rules
        self.phase = BuilderPhase.SEED
        self.draft = ManifestDraft()
        self._manifest: Optional[PackageManifest] = None
        self._context: Optional[RuleContext] = None
        self._applied: set[Capability] = set()
        self._seeded_draft = ManifestDraft()
        self._plugin_keywords: list[str] = []

    # -- Seed --------------------------------------------------------------

    def seed(self) -> ManifestDraft:
        """Write the base fields for the project's authoring mode."""
        if self.phase is not BuilderPhase.SEED:
            raise RuntimeError(f"Cannot seed a manifest in phase {self.phase.value!r}")

        plugin = self.spec.is_plugin
        self._manifest = PackageManifest(
            name=self.spec.name,
            private=not plugin,
            main=_PLUGIN_MAIN if plugin else None,
            license="MIT" if plugin else None,
            author=_PLUGIN_AUTHOR if plugin else None,
            contributors=[_PLUGIN_AUTHOR] if plugin else None,
            files=list(_PLUGIN_FILES) if plugin else None,
            publish_config=PublishConfig() if plugin else None,
        )
        self.draft.add_keywords(BASE_KEYWORDS)
        self.draft.scripts.update(PLUGIN_SCRIPTS if plugin else ROBO_SCRIPTS)
        self.draft.add_node_options(BASE_NODE_OPTIONS)

        core = CORE_RUNTIME_PACKAGE
        if self.robo_version:
            core = f"{CORE_RUNTIME_PACKAGE}@{self.robo_version}"
        self._add_runtime([core])
        if plugin:
            self.draft.peer_dependencies[CORE_RUNTIME_PACKAGE] = CORE_PEER_RANGE
        self._seeded_draft = copy.deepcopy(self.draft)

        self.phase = BuilderPhase.ACCUMULATE
        return self.draft

    # -- Accumulate --------------------------------------------------------

    def accumulate(self, capabilities: Iterable[Capability | str]) -> None:
        """Apply role rules and the rules for every selected capability.

        Capabilities are applied in rule-table order, not selection order,
        so script patches compose the same way for any selection, including
        capabilities added by a later call.
        """
        if self.phase is BuilderPhase.SEED:
            self.seed()
        self._require(BuilderPhase.ACCUMULATE)

        selected = [self._validate(c) for c in capabilities]
        effective = set(selected)
        if self.spec.uses_typescript(tuple(selected)):
            effective.add(Capability.TYPESCRIPT)
        else:
            effective.discard(Capability.TYPESCRIPT)

        known = self._context.capabilities if self._context is not None else frozenset()
        self._context = RuleContext(
            role=self.spec.role,
            mode=self.spec.mode,
            capabilities=known | effective,
        )
        self._applied.update(c for c in self.capability_rules if c in effective)
        self._replay()

    def apply(self, capability: Capability | str) -> None:
        """Apply the rules of one capability.  Re-applying is a no-op."""
        self._require(BuilderPhase.ACCUMULATE)
        capability = self._validate(capability)
        if capability in self._applied:
            return
        if self._context is None or capability not in self._context.capabilities:
            self.accumulate([capability])
            return
        self._applied.add(capability)
        self._replay()

    def add_plugins(self, plugins: Iterable[PluginDescriptor]) -> None:
        """Merge plugin keyword tags into the manifest."""
        if self.phase is BuilderPhase.SEED:
            self.seed()
        self._require(BuilderPhase.ACCUMULATE)
        for plugin in plugins:
            _extend_unique(self._plugin_keywords, plugin.keywords)
            self.draft.add_keywords(plugin.keywords)

    # -- Finalize ----------------------------------------------------------

    def finalize(self) -> BuiltManifest:
        """Sort every collection and split dependency tokens into maps."""
        if self.phase is BuilderPhase.SEED or self._context is None:
            self.accumulate([])
        self._require(BuilderPhase.ACCUMULATE)
        assert self._manifest is not None

        dependencies = sorted(self.draft.dependencies, key=_sort_key)
        runtime_names = {split_dependency(d)[0] for d in dependencies}
        dev_dependencies = sorted(
            (d for d in self.draft.dev_dependencies if split_dependency(d)[0] not in runtime_names),
            key=_sort_key,
        )

        update: dict[str, object] = {
            "keywords": sorted(set(self.draft.keywords)),
            "scripts": sort_object_keys(self.draft.scripts),
            "dependencies": dependency_map(dependencies),
            "dev_dependencies": dependency_map(dev_dependencies),
        }
        if self.draft.peer_dependencies:
            peers = sort_object_keys(self.draft.peer_dependencies)
            update["peer_dependencies"] = peers
            update["peer_dependencies_meta"] = {name: {"optional": False} for name in peers}

        manifest = self._manifest.model_copy(update=update, deep=True)
        self.phase = BuilderPhase.FINALIZED
        return BuiltManifest(
            manifest=manifest,
            dependencies=dependencies,
            dev_dependencies=dev_dependencies,
            node_options=list(self.draft.node_options),
        )

    def build(
        self,
        capabilities: Iterable[Capability | str],
        plugins: Iterable[PluginDescriptor] = (),
    ) -> BuiltManifest:
        """Run all three phases."""
        self.seed()
        self.accumulate(capabilities)
        self.add_plugins(plugins)
        return self.finalize()

    # -- Internals ---------------------------------------------------------

    def _require(self, phase: BuilderPhase) -> None:
        if self.phase is not phase:
            raise RuntimeError(
                f"Manifest builder is in phase {self.phase.value!r}, expected {phase.value!r}"
            )

    def _validate(self, capability: Capability | str) -> Capability:
        capability = Capability(capability)
        if capability is Capability.TYPESCRIPT:
            return capability
        if capability not in available_capabilities(self.spec):
            raise ValueError(
                f"Capability {capability.value!r} is not available for this project"
            )
        return capability

    def _replay(self) -> None:
        """Rebuild the draft from its seeded state.

        Role rules run first, then every applied capability in table order,
        then the plugin keywords merged so far.
        """
        assert self._context is not None
        for draft_field in fields(ManifestDraft):
            value = getattr(self._seeded_draft, draft_field.name)
            setattr(self.draft, draft_field.name, copy.deepcopy(value))
        rules = ROLE_RULES[self.spec.role] + COMMON_RULES
        for capability, capability_rules in self.capability_rules.items():
            if capability in self._applied:
                rules += capability_rules
        for rule in rules:
            self._apply_rule(rule)
        self.draft.add_keywords(self._plugin_keywords)

    def _apply_rule(self, rule: ManifestRule) -> None:
        assert self._context is not None
        if not rule.when.matches(self._context):
            return
        self._add_runtime(rule.dependencies)
        self.draft.add_dev_dependencies(rule.dev_dependencies)
        self.draft.add_keywords(rule.keywords)
        self.draft.add_node_options(rule.node_options)
        prefix = run_prefix(self.package_manager)
        for patch in rule.scripts:
            patch.apply(self.draft.scripts, prefix)

    def _add_runtime(self, tokens: Iterable[str]) -> None:
        # Plugins never ship runtime dependencies; the host Robo provides them.
        if self.spec.is_plugin:
            self.draft.add_dev_dependencies(tokens)
        else:
            self.draft.add_dependencies(tokens)


# ---------------------------------------------------------------------------
# Dependency token helpers
# ---------------------------------------------------------------------------


def split_dependency(token: str) -> tuple[str, str]:
    """Split ``name@version`` into ``(name, version)``.

    The separator is the last ``@`` past position 0, so scoped names such as
    ``@robojs/ai`` keep their leading ``@``.  Tokens without a version map to
    ``"latest"``.
    """
    index = token.rfind("@")
    if index > 0:
        return token[:index], token[index + 1:]
    return token, LATEST


def dependency_map(tokens: Iterable[str]) -> dict[str, str]:
    """Build a ``{name: version}`` mapping ordered by package name."""
    pairs = [split_dependency(token) for token in tokens]
    return {name: version for name, version in sorted(pairs)}


def _sort_key(token: str) -> str:
    return split_dependency(token)[0]


def _extend_unique(target: list[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)
