"""Selection resolver: which capabilities and plugins a project may choose.

Menus are computed by running the full candidate list through a chain of
filter predicates.  Every function here is pure.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from create_robo.errors import SelectionError
from create_robo.models import Capability, ProjectSpec, Role, Selections
from create_robo.plugins import DEFAULT_PLUGINS, PluginRegistry

CapabilityPredicate = Callable[[ProjectSpec, Capability], bool]

ALL_CAPABILITIES: tuple[Capability, ...] = (
    Capability.TYPESCRIPT,
    Capability.REACT,
    Capability.PRETTIER,
    Capability.COLYSEUS,
    Capability.ESLINT,
    Capability.EXTENSIONLESS,
)

APP_ONLY_CAPABILITIES = frozenset({Capability.REACT, Capability.COLYSEUS})

_PLUGIN_MENUS: dict[Role, tuple[str, ...]] = {
    Role.APP: ("ai", "sync", "server"),
    Role.BOT: ("ai", "ai-voice", "server", "maintenance", "modtools"),
}

# Apps need a web server to host the activity.
_DEFAULT_PLUGINS: dict[Role, tuple[str, ...]] = {
    Role.APP: ("server",),
    Role.BOT: (),
}


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def typing_not_forced(spec: ProjectSpec, capability: Capability) -> bool:
    """TypeScript is only asked about when no CLI flag decided it."""
    return capability is not Capability.TYPESCRIPT or spec.typescript is None


def app_only_for_apps(spec: ProjectSpec, capability: Capability) -> bool:
    """UI and multiplayer frameworks are only offered to apps."""
    return capability not in APP_ONLY_CAPABILITIES or spec.is_app


def extensionless_not_for_plugins(spec: ProjectSpec, capability: Capability) -> bool:
    return capability is not Capability.EXTENSIONLESS or not spec.is_plugin


CAPABILITY_PREDICATES: tuple[CapabilityPredicate, ...] = (
    typing_not_forced,
    app_only_for_apps,
    extensionless_not_for_plugins,
)


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------


def available_capabilities(
    spec: ProjectSpec,
    predicates: Iterable[CapabilityPredicate] = CAPABILITY_PREDICATES,
) -> list[Capability]:
    """Return the capabilities *spec* may choose from, in menu order."""
    checks = tuple(predicates)
    return [
        capability
        for capability in ALL_CAPABILITIES
        if all(check(spec, capability) for check in checks)
    ]


def default_capabilities(spec: ProjectSpec) -> list[Capability]:
    """Capabilities pre-selected in the menu."""
    return [c for c in available_capabilities(spec) if c.recommended]


def available_plugins(
    spec: ProjectSpec,
    registry: PluginRegistry = DEFAULT_PLUGINS,
) -> list[str]:
    """Return the plugin identifiers offered for *spec*'s role."""
    return [p for p in _PLUGIN_MENUS[spec.role] if p in registry]


def default_plugins(
    spec: ProjectSpec,
    registry: PluginRegistry = DEFAULT_PLUGINS,
) -> list[str]:
    offered = available_plugins(spec, registry)
    return [p for p in _DEFAULT_PLUGINS[spec.role] if p in offered]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def resolve_selections(
    spec: ProjectSpec,
    capabilities: Iterable[Capability | str],
    plugins: Iterable[str],
    registry: PluginRegistry = DEFAULT_PLUGINS,
) -> Selections:
    """Validate user answers against the menus and freeze them.

    Duplicates are dropped; the first occurrence keeps its position.

    Raises:
        SelectionError: If a value is unknown or not offered for *spec*.
    """
    offered_capabilities = available_capabilities(spec)
    chosen: list[Capability] = []
    for value in capabilities:
        try:
            capability = Capability(value)
        except ValueError:
            raise SelectionError(f"Unknown feature: {value!r}") from None
        if capability not in offered_capabilities:
            raise SelectionError(
                f"Feature {capability.label!r} is not available for a "
                f"{spec.role.value} {spec.mode.value} project."
            )
        if capability not in chosen:
            chosen.append(capability)

    offered_plugins = available_plugins(spec, registry)
    chosen_plugins: list[str] = []
    for plugin_id in plugins:
        if plugin_id not in offered_plugins:
            raise SelectionError(
                f"Plugin {plugin_id!r} is not available for a {spec.role.value} project. "
                f"Choose from: {', '.join(offered_plugins)}."
            )
        if plugin_id not in chosen_plugins:
            chosen_plugins.append(plugin_id)

    return Selections(capabilities=tuple(chosen), plugins=tuple(chosen_plugins))
