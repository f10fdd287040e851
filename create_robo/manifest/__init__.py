"""create-robo manifest assembly.

Turns a ``ProjectSpec`` and its selections into the generated project's
``package.json`` using the declarative rules in :mod:`.rules`.

Quick usage::

    from create_robo.manifest import ManifestBuilder

    built = ManifestBuilder(spec).build([Capability.ESLINT, Capability.PRETTIER])
    await save_json(built.manifest.to_json_dict(), "package.json")
"""

from create_robo.manifest.builder import (
    BuilderPhase,
    BuiltManifest,
    ManifestBuilder,
    ManifestDraft,
    dependency_map,
    split_dependency,
)
from create_robo.manifest.rules import (
    CAPABILITY_RULES,
    ROLE_RULES,
    Condition,
    ManifestRule,
    PatchOp,
    ScriptPatch,
)

__all__ = [
    "BuilderPhase",
    "BuiltManifest",
    "CAPABILITY_RULES",
    "Condition",
    "ManifestBuilder",
    "ManifestDraft",
    "ManifestRule",
    "PatchOp",
    "ROLE_RULES",
    "ScriptPatch",
    "dependency_map",
    "split_dependency",
]
