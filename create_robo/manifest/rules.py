"""Declarative rule table driving ``package.json`` assembly.

Each capability (and each project role) maps to a tuple of ``ManifestRule``
entries.  A rule fires when its ``Condition`` matches the run's context and
contributes dependencies, keywords, script patches, and Node.js options.
Script commands may reference ``{run}``, the package manager's script runner
(``npm run `` or ``yarn ``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from create_robo.models import AuthoringMode, Capability, Role


CORE_RUNTIME_PACKAGE = "robo.js"
CORE_PEER_RANGE = "^0.10.1"

BASE_KEYWORDS: tuple[str, ...] = ("robo", "robo.js")
BASE_NODE_OPTIONS: tuple[str, ...] = ("--enable-source-maps",)

ROBO_SCRIPTS: dict[str, str] = {
    "build": "robo build",
    "deploy": "robo deploy",
    "dev": "robox dev",
    "doctor": "sage doctor",
    "invite": "robo invite",
    "start": "robo start",
    "upgrade": "sage upgrade",
}

PLUGIN_SCRIPTS: dict[str, str] = {
    "build": "robo build plugin",
    "dev": "robo build plugin --watch",
    "prepublishOnly": "robo build plugin",
}


# ---------------------------------------------------------------------------
# Rule primitives
# ---------------------------------------------------------------------------


class PatchOp(str, Enum):
    """How a ``ScriptPatch`` changes the scripts mapping."""
    SET = "set"
    APPEND = "append"
    REPLACE = "replace"


@dataclass(frozen=True)
class ScriptPatch:
    """A single edit to the ``scripts`` mapping.

    ``SET`` writes ``value`` under ``key``.  ``APPEND`` adds ``value`` to the
    end of an existing script and is skipped when the script is missing or
    already ends with it.  ``REPLACE`` swaps the first ``old`` for ``value``
    in ``key``, or in every script when ``key`` is ``None``.
    """

    op: PatchOp
    key: Optional[str]
    value: str
    old: str = ""

    def apply(self, scripts: dict[str, str], run_prefix: str) -> None:
        value = self.value.format(run=run_prefix)
        if self.op is PatchOp.SET:
            assert self.key is not None
            scripts[self.key] = value
        elif self.op is PatchOp.APPEND:
            assert self.key is not None
            current = scripts.get(self.key)
            if current is not None and not current.endswith(value):
                scripts[self.key] = current + value
        else:
            keys = list(scripts) if self.key is None else [self.key]
            for key in keys:
                if key in scripts:
                    scripts[key] = scripts[key].replace(self.old, value, 1)


@dataclass(frozen=True)
class RuleContext:
    """Facts a rule condition is evaluated against."""

    role: Role
    mode: AuthoringMode
    capabilities: frozenset[Capability]


@dataclass(frozen=True)
class Condition:
    all_of: frozenset[Capability] = frozenset()
    none_of: frozenset[Capability] = frozenset()
    roles: Optional[frozenset[Role]] = None
    modes: Optional[frozenset[AuthoringMode]] = None

    def matches(self, ctx: RuleContext) -> bool:
        if not self.all_of <= ctx.capabilities:
            return False
        if self.none_of & ctx.capabilities:
            return False
        if self.roles is not None and ctx.role not in self.roles:
            return False
        if self.modes is not None and ctx.mode not in self.modes:
            return False
        return True


ALWAYS = Condition()


@dataclass(frozen=True)
class ManifestRule:
    """Effects contributed to the manifest when ``when`` matches."""

    when: Condition = ALWAYS
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    scripts: tuple[ScriptPatch, ...] = ()
    node_options: tuple[str, ...] = ()


def _with(*capabilities: Capability) -> Condition:
    return Condition(all_of=frozenset(capabilities))


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

ROLE_RULES: dict[Role, tuple[ManifestRule, ...]] = {
    Role.APP: (
        ManifestRule(
            dependencies=("@discord/embedded-app-sdk",),
            dev_dependencies=("discord.js", "vite"),
            keywords=("activity", "discord", "sdk", "embed", "embedded app"),
            # Activities are served through a tunnel during development.
            scripts=(ScriptPatch(PatchOp.APPEND, "dev", " --tunnel"),),
        ),
    ),
    Role.BOT: (
        ManifestRule(
            dependencies=("discord.js",),
            keywords=("bot", "discord", "discord.js"),
        ),
    ),
}

# Applied in table order, so ESLint's ``lint`` script exists before
# Prettier appends to it.
CAPABILITY_RULES: dict[Capability, tuple[ManifestRule, ...]] = {
    Capability.TYPESCRIPT: (
        ManifestRule(
            dev_dependencies=("@swc/core", "@types/node", "typescript"),
            keywords=("typescript",),
        ),
    ),
    Capability.REACT: (
        ManifestRule(
            dependencies=("react", "react-dom"),
            dev_dependencies=("@vitejs/plugin-react-swc", "eslint-plugin-react-hooks"),
        ),
        ManifestRule(
            when=_with(Capability.REACT, Capability.TYPESCRIPT),
            dev_dependencies=("@types/react", "@types/react-dom"),
        ),
    ),
    Capability.COLYSEUS: (
        ManifestRule(
            dependencies=(
                "@colyseus/core",
                "@colyseus/monitor",
                "@colyseus/schema",
                "@colyseus/ws-transport",
                "@robojs/server",
                "colyseus.js",
                "express",
            ),
            dev_dependencies=("@types/express",),
        ),
    ),
    Capability.ESLINT: (
        ManifestRule(
            dev_dependencies=("eslint",),
            scripts=(
                ScriptPatch(PatchOp.SET, "lint", "{run}lint:eslint"),
                ScriptPatch(PatchOp.SET, "lint:eslint", "eslint . --ext js,jsx,ts,tsx"),
            ),
        ),
        ManifestRule(
            when=_with(Capability.ESLINT, Capability.REACT),
            dev_dependencies=("eslint-plugin-react-hooks", "eslint-plugin-react-refresh"),
        ),
        ManifestRule(
            when=_with(Capability.ESLINT, Capability.TYPESCRIPT),
            dev_dependencies=("@typescript-eslint/eslint-plugin", "@typescript-eslint/parser"),
        ),
    ),
    Capability.PRETTIER: (
        ManifestRule(
            dev_dependencies=("prettier",),
            scripts=(
                ScriptPatch(PatchOp.SET, "lint:style", "prettier --write ."),
                ScriptPatch(PatchOp.APPEND, "lint", " && {run}lint:style"),
            ),
        ),
    ),
    Capability.EXTENSIONLESS: (
        ManifestRule(
            dependencies=("extensionless",),
            node_options=("--import=extensionless/register",),
            scripts=(ScriptPatch(PatchOp.REPLACE, None, "robox ", old="robo "),),
        ),
    ),
}

# Rules evaluated for every project regardless of capabilities.
COMMON_RULES: tuple[ManifestRule, ...] = (
    ManifestRule(
        when=Condition(none_of=frozenset({Capability.TYPESCRIPT})),
        keywords=("javascript",),
    ),
)
