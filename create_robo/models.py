"""Pydantic v2 models for the create-robo generation engine.

Defines the immutable inputs of a generation run (``ProjectSpec``,
``Selections``), the static plugin metadata (``PluginDescriptor``) and the
persisted ``package.json`` shape (``PackageManifest``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Role(str, Enum):
    """Kind of Robo project being generated."""
    BOT = "bot"
    APP = "app"


class AuthoringMode(str, Enum):
    """Whether the project is a publishable plugin or a standalone Robo."""
    PLUGIN = "plugin"
    STANDALONE = "standalone"


class Capability(str, Enum):
    """Optional, user-toggleable features of the generated project."""
    TYPESCRIPT = "typescript"
    REACT = "react"
    PRETTIER = "prettier"
    COLYSEUS = "colyseus"
    ESLINT = "eslint"
    EXTENSIONLESS = "extensionless"

    @property
    def label(self) -> str:
        return _CAPABILITY_LABELS[self]

    @property
    def description(self) -> str:
        return _CAPABILITY_DESCRIPTIONS[self]

    @property
    def recommended(self) -> bool:
        """Whether the capability is pre-selected in the menu."""
        return self in _RECOMMENDED_CAPABILITIES


_CAPABILITY_LABELS: dict[Capability, str] = {
    Capability.TYPESCRIPT: "TypeScript",
    Capability.REACT: "React",
    Capability.PRETTIER: "Prettier",
    Capability.COLYSEUS: "Colyseus",
    Capability.ESLINT: "ESLint",
    Capability.EXTENSIONLESS: "Extensionless",
}

_CAPABILITY_DESCRIPTIONS: dict[Capability, str] = {
    Capability.TYPESCRIPT: "A superset of JavaScript that adds static types.",
    Capability.REACT: "The library for web and native user interfaces.",
    Capability.PRETTIER: "Automatically formats your code for readability.",
    Capability.COLYSEUS: "Multiplayer Framework for Node.js.",
    Capability.ESLINT: "Keeps your code clean and consistent.",
    Capability.EXTENSIONLESS: "Removes the need for file extensions in imports.",
}

_RECOMMENDED_CAPABILITIES = frozenset(
    {Capability.TYPESCRIPT, Capability.REACT, Capability.PRETTIER}
)


# ---------------------------------------------------------------------------
# Generation inputs
# ---------------------------------------------------------------------------

class ProjectSpec(BaseModel):
    """Immutable description of the project being generated.

    ``typescript`` is tri-state: ``True``/``False`` when forced by a CLI flag,
    ``None`` when the user picks it from the capability menu.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Project (package) name")
    role: Role = Field(default=Role.BOT)
    mode: AuthoringMode = Field(default=AuthoringMode.STANDALONE)
    typescript: Optional[bool] = Field(default=None)

    @property
    def is_app(self) -> bool:
        return self.role is Role.APP

    @property
    def is_plugin(self) -> bool:
        return self.mode is AuthoringMode.PLUGIN

    def uses_typescript(self, capabilities: tuple[Capability, ...] = ()) -> bool:
        """Resolve the typing tri-state against the selected capabilities."""
        if self.typescript is not None:
            return self.typescript
        return Capability.TYPESCRIPT in capabilities


class Selections(BaseModel):
    """Capabilities and plugins chosen for one generation run."""
    model_config = ConfigDict(frozen=True)

    capabilities: tuple[Capability, ...] = Field(default=())
    plugins: tuple[str, ...] = Field(default=())


class PluginDescriptor(BaseModel):
    """Static metadata for an installable Robo plugin package."""
    model_config = ConfigDict(frozen=True)

    package: str = Field(..., description="npm package name, e.g. '@robojs/ai'")
    label: str = Field(default="")
    description: str = Field(default="")
    keywords: tuple[str, ...] = Field(default=())
    config: Optional[dict[str, Any]] = Field(
        default=None,
        description="Plugin configuration template; '{{name}}' is replaced by the project name",
    )
    env: tuple[tuple[str, str], ...] = Field(
        default=(),
        description="Environment variables (key, default value) the plugin expects",
    )


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------

class PublishConfig(BaseModel):
    access: Literal["public", "restricted"] = "public"
    registry: str = "https://registry.npmjs.org/"


class PackageManifest(BaseModel):
    """The ``package.json`` written into the generated project.

    Field order matches the order in which keys are serialized.  Fields left
    as ``None`` are pruned by :meth:`to_json_dict`.  Unknown keys written by
    a package manager are kept so a re-read manifest round-trips.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    name: str
    description: str = ""
    version: str = "1.0.0"
    type: Literal["module", "commonjs"] = "module"
    private: bool = True
    keywords: list[str] = Field(default_factory=list)
    main: Optional[str] = None
    license: Optional[str] = None
    author: Optional[str] = None
    contributors: Optional[list[str]] = None
    files: Optional[list[str]] = None
    publish_config: Optional[PublishConfig] = None
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    peer_dependencies: Optional[dict[str, str]] = None
    peer_dependencies_meta: Optional[dict[str, dict[str, Any]]] = None

    def to_json_dict(self) -> dict[str, Any]:
        """Return the manifest as a plain dict with unset fields removed."""
        return self.model_dump(by_alias=True, exclude_none=True)
