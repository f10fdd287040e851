"""Credential provisioning: ``.env`` upserts and ``env.d.ts`` typings.

The ``.env`` file is only ever changed through :meth:`EnvFile.upsert`, so
comments, blank lines, and unrelated variables survive regeneration.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from create_robo.models import PluginDescriptor, ProjectSpec
from create_robo.utils import write_text

from .templates import TemplateRenderer

CLIENT_ID_KEY = "DISCORD_CLIENT_ID"
APP_CLIENT_ID_KEY = "VITE_DISCORD_CLIENT_ID"
CLIENT_SECRET_KEY = "DISCORD_CLIENT_SECRET"
TOKEN_KEY = "DISCORD_TOKEN"
NODE_OPTIONS_KEY = "NODE_OPTIONS"

ENV_TYPES_FILE = "env.d.ts"

_ASSIGNMENT = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=")


# ---------------------------------------------------------------------------
# .env model
# ---------------------------------------------------------------------------


class EnvFile:
    """Ordered ``KEY=VALUE`` lines indexed by key."""

    def __init__(self, lines: Optional[list[str]] = None) -> None:
        self._lines: list[str] = []
        self._index: dict[str, int] = {}
        for line in lines or []:
            self._append(line)

    @classmethod
    def parse(cls, content: str) -> "EnvFile":
        return cls(content.splitlines())

    def _append(self, line: str) -> None:
        match = _ASSIGNMENT.match(line)
        if match and match.group(1) not in self._index:
            self._index[match.group(1)] = len(self._lines)
        self._lines.append(line)

    def upsert(self, key: str, value: str) -> None:
        """Set *key* to *value*, in place if the key exists, else appended."""
        position = self._index.get(key)
        if position is None:
            self._append(f"{key}={value}")
            return
        line = self._lines[position]
        prefix = line[: line.index("=") + 1]
        self._lines[position] = f"{prefix}{value}"

    def get(self, key: str) -> Optional[str]:
        position = self._index.get(key)
        if position is None:
            return None
        line = self._lines[position]
        return line[line.index("=") + 1:]

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def render(self) -> str:
        if not self._lines:
            return ""
        return "\n".join(self._lines) + "\n"


def upsert_env_variable(content: str, key: str, value: str) -> str:
    """Return *content* with ``key=value`` updated in place or appended."""
    env = EnvFile.parse(content)
    env.upsert(key, value)
    return env.render()


def read_env_content(path: Path) -> str:
    """Read an env file, treating a missing file as empty.

    Raises:
        OSError: For any read failure other than the file not existing.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


# ---------------------------------------------------------------------------
# Provisioner
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """Values the user supplied; blanks are written as empty entries."""

    client_id: str = ""
    secret: str = ""


@dataclass(frozen=True)
class ProvisionResult:
    env_path: Path
    missing_env: bool
    env_types_path: Optional[Path] = None


class CredentialProvisioner:
    """Writes the credential entries a generated project needs."""

    def __init__(
        self,
        spec: ProjectSpec,
        renderer: TemplateRenderer,
        working_dir: Path,
    ) -> None:
        self.spec = spec
        self.renderer = renderer
        self.working_dir = working_dir

    @property
    def env_path(self) -> Path:
        return self.working_dir / ".env"

    @property
    def secret_key(self) -> str:
        """Apps authenticate with a client secret, bots with a token."""
        return CLIENT_SECRET_KEY if self.spec.is_app else TOKEN_KEY

    def required_entries(
        self,
        credentials: Credentials,
        node_options: Iterable[str],
        plugins: Iterable[PluginDescriptor] = (),
    ) -> list[tuple[str, str]]:
        """The ``(key, value)`` pairs to upsert, in write order."""
        entries = [(CLIENT_ID_KEY, credentials.client_id)]
        if self.spec.is_app:
            entries.append((APP_CLIENT_ID_KEY, credentials.client_id))
        entries.append((self.secret_key, credentials.secret))
        entries.append((NODE_OPTIONS_KEY, " ".join(node_options)))
        for plugin in plugins:
            entries.extend(plugin.env)
        return entries

    async def provision(
        self,
        credentials: Credentials,
        *,
        node_options: Iterable[str],
        plugins: Iterable[PluginDescriptor] = (),
        typescript: bool = False,
    ) -> ProvisionResult:
        """Upsert every required entry into ``.env``.

        With *typescript*, also writes ``env.d.ts`` when the project has a
        ``tsconfig.json``.
        """
        content = await asyncio.to_thread(read_env_content, self.env_path)
        env = EnvFile.parse(content)
        for key, value in self.required_entries(credentials, node_options, plugins):
            env.upsert(key, value)
        await asyncio.to_thread(write_text, self.env_path, env.render())

        env_types_path = None
        if typescript:
            env_types_path = await self.write_env_types()

        return ProvisionResult(
            env_path=self.env_path,
            missing_env=not credentials.client_id or not credentials.secret,
            env_types_path=env_types_path,
        )

    async def write_env_types(self) -> Optional[Path]:
        """Declare the credential variables for TypeScript autocompletion.

        Points ``compilerOptions.typeRoots`` in ``tsconfig.json`` at the new
        file.  Does nothing when there is no ``tsconfig.json``.
        """
        tsconfig_path = self.working_dir / "tsconfig.json"
        if not tsconfig_path.is_file():
            return None

        output = await self.renderer.render_to_file(
            "env.d.ts.j2",
            self.working_dir / ENV_TYPES_FILE,
            {"env_keys": [CLIENT_ID_KEY, self.secret_key]},
        )
        tsconfig = json.loads(await asyncio.to_thread(tsconfig_path.read_text, "utf-8"))
        tsconfig.setdefault("compilerOptions", {})["typeRoots"] = [f"./{ENV_TYPES_FILE}"]
        await asyncio.to_thread(
            write_text, tsconfig_path, json.dumps(tsconfig, indent="\t")
        )
        return output
