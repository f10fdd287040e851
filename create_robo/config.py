"""create-robo configuration.

Centralised, typed configuration for a generation run. All settings use
Pydantic v2 models so they can be validated at construction time and built
from CLI flags or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from create_robo.models import AuthoringMode, ProjectSpec, Role


class NetworkConfig(BaseModel):
    """Settings for remote template retrieval."""

    trusted_origin: str = Field(default="https://github.com")
    api_url: str = Field(default="https://api.github.com")
    codeload_url: str = Field(default="https://codeload.github.com")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    download_attempts: int = Field(
        default=3, ge=1, description="Total attempts for the template download"
    )
    backoff_base: float = Field(
        default=1.0, ge=0, description="Delay before the first retry; doubles per attempt"
    )
    backoff_max: float = Field(default=10.0, ge=0)


class InstallConfig(BaseModel):
    """Tuning knobs for dependency installation."""

    install: bool = Field(default=True, description="Run the package manager after generation")
    package_manager: Optional[str] = Field(
        default=None, description="Override the detected package manager (npm, yarn, pnpm, bun)"
    )
    robo_version: Optional[str] = Field(
        default=None, description="Pin robo.js to this version instead of 'latest'"
    )
    timeout: int = Field(default=600, ge=10, description="Package manager timeout in seconds")


class Config(BaseModel):
    """Global create-robo configuration.

    Holds every tuneable parameter and derived path used by the generator.
    Instances are created once by the CLI entry point and passed through the
    rest of the system.
    """

    project_name: str = Field(default="")
    output_dir: Path = Field(default=Path("."))
    same_directory: bool = Field(
        default=False, description="Generate into output_dir itself instead of output_dir/<name>"
    )
    kit: Role = Field(default=Role.BOT)
    plugin: bool = Field(default=False)
    typescript: Optional[bool] = Field(default=None)
    template: Optional[str] = Field(default=None, description="Remote template URL")
    verbose: bool = Field(default=False)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    installer: InstallConfig = Field(default_factory=InstallConfig)

    # ------------------------------------------------------------------
    # Derived values (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_spec(self) -> ProjectSpec:
        """The immutable ``ProjectSpec`` for this run."""
        return ProjectSpec(
            name=self.project_name,
            role=self.kit,
            mode=AuthoringMode.PLUGIN if self.plugin else AuthoringMode.STANDALONE,
            typescript=self.typescript,
        )

    @property
    def working_dir(self) -> Path:
        """Root of the generated project."""
        if self.same_directory:
            return self.output_dir
        return self.output_dir / self.project_name

    @property
    def package_json_path(self) -> Path:
        return self.working_dir / "package.json"

    @property
    def env_path(self) -> Path:
        return self.working_dir / ".env"

    @property
    def tsconfig_path(self) -> Path:
        return self.working_dir / "tsconfig.json"

    @property
    def config_dir(self) -> Path:
        """Directory holding ``robo.mjs``."""
        return self.working_dir / "config"

    @property
    def plugins_config_dir(self) -> Path:
        """Directory holding per-plugin configuration files."""
        return self.config_dir / "plugins"

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            CREATE_ROBO_OUTPUT_DIR, CREATE_ROBO_KIT, CREATE_ROBO_VERBOSE,
            CREATE_ROBO_TRUSTED_ORIGIN, CREATE_ROBO_HTTP_TIMEOUT,
            CREATE_ROBO_DOWNLOAD_ATTEMPTS, CREATE_ROBO_PACKAGE_MANAGER,
            CREATE_ROBO_VERSION, CREATE_ROBO_NO_INSTALL.

        Keyword *overrides* win over the environment.
        """
        network_kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_ROBO_TRUSTED_ORIGIN"):
            network_kwargs["trusted_origin"] = os.environ["CREATE_ROBO_TRUSTED_ORIGIN"]
        if os.environ.get("CREATE_ROBO_HTTP_TIMEOUT"):
            network_kwargs["timeout"] = float(os.environ["CREATE_ROBO_HTTP_TIMEOUT"])
        if os.environ.get("CREATE_ROBO_DOWNLOAD_ATTEMPTS"):
            network_kwargs["download_attempts"] = int(os.environ["CREATE_ROBO_DOWNLOAD_ATTEMPTS"])

        install_kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_ROBO_PACKAGE_MANAGER"):
            install_kwargs["package_manager"] = os.environ["CREATE_ROBO_PACKAGE_MANAGER"]
        if os.environ.get("CREATE_ROBO_VERSION"):
            install_kwargs["robo_version"] = os.environ["CREATE_ROBO_VERSION"]
        if _env_flag("CREATE_ROBO_NO_INSTALL"):
            install_kwargs["install"] = False

        values: dict[str, Any] = {
            "output_dir": Path(os.environ.get("CREATE_ROBO_OUTPUT_DIR", ".")),
            "kit": Role(os.environ.get("CREATE_ROBO_KIT", Role.BOT.value)),
            "verbose": _env_flag("CREATE_ROBO_VERBOSE"),
            "network": NetworkConfig(**network_kwargs),
            "installer": InstallConfig(**install_kwargs),
        }
        values.update(overrides)
        return cls(**values)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
