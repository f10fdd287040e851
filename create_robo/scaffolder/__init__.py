"""create-robo scaffolder -- writes a generated project to disk.

Quick usage::

    from create_robo.scaffolder import Credentials, ProjectGenerator

    generator = ProjectGenerator(config, selections)
    result = await generator.generate(Credentials(client_id="123", secret="abc"))
    if result.install_failed:
        ...
"""

from create_robo.scaffolder.credentials import (
    CredentialProvisioner,
    Credentials,
    EnvFile,
    upsert_env_variable,
)
from create_robo.scaffolder.generator import GenerationResult, ProjectGenerator
from create_robo.scaffolder.installer import InstallOrchestrator, InstallOutcome
from create_robo.scaffolder.plugin_config import PluginConfigEmitter, substitute_placeholder
from create_robo.scaffolder.templates import TemplateRenderer

__all__ = [
    "CredentialProvisioner",
    "Credentials",
    "EnvFile",
    "GenerationResult",
    "InstallOrchestrator",
    "InstallOutcome",
    "PluginConfigEmitter",
    "ProjectGenerator",
    "TemplateRenderer",
    "substitute_placeholder",
    "upsert_env_variable",
]
