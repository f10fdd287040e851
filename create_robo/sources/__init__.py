"""create-robo template sources.

A project starts either from one of the kits bundled under
``create_robo/kits/`` or from a template directory in a GitHub repository.

Quick usage::

    from create_robo.sources import GitHubClient, TemplateSourceResolver

    resolver = TemplateSourceResolver(GitHubClient())
    source = await resolver.resolve(spec, selections.capabilities, url)
    await resolver.materialize(source, project_dir)
"""

from create_robo.sources.github import GitHubClient, RepoInfo
from create_robo.sources.local import (
    KITS_DIR,
    LocalTemplate,
    copy_local_template,
    select_local_template,
)
from create_robo.sources.resolver import (
    LocalSource,
    RemoteSource,
    TemplateSource,
    TemplateSourceResolver,
    parse_template_url,
    url_origin,
)

__all__ = [
    "GitHubClient",
    "KITS_DIR",
    "LocalSource",
    "LocalTemplate",
    "RemoteSource",
    "RepoInfo",
    "TemplateSource",
    "TemplateSourceResolver",
    "copy_local_template",
    "parse_template_url",
    "select_local_template",
    "url_origin",
]
