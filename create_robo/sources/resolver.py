"""Template source resolution: bundled kit or remote repository.

A remote URL, when it parses as one, always wins over the bundled kits.  Each
validation step of the remote path raises ``TemplateSourceError``; the
download itself is retried a bounded number of times.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx

from create_robo.errors import TemplateSourceError
from create_robo.models import Capability, ProjectSpec
from create_robo.retry import RetryCallback, retry_async

from .github import GitHubClient, RepoInfo
from .local import LocalTemplate, copy_local_template, select_local_template


@dataclass(frozen=True)
class LocalSource:
    template: LocalTemplate


@dataclass(frozen=True)
class RemoteSource:
    repo: RepoInfo
    url: str


TemplateSource = Union[LocalSource, RemoteSource]


def parse_template_url(value: str) -> Optional[httpx.URL]:
    """Parse *value* as a URL, or return ``None`` if it is not one.

    Only the parser's own "invalid URL" signal (or a string without a
    scheme) means "not a URL"; any other exception propagates.
    """
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return None
    if not url.scheme:
        return None
    return url


def url_origin(url: httpx.URL) -> str:
    """``scheme://host[:port]`` with default ports omitted."""
    origin = f"{url.scheme}://{url.host}"
    if url.port is not None:
        origin += f":{url.port}"
    return origin


class TemplateSourceResolver:
    """Decides where a project's files come from and puts them in place."""

    def __init__(
        self,
        client: GitHubClient,
        *,
        trusted_origin: str = "https://github.com",
        attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        on_retry: Optional[RetryCallback] = None,
    ) -> None:
        self.client = client
        self.trusted_origin = url_origin(httpx.URL(trusted_origin))
        self.attempts = attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep
        self.on_retry = on_retry

    async def resolve(
        self,
        spec: ProjectSpec,
        capabilities: tuple[Capability, ...],
        template_url: Optional[str] = None,
    ) -> TemplateSource:
        """Return the remote source for *template_url* if there is one, else a kit."""
        if template_url:
            remote = await self.resolve_remote(template_url)
            if remote is not None:
                return remote
        return LocalSource(
            select_local_template(
                spec.role,
                spec.uses_typescript(capabilities),
                Capability.REACT in capabilities,
                Capability.COLYSEUS in capabilities,
            )
        )

    async def resolve_remote(self, template_url: str) -> Optional[RemoteSource]:
        """Validate *template_url* and look the repository up.

        Returns ``None`` when the string is not a URL at all.

        Raises:
            TemplateSourceError: If the URL is on an untrusted host, does not
                name a repository, or the repository cannot be found or
                reached.
        """
        url = parse_template_url(template_url)
        if url is None:
            return None

        if url_origin(url) != self.trusted_origin:
            raise TemplateSourceError(
                template_url,
                f'Invalid URL: "{template_url}". Only repositories hosted on '
                f"{self.trusted_origin} are supported. Please use a URL from "
                f"{self.trusted_origin} and try again.",
            )

        try:
            repo = await self.client.get_repo_info(url)
            found = repo is not None and await self.client.has_repo(repo)
        except (httpx.HTTPError, ValueError) as exc:
            raise TemplateSourceError(
                template_url,
                f'Could not look up the repository for "{template_url}": {exc}. '
                "Please check your connection and try again.",
            ) from exc

        if repo is None:
            raise TemplateSourceError(
                template_url,
                f'Found invalid repository URL: "{template_url}". '
                "Please fix the URL and try again.",
            )

        if not found:
            raise TemplateSourceError(
                template_url,
                f'Could not locate the repository for "{template_url}". '
                "Please check that the repository and template path exist and try again.",
            )

        return RemoteSource(repo=repo, url=template_url)

    async def materialize(self, source: TemplateSource, target_dir: str | Path) -> list[Path]:
        """Write the source's files into *target_dir*."""
        if isinstance(source, RemoteSource):
            return await self.download(source, target_dir)
        return await copy_local_template(source.template, target_dir)

    async def download(self, source: RemoteSource, target_dir: str | Path) -> list[Path]:
        """Download and extract a remote template with bounded retry.

        Raises:
            RetryError: If every attempt failed.
        """
        return await retry_async(
            lambda: self.client.download_and_extract(source.repo, target_dir),
            attempts=self.attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            on_retry=self.on_retry,
            sleep=self.sleep,
        )
