"""Async client for looking up and downloading GitHub template repositories.

Repository URLs take the form ``https://github.com/<owner>/<repo>`` with an
optional ``/tree/<branch>/<path/to/template>`` suffix.  Lookups go through
the REST API; downloads stream the codeload tarball and extract only the
requested sub-directory.
"""

from __future__ import annotations

import asyncio
import tarfile
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional

import httpx

_SPOOL_LIMIT = 8 * 1024 * 1024


@dataclass(frozen=True)
class RepoInfo:
    """A repository reference resolved from a template URL."""

    owner: str
    name: str
    branch: str
    file_path: str = ""

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def archive_prefix(self) -> str:
        """Path prefix of the template's files inside the codeload tarball."""
        root = f"{self.name}-{self.branch.replace('/', '-')}"
        return f"{root}/{self.file_path}/" if self.file_path else f"{root}/"

    @property
    def strip_components(self) -> int:
        """Leading path segments removed from every extracted member."""
        return len(self.file_path.split("/")) + 1 if self.file_path else 1


class GitHubClient:
    """Thin async wrapper over the GitHub REST API and codeload host.

    A fresh ``httpx.AsyncClient`` is opened per call; every request carries
    the configured timeout.  *transport* lets tests plug in an
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        codeload_url: str = "https://codeload.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.codeload_url = codeload_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
            headers={"Accept": "application/vnd.github+json"},
            transport=self.transport,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_repo_info(self, url: httpx.URL) -> Optional[RepoInfo]:
        """Resolve *url* into a ``RepoInfo``.

        When the URL names no branch, the repository's default branch is
        fetched from the API.  Returns ``None`` for URLs that do not point at
        a repository.
        """
        segments = url.path.split("/")[1:]
        owner = segments[0] if len(segments) > 0 else ""
        name = segments[1] if len(segments) > 1 else ""
        tree = segments[2] if len(segments) > 2 else None
        branch = segments[3] if len(segments) > 3 else None
        file_path = "/".join(s for s in segments[4:] if s)

        if name.endswith(".git"):
            name = name[: -len(".git")]
        if not owner or not name:
            return None

        if tree is None or (tree == "" and branch is None):
            async with self._client() as client:
                response = await client.get(f"{self.api_url}/repos/{owner}/{name}")
            if response.status_code != 200:
                return None
            default_branch = response.json().get("default_branch")
            if not default_branch:
                return None
            return RepoInfo(owner=owner, name=name, branch=default_branch, file_path=file_path)

        if tree == "tree" and branch:
            return RepoInfo(owner=owner, name=name, branch=branch, file_path=file_path)
        return None

    async def has_repo(self, info: RepoInfo) -> bool:
        """Return ``True`` if a ``package.json`` exists at the template root."""
        contents = f"/{info.file_path}" if info.file_path else ""
        url = f"{self.api_url}/repos/{info.owner}/{info.name}/contents{contents}/package.json"
        async with self._client() as client:
            response = await client.head(url, params={"ref": info.branch})
        return response.status_code == 200

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def download_and_extract(self, info: RepoInfo, target_dir: str | Path) -> list[Path]:
        """Download the repository tarball and extract the template into *target_dir*.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses.
            tarfile.TarError: If the archive is corrupt.
        """
        url = f"{self.codeload_url}/{info.owner}/{info.name}/tar.gz/{info.branch}"
        with tempfile.SpooledTemporaryFile(max_size=_SPOOL_LIMIT) as archive:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        archive.write(chunk)
            archive.seek(0)
            return await asyncio.to_thread(_extract_template, archive, Path(target_dir), info)


def _extract_template(archive: IO[bytes], target: Path, info: RepoInfo) -> list[Path]:
    """Extract the members under ``info.archive_prefix`` with the prefix stripped."""
    prefix = info.archive_prefix
    strip = info.strip_components
    target.mkdir(parents=True, exist_ok=True)

    with tarfile.open(fileobj=archive, mode="r:gz") as tar:
        selected: list[tarfile.TarInfo] = []
        for member in tar.getmembers():
            if not member.name.startswith(prefix):
                continue
            if not (member.isfile() or member.isdir()):
                continue
            parts = [p for p in member.name.split("/")[strip:] if p]
            if not parts:
                continue
            member.name = "/".join(parts)
            selected.append(member)
        tar.extractall(target, members=selected, filter="data")

    return sorted(target / m.name for m in selected if m.isfile())
