"""Tests for template source resolution (create_robo.sources.resolver).

Covers:
- URL parsing and origin comparison
- Local fallback when no URL (or a non-URL string) is given
- Untrusted origins fail before any lookup
- Invalid and missing repositories
- Bounded retry around the download (fail twice then succeed)
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from create_robo.errors import TemplateSourceError
from create_robo.models import Capability, ProjectSpec, Role
from create_robo.retry import RetryError
from create_robo.sources.github import GitHubClient, RepoInfo
from create_robo.sources.local import LocalTemplate
from create_robo.sources.resolver import (
    LocalSource,
    RemoteSource,
    TemplateSourceResolver,
    parse_template_url,
    url_origin,
)

pytestmark = pytest.mark.unit

REPO = RepoInfo(owner="wave", name="templates", branch="main", file_path="starter")
URL = "https://github.com/wave/templates/tree/main/starter"


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock(spec=GitHubClient)
    mock.get_repo_info = AsyncMock(return_value=REPO)
    mock.has_repo = AsyncMock(return_value=True)
    mock.download_and_extract = AsyncMock(return_value=[Path("package.json")])
    return mock


@pytest.fixture
def resolver(client: MagicMock, recorded_sleep: AsyncMock) -> TemplateSourceResolver:
    return TemplateSourceResolver(client, sleep=recorded_sleep)


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


class TestUrlHelpers:
    @pytest.mark.parametrize("value", ["my-template", "starter/bot", ""])
    def test_non_urls(self, value: str):
        assert parse_template_url(value) is None

    def test_parses_absolute_url(self):
        url = parse_template_url(URL)
        assert url is not None
        assert url.host == "github.com"

    def test_origin(self):
        assert url_origin(httpx.URL("https://github.com/a/b")) == "https://github.com"
        assert url_origin(httpx.URL("http://localhost:8080/a")) == "http://localhost:8080"


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    @pytest.mark.asyncio
    async def test_local_without_url(self, resolver, client, bot_spec: ProjectSpec):
        source = await resolver.resolve(bot_spec, (Capability.TYPESCRIPT,))
        assert source == LocalSource(LocalTemplate.BOT_TS)
        client.get_repo_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_local_uses_ui_and_multiplayer(self, resolver, app_spec: ProjectSpec):
        source = await resolver.resolve(
            app_spec, (Capability.REACT, Capability.COLYSEUS)
        )
        assert source == LocalSource(LocalTemplate.ACTIVITY_COLYSEUS_REACT)

    @pytest.mark.asyncio
    async def test_forced_typing(self, resolver):
        spec = ProjectSpec(name="x", role=Role.APP, typescript=False)
        source = await resolver.resolve(spec, (Capability.REACT,))
        assert source == LocalSource(LocalTemplate.APP_JS_REACT)

    @pytest.mark.asyncio
    async def test_non_url_falls_back_to_local(self, resolver, client, bot_spec: ProjectSpec):
        source = await resolver.resolve(bot_spec, (), "not a url")
        assert source == LocalSource(LocalTemplate.BOT_JS)
        client.get_repo_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_wins(self, resolver, client, bot_spec: ProjectSpec):
        source = await resolver.resolve(bot_spec, (Capability.TYPESCRIPT,), URL)
        assert source == RemoteSource(repo=REPO, url=URL)
        client.get_repo_info.assert_awaited_once()
        client.has_repo.assert_awaited_once_with(REPO)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "https://gitlab.com/wave/templates",
            "http://github.com/wave/templates",
            "https://github.com.evil.io/wave/templates",
        ],
    )
    async def test_untrusted_origin_fails_before_lookup(self, resolver, client, bot_spec, url):
        with pytest.raises(TemplateSourceError, match="Only repositories hosted on"):
            await resolver.resolve(bot_spec, (), url)
        assert client.get_repo_info.await_count == 0
        assert client.has_repo.await_count == 0

    @pytest.mark.asyncio
    async def test_custom_trusted_origin(self, client, bot_spec):
        resolver = TemplateSourceResolver(client, trusted_origin="https://git.example.com/")
        source = await resolver.resolve(bot_spec, (), "https://git.example.com/wave/templates")
        assert isinstance(source, RemoteSource)

    @pytest.mark.asyncio
    async def test_invalid_repository_url(self, resolver, client, bot_spec):
        client.get_repo_info.return_value = None
        with pytest.raises(TemplateSourceError, match="invalid repository URL") as excinfo:
            await resolver.resolve(bot_spec, (), "https://github.com/wave")
        assert excinfo.value.url == "https://github.com/wave"
        client.has_repo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repository_not_found(self, resolver, client, bot_spec):
        client.has_repo.return_value = False
        with pytest.raises(TemplateSourceError, match="Could not locate"):
            await resolver.resolve(bot_spec, (), URL)

    @pytest.mark.asyncio
    async def test_lookup_network_failure(self, resolver, client, bot_spec):
        client.get_repo_info.side_effect = httpx.ConnectError("api.github.com unreachable")
        with pytest.raises(TemplateSourceError, match="Could not look up") as excinfo:
            await resolver.resolve(bot_spec, (), URL)
        assert excinfo.value.url == URL
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
        client.has_repo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_non_json_body(self, resolver, client, bot_spec):
        client.get_repo_info.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        with pytest.raises(TemplateSourceError, match="Could not look up"):
            await resolver.resolve(bot_spec, (), URL)

    @pytest.mark.asyncio
    async def test_html_error_page_from_api(self, bot_spec):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>rate limited</html>")

        github = GitHubClient(transport=httpx.MockTransport(handler))
        resolver = TemplateSourceResolver(github)
        with pytest.raises(TemplateSourceError, match="Could not look up"):
            await resolver.resolve(bot_spec, (), "https://github.com/wave/templates")

    @pytest.mark.asyncio
    async def test_existence_check_timeout(self, resolver, client, bot_spec):
        client.has_repo.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(TemplateSourceError, match="Could not look up"):
            await resolver.resolve(bot_spec, (), URL)


# ---------------------------------------------------------------------------
# materialize / download
# ---------------------------------------------------------------------------


class TestMaterialize:
    @pytest.mark.asyncio
    async def test_local_copies_kit(self, resolver, tmp_project_dir: Path):
        written = await resolver.materialize(LocalSource(LocalTemplate.BOT_JS), tmp_project_dir)
        assert (tmp_project_dir / "src" / "commands" / "ping.js").is_file()
        assert written

    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self, resolver, client, recorded_sleep, tmp_project_dir):
        client.download_and_extract.side_effect = [
            httpx.ConnectError("down"),
            httpx.ReadTimeout("slow"),
            [tmp_project_dir / "package.json"],
        ]
        written = await resolver.materialize(RemoteSource(repo=REPO, url=URL), tmp_project_dir)
        assert written == [tmp_project_dir / "package.json"]
        assert client.download_and_extract.await_count == 3
        assert [c.args[0] for c in recorded_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion(self, resolver, client, tmp_project_dir):
        client.download_and_extract.side_effect = httpx.ConnectError("down")
        with pytest.raises(RetryError):
            await resolver.materialize(RemoteSource(repo=REPO, url=URL), tmp_project_dir)
        assert client.download_and_extract.await_count == 3

    @pytest.mark.asyncio
    async def test_on_retry_callback(self, client, recorded_sleep, tmp_project_dir):
        callback = MagicMock()
        resolver = TemplateSourceResolver(client, sleep=recorded_sleep, on_retry=callback)
        client.download_and_extract.side_effect = [httpx.ConnectError("down"), []]
        await resolver.download(RemoteSource(repo=REPO, url=URL), tmp_project_dir)
        assert callback.call_count == 1
