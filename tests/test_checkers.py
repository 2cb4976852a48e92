"""Tests for host checkers against a mocked HTTP transport."""

from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from release_checker.checkers import (
    CheckerRegistry,
    GitHubChecker,
    NpmChecker,
    PyPIChecker,
    WebChecker,
    get_checker,
)
from release_checker.errors import ConfigurationError, TransientFetchError
from release_checker.models import (
    GitHubProject,
    HostKind,
    NpmProject,
    PyPIProject,
    WebProject,
)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRegistry:
    """Tests for checker dispatch."""

    def test_every_host_kind_registered(self) -> None:
        """Each host kind has a checker."""
        for kind in HostKind:
            assert CheckerRegistry.get_checker_class(kind) is not None

    def test_get_checker(self) -> None:
        """get_checker builds the matching checker."""
        checker = get_checker(HostKind.PYPI)
        assert isinstance(checker, PyPIChecker)
        assert checker.host_kind == HostKind.PYPI


class TestGitHubChecker:
    """Tests for GitHubChecker."""

    @pytest.mark.asyncio
    async def test_lists_releases_across_pages(self) -> None:
        """All pages are read; drafts are skipped."""
        next_url = "https://api.github.com/repositories/1/releases?per_page=100&page=2"

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer secret"
            if request.url.params.get("page") == "2":
                return httpx.Response(
                    200,
                    json=[{"tag_name": "v1.0", "published_at": "2024-01-01T00:00:00Z",
                           "html_url": "https://github.com/acme/tool/releases/v1.0"}],
                )
            assert request.url.path == "/repos/acme/tool/releases"
            return httpx.Response(
                200,
                headers={"Link": f'<{next_url}>; rel="next"'},
                json=[
                    {"tag_name": "v1.2", "published_at": "2024-03-01T00:00:00Z",
                     "html_url": "https://github.com/acme/tool/releases/v1.2"},
                    {"tag_name": "v1.3-draft", "draft": True},
                    {"tag_name": "v1.1", "published_at": None, "html_url": None},
                ],
            )

        project = GitHubProject(repo="acme/tool")
        async with mock_client(handler) as client:
            releases = await GitHubChecker(client=client, api_token="secret").check(project)

        assert [r.version for r in releases] == ["v1.2", "v1.1", "v1.0"]
        assert releases[0].published_at == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert releases[1].published_at is None
        assert all(r.project_identifier == "github:acme/tool" for r in releases)

    @pytest.mark.asyncio
    async def test_non_string_html_url_dropped(self) -> None:
        """Only string release links are kept."""
        payload = [{"tag_name": "v2.0", "html_url": 42}, {"tag_name": "v1.0", "html_url": ["x"]}]
        async with mock_client(lambda r: httpx.Response(200, json=payload)) as client:
            releases = await GitHubChecker(client=client).check(GitHubProject(repo="acme/tool"))

        assert [r.version for r in releases] == ["v2.0", "v1.0"]
        assert all(r.url is None for r in releases)

    @pytest.mark.asyncio
    async def test_not_found_is_configuration_error(self) -> None:
        """A missing repository needs an operator fix."""
        async with mock_client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(ConfigurationError):
                await GitHubChecker(client=client).check(GitHubProject(repo="acme/gone"))

    @pytest.mark.asyncio
    async def test_rate_limit_is_transient(self) -> None:
        """A 403 rate limit may clear up later."""
        async with mock_client(lambda r: httpx.Response(403)) as client:
            with pytest.raises(TransientFetchError):
                await GitHubChecker(client=client).check(GitHubProject(repo="acme/tool"))

    @pytest.mark.asyncio
    async def test_bad_repo_format(self) -> None:
        """Malformed repository names fail before any request."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with mock_client(handler) as client:
            with pytest.raises(ConfigurationError):
                await GitHubChecker(client=client).check(GitHubProject(repo="not a repo"))

    @pytest.mark.asyncio
    async def test_malformed_payload_is_transient(self) -> None:
        """A payload that is not a release list cannot be trusted."""
        async with mock_client(lambda r: httpx.Response(200, json={"message": "?"})) as client:
            with pytest.raises(TransientFetchError):
                await GitHubChecker(client=client).check(GitHubProject(repo="acme/tool"))

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self) -> None:
        """Transport failures map to TransientFetchError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransientFetchError):
                await GitHubChecker(client=client).check(GitHubProject(repo="acme/tool"))

    @pytest.mark.asyncio
    async def test_wrong_host_kind(self) -> None:
        """A non-GitHub project is rejected as a configuration error."""
        with pytest.raises(ConfigurationError):
            await GitHubChecker().check(PyPIProject(package="httpx"))


class TestPyPIChecker:
    """Tests for PyPIChecker."""

    @pytest.mark.asyncio
    async def test_lists_versions(self) -> None:
        """Versions come from 'releases'; fully yanked ones are skipped."""
        payload = {
            "info": {"name": "tool"},
            "releases": {
                "1.0": [
                    {"upload_time_iso_8601": "2024-01-02T00:00:00.000000Z"},
                    {"upload_time_iso_8601": "2024-01-01T00:00:00.000000Z"},
                ],
                "1.1": [{"upload_time_iso_8601": "2024-02-01T00:00:00Z", "yanked": True}],
                "2.0": [],
            },
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/pypi/tool/json"
            return httpx.Response(200, json=payload)

        async with mock_client(handler) as client:
            releases = await PyPIChecker(client=client).check(PyPIProject(package="tool"))

        assert [r.version for r in releases] == ["1.0", "2.0"]
        assert releases[0].published_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert releases[0].url == "https://pypi.org/project/tool/1.0/"
        assert releases[1].published_at is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_transient(self) -> None:
        """An unparsable body is a transient failure."""
        async with mock_client(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(TransientFetchError):
                await PyPIChecker(client=client).check(PyPIProject(package="tool"))

    @pytest.mark.asyncio
    async def test_unknown_package(self) -> None:
        """A 404 from PyPI means the package name is wrong."""
        async with mock_client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(ConfigurationError):
                await PyPIChecker(client=client).check(PyPIProject(package="nope"))


class TestNpmChecker:
    """Tests for NpmChecker."""

    @pytest.mark.asyncio
    async def test_lists_versions_with_times(self) -> None:
        """Versions are paired with their publish time."""
        payload = {
            "versions": {"1.0.0": {}, "1.1.0": {}},
            "time": {
                "created": "2023-12-01T00:00:00.000Z",
                "1.0.0": "2024-01-01T00:00:00.000Z",
            },
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.raw_path == b"/@scope%2Fpkg"
            return httpx.Response(200, json=payload)

        project = NpmProject(package="@scope/pkg")
        async with mock_client(handler) as client:
            releases = await NpmChecker(client=client).check(project)

        assert [r.version for r in releases] == ["1.0.0", "1.1.0"]
        assert releases[0].published_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert releases[1].published_at is None
        assert releases[0].url == "https://www.npmjs.com/package/@scope/pkg/v/1.0.0"

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self) -> None:
        """5xx responses are retried by the orchestrator."""
        async with mock_client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(TransientFetchError):
                await NpmChecker(client=client).check(NpmProject(package="pkg"))


class TestWebChecker:
    """Tests for WebChecker."""

    PAGE = """
    <h1>Downloads</h1>
    <li>Version 2.1.0 (latest)</li>
    <li>Version 2.0.3</li>
    <li>Version 2.1.0 mirror</li>
    <footer>Copyright 2024</footer>
    """

    @pytest.mark.asyncio
    async def test_custom_regex(self) -> None:
        """Group 1 of the configured regex is the version."""
        project = WebProject(url="https://example.com/dl", version_regex=r"Version (\S+)")
        async with mock_client(lambda r: httpx.Response(200, text=self.PAGE)) as client:
            releases = await WebChecker(client=client).check(project)

        assert [r.version for r in releases] == ["2.1.0", "2.0.3"]
        assert all(r.url == "https://example.com/dl" for r in releases)
        assert all(r.published_at is None for r in releases)

    @pytest.mark.asyncio
    async def test_auto_detect(self) -> None:
        """Without a regex, the default patterns find the versions."""
        project = WebProject(url="https://example.com/dl")
        async with mock_client(lambda r: httpx.Response(200, text=self.PAGE)) as client:
            releases = await WebChecker(client=client).check(project)

        assert [r.version for r in releases] == ["2.1.0", "2.0.3"]

    @pytest.mark.asyncio
    async def test_no_versions_on_page(self) -> None:
        """A page without versions yields an empty list, not an error."""
        project = WebProject(url="https://example.com/dl")
        async with mock_client(lambda r: httpx.Response(200, text="nothing")) as client:
            assert await WebChecker(client=client).check(project) == []

    @pytest.mark.asyncio
    async def test_invalid_regex(self) -> None:
        """A broken regex is a configuration error."""
        project = WebProject(url="https://example.com/dl", version_regex="(unclosed")
        async with mock_client(lambda r: httpx.Response(200, text=self.PAGE)) as client:
            with pytest.raises(ConfigurationError):
                await WebChecker(client=client).check(project)

    @pytest.mark.asyncio
    async def test_not_found_is_transient(self) -> None:
        """A missing page may come back, so it is retried."""
        project = WebProject(url="https://example.com/dl")
        async with mock_client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(TransientFetchError):
                await WebChecker(client=client).check(project)

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self) -> None:
        """Read timeouts map to TransientFetchError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        project = WebProject(url="https://example.com/dl")
        async with mock_client(handler) as client:
            with pytest.raises(TransientFetchError):
                await WebChecker(client=client).check(project)
