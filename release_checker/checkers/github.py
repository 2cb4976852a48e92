"""GitHub releases checker."""

import os
import re
from typing import Any, Optional

import httpx

from ..constants import GITHUB_API_BASE, GITHUB_MAX_PAGES, GITHUB_PER_PAGE, GITHUB_TIMEOUT
from ..errors import ConfigurationError
from ..logging_config import get_logger
from ..models import GitHubProject, HostKind, Project, Release, parse_timestamp
from .base import BaseChecker

logger = get_logger(__name__)

REPO_PATTERN = re.compile(r"^[\w-]+/[\w.-]+$")


class GitHubChecker(BaseChecker):
    """Check for releases using the GitHub releases API."""

    timeout = GITHUB_TIMEOUT

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_token: Optional[str] = None,
        api_base: str = GITHUB_API_BASE,
    ) -> None:
        """Initialize the GitHub checker.

        Args:
            client: Optional shared HTTP client.
            api_token: Optional GitHub API token for higher rate limits.
            api_base: API root, overridable for GitHub Enterprise.
        """
        super().__init__(client)
        self._api_token = api_token or os.environ.get("GITHUB_TOKEN")
        self._api_base = api_base.rstrip("/")

    @property
    def host_kind(self) -> HostKind:
        return HostKind.GITHUB

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        headers["Accept"] = "application/vnd.github+json"
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def _fetch_releases(self, project: Project) -> list[Release]:
        if not isinstance(project, GitHubProject) or not REPO_PATTERN.match(project.repo):
            raise ConfigurationError(
                f"Invalid repository format {getattr(project, 'repo', None)!r}. Use 'owner/repo'",
                identifier=project.identifier,
            )

        url: Optional[str] = f"{self._api_base}/repos/{project.repo}/releases"
        params: Optional[dict[str, Any]] = {"per_page": GITHUB_PER_PAGE}
        releases: list[Release] = []
        pages = 0

        async with self._session() as client:
            while url and pages < GITHUB_MAX_PAGES:
                response = await self._get(client, project, url, params=params)
                try:
                    payload = response.json()
                except ValueError as e:
                    raise self._malformed(project, "invalid JSON") from e
                if not isinstance(payload, list):
                    raise self._malformed(project, "expected a list of releases")

                releases.extend(self._parse_releases(project, payload))
                pages += 1
                # The next link already carries the query string
                url = response.links.get("next", {}).get("url")
                params = None

        if url:
            logger.warning(
                "Stopped after %d pages of releases for %s", pages, project.repo
            )
        return releases

    def _parse_releases(self, project: GitHubProject, payload: list[Any]) -> list[Release]:
        releases = []
        for item in payload:
            if not isinstance(item, dict):
                raise self._malformed(project, "release entry is not an object")
            if item.get("draft"):
                continue
            tag = item.get("tag_name")
            if not isinstance(tag, str) or not tag:
                raise self._malformed(project, "release without tag_name")
            html_url = item.get("html_url")
            releases.append(
                Release(
                    version=tag,
                    project_identifier=project.identifier,
                    published_at=parse_timestamp(item.get("published_at")),
                    url=html_url if isinstance(html_url, str) else None,
                )
            )
        return releases
