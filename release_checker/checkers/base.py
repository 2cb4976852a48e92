"""Base checker abstract class."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from ..constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from ..errors import ConfigurationError, TransientFetchError
from ..logging_config import get_logger
from ..models import HostKind, Project, Release

logger = get_logger(__name__)


class BaseChecker(ABC):
    """Abstract base class for release checkers.

    A checker fetches the complete current release list of one project from
    its host. It never touches the release store and never retries; the
    orchestrator owns both concerns.
    """

    timeout: float = DEFAULT_HTTP_TIMEOUT
    # Whether a 404/410 from the host means the project is misconfigured
    not_found_is_permanent: bool = True

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize the checker.

        Args:
            client: Optional shared HTTP client. When omitted, a client is
                created for each check.
        """
        self._client = client

    @property
    @abstractmethod
    def host_kind(self) -> HostKind:
        """Return the host kind this checker handles."""

    def can_check(self, project: Project) -> bool:
        """Check if this checker can handle the given project.

        Args:
            project: The project to check.

        Returns:
            True if this checker can handle the project.
        """
        return project.host_kind == self.host_kind

    async def check(self, project: Project) -> list[Release]:
        """Fetch the current release list for a project.

        Args:
            project: The project to check.

        Returns:
            Every release the host currently lists, in host order, one per
            version.

        Raises:
            ConfigurationError: If the project does not belong to this host
                or its addressing is unusable.
            TransientFetchError: If the host is unreachable or its answer
                cannot be parsed.
        """
        if not self.can_check(project):
            raise ConfigurationError(
                f"{type(self).__name__} cannot check {project.host_kind.value} "
                f"project {project.identifier}",
                identifier=project.identifier,
            )

        releases = await self._fetch_releases(project)
        unique: list[Release] = []
        versions: set[str] = set()
        for release in releases:
            if release.version in versions:
                continue
            versions.add(release.version)
            unique.append(release)
        logger.debug("%s lists %d releases", project.identifier, len(unique))
        return unique

    @abstractmethod
    async def _fetch_releases(self, project: Project) -> list[Release]:
        """Host-specific fetch and parse."""

    def _default_headers(self) -> dict[str, str]:
        return {"User-Agent": DEFAULT_USER_AGENT}

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=10,
        ) as client:
            yield client

    async def _get(
        self,
        client: httpx.AsyncClient,
        project: Project,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """GET a URL, mapping failures onto the checker error types."""
        merged = self._default_headers()
        if headers:
            merged.update(headers)
        try:
            response = await client.get(url, params=params, headers=merged)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise TransientFetchError(
                f"Timeout fetching {url}", identifier=project.identifier
            ) from e
        except httpx.HTTPStatusError as e:
            raise self._status_error(project, e.response) from e
        except httpx.HTTPError as e:
            raise TransientFetchError(
                f"Error fetching {url}: {e}", identifier=project.identifier
            ) from e

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        project: Project,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        response = await self._get(client, project, url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise TransientFetchError(
                f"Invalid JSON from {url}", identifier=project.identifier
            ) from e

    def _status_error(self, project: Project, response: httpx.Response) -> Exception:
        status = response.status_code
        if status in (404, 410) and self.not_found_is_permanent:
            return ConfigurationError(
                f"{project.identifier} not found on {self.host_kind.value} (HTTP {status})",
                identifier=project.identifier,
            )
        return TransientFetchError(
            f"HTTP error: {status}", identifier=project.identifier
        )

    def _malformed(self, project: Project, detail: str) -> TransientFetchError:
        return TransientFetchError(
            f"Malformed response for {project.identifier}: {detail}",
            identifier=project.identifier,
        )
