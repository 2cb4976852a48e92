"""Generic web page checker with regex version extraction."""

import re
from typing import Optional

import httpx

from ..constants import DEFAULT_VERSION_PATTERNS, WEB_TIMEOUT
from ..errors import ConfigurationError
from ..logging_config import get_logger
from ..models import HostKind, Project, Release, WebProject
from .base import BaseChecker

logger = get_logger(__name__)


class WebChecker(BaseChecker):
    """Check for releases by scraping version strings from a web page."""

    timeout = WEB_TIMEOUT
    # Pages move and come back; a 404 is not proof the project is gone
    not_found_is_permanent = False

    @property
    def host_kind(self) -> HostKind:
        return HostKind.WEB

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        headers["Accept"] = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
        return headers

    async def _fetch_releases(self, project: Project) -> list[Release]:
        if not isinstance(project, WebProject) or not project.url:
            raise ConfigurationError(
                "No url configured for this project", identifier=project.identifier
            )
        pattern = self._compile(project)

        async with self._session() as client:
            response = await self._get(client, project, project.url)
        content = response.text

        if pattern is not None:
            versions = self._extract_all(content, pattern)
        else:
            versions = self._auto_detect_versions(content)

        if not versions:
            logger.warning("No version strings found on %s", project.url)

        return [
            Release(version=version, project_identifier=project.identifier, url=project.url)
            for version in versions
        ]

    def _compile(self, project: WebProject) -> Optional[re.Pattern[str]]:
        if not project.version_regex:
            return None
        try:
            return re.compile(project.version_regex, re.IGNORECASE)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid regex pattern '{project.version_regex}': {e}",
                identifier=project.identifier,
            ) from e

    def _extract_all(self, content: str, pattern: re.Pattern[str]) -> list[str]:
        """Extract every version matched by a pattern, in page order.

        Args:
            content: Page content.
            pattern: Compiled regex; group 1 is the version when present.

        Returns:
            Unique version strings in order of first appearance.
        """
        versions: list[str] = []
        for match in pattern.finditer(content):
            version = match.group(1) if match.groups() else match.group(0)
            if version and version not in versions:
                versions.append(version)
        return versions

    def _auto_detect_versions(self, content: str) -> list[str]:
        """Extract versions with the first default pattern that matches."""
        for raw in DEFAULT_VERSION_PATTERNS:
            versions = self._extract_all(content, re.compile(raw, re.IGNORECASE))
            if versions:
                return versions
        return []
