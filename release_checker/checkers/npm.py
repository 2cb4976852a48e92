"""npm registry checker."""

from typing import Optional
from urllib.parse import quote

import httpx

from ..constants import NPM_REGISTRY_BASE, NPM_WEB_BASE, REGISTRY_TIMEOUT
from ..errors import ConfigurationError
from ..models import HostKind, NpmProject, Project, Release, parse_timestamp
from .base import BaseChecker


class NpmChecker(BaseChecker):
    """Check for releases using the npm registry packument."""

    timeout = REGISTRY_TIMEOUT

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        registry_base: str = NPM_REGISTRY_BASE,
    ) -> None:
        super().__init__(client)
        self._registry_base = registry_base.rstrip("/")

    @property
    def host_kind(self) -> HostKind:
        return HostKind.NPM

    async def _fetch_releases(self, project: Project) -> list[Release]:
        if not isinstance(project, NpmProject) or not project.package:
            raise ConfigurationError(
                "No package configured for this project", identifier=project.identifier
            )

        # Scoped names keep their "@" but the slash must be escaped
        url = f"{self._registry_base}/{quote(project.package, safe='@')}"
        async with self._session() as client:
            data = await self._get_json(client, project, url)

        if not isinstance(data, dict) or not isinstance(data.get("versions"), dict):
            raise self._malformed(project, "missing 'versions' mapping")
        times = data.get("time") if isinstance(data.get("time"), dict) else {}

        return [
            Release(
                version=str(version),
                project_identifier=project.identifier,
                published_at=parse_timestamp(times.get(version)),
                url=f"{NPM_WEB_BASE}/package/{project.package}/v/{version}",
            )
            for version in data["versions"]
        ]
