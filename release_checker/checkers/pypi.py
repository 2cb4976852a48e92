"""PyPI package registry checker."""

from datetime import datetime
from typing import Any, Optional

import httpx

from ..constants import PYPI_API_BASE, REGISTRY_TIMEOUT
from ..errors import ConfigurationError
from ..models import HostKind, Project, PyPIProject, Release, parse_timestamp
from .base import BaseChecker


class PyPIChecker(BaseChecker):
    """Check for releases using the PyPI JSON API."""

    timeout = REGISTRY_TIMEOUT

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_base: str = PYPI_API_BASE,
    ) -> None:
        super().__init__(client)
        self._api_base = api_base.rstrip("/")

    @property
    def host_kind(self) -> HostKind:
        return HostKind.PYPI

    async def _fetch_releases(self, project: Project) -> list[Release]:
        if not isinstance(project, PyPIProject) or not project.package:
            raise ConfigurationError(
                "No package configured for this project", identifier=project.identifier
            )

        url = f"{self._api_base}/pypi/{project.package}/json"
        async with self._session() as client:
            data = await self._get_json(client, project, url)

        if not isinstance(data, dict) or not isinstance(data.get("releases"), dict):
            raise self._malformed(project, "missing 'releases' mapping")

        releases = []
        for version, files in data["releases"].items():
            if not isinstance(files, list):
                raise self._malformed(project, f"files of {version} is not a list")
            # A version whose every file was yanked is withdrawn
            if files and all(isinstance(f, dict) and f.get("yanked") for f in files):
                continue
            releases.append(
                Release(
                    version=str(version),
                    project_identifier=project.identifier,
                    published_at=self._earliest_upload(files),
                    url=f"https://pypi.org/project/{project.package}/{version}/",
                )
            )
        return releases

    @staticmethod
    def _earliest_upload(files: list[Any]) -> Optional[datetime]:
        times = [
            parsed
            for parsed in (
                parse_timestamp(f.get("upload_time_iso_8601") or f.get("upload_time"))
                for f in files
                if isinstance(f, dict)
            )
            if parsed is not None
        ]
        return min(times) if times else None
