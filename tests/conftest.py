"""Shared fixtures and fakes for release checker tests."""

import asyncio
from typing import Any, Sequence

import pytest

from release_checker.checkers import BaseChecker
from release_checker.models import GitHubProject, HostKind, Project, Release
from release_checker.notifications import NotificationSink
from release_checker.store import MemoryReleaseStore


class FakeChecker(BaseChecker):
    """Checker that replays scripted responses instead of calling a host.

    Each entry in ``responses`` is either a list of versions (or Release
    objects) or an exception to raise. The last entry repeats forever.
    """

    def __init__(
        self,
        responses: Sequence[Any],
        host_kind: HostKind = HostKind.GITHUB,
        delay: float = 0.0,
    ) -> None:
        super().__init__()
        self._kind = host_kind
        self.responses = list(responses)
        self.delay = delay
        self.calls = 0

    @property
    def host_kind(self) -> HostKind:
        return self._kind

    def set_responses(self, responses: Sequence[Any]) -> None:
        self.responses = list(responses)

    async def _fetch_releases(self, project: Project) -> list[Release]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return [
            v if isinstance(v, Release) else Release(version=v, project_identifier=project.identifier)
            for v in item
        ]


class RecordingSink(NotificationSink):
    """Sink that remembers every notification it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[Release]]] = []

    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        self.calls.append((identifier, list(releases)))

    def versions_for(self, identifier: str) -> list[str]:
        return [r.version for ident, rels in self.calls if ident == identifier for r in rels]


@pytest.fixture
def store() -> MemoryReleaseStore:
    return MemoryReleaseStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def project() -> GitHubProject:
    return GitHubProject(name="Project One", identifier="proj-1", repo="acme/proj-1")
