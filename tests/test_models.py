"""Tests for data models."""

import dataclasses
from datetime import datetime, timezone

import pytest

from release_checker.errors import ConfigurationError
from release_checker.models import (
    CycleReport,
    GitHubProject,
    HostKind,
    NpmProject,
    OutcomeStatus,
    ProjectOutcome,
    PyPIProject,
    Release,
    WebProject,
    parse_timestamp,
    project_from_dict,
)


class TestRelease:
    """Tests for Release."""

    def test_immutable(self) -> None:
        """Releases cannot be modified after creation."""
        release = Release(version="1.0", project_identifier="p")
        with pytest.raises(dataclasses.FrozenInstanceError):
            release.version = "2.0"  # type: ignore[misc]

    def test_key(self) -> None:
        """The key pairs project identifier and version."""
        assert Release(version="1.0", project_identifier="p").key == ("p", "1.0")

    def test_dict_round_trip_keeps_timestamp(self) -> None:
        """to_dict/from_dict preserve an aware timestamp."""
        published = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        release = Release("1.0", "p", published_at=published, url="https://x")
        assert Release.from_dict(release.to_dict()) == release


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_zulu_suffix(self) -> None:
        """GitHub style 'Z' timestamps are parsed as UTC."""
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(
            2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc
        )

    def test_naive_assumed_utc(self) -> None:
        """Timestamps without an offset are treated as UTC."""
        assert parse_timestamp("2024-01-02T03:04:05").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "yesterday", 42])
    def test_invalid(self, value) -> None:
        """Missing or garbage values become None."""
        assert parse_timestamp(value) is None


class TestProjects:
    """Tests for Project variants."""

    def test_default_identifiers(self) -> None:
        """Each variant derives a canonical identifier from its address."""
        assert GitHubProject(repo="acme/tool").identifier == "github:acme/tool"
        assert PyPIProject(package="httpx").identifier == "pypi:httpx"
        assert NpmProject(package="@scope/pkg").identifier == "npm:@scope/pkg"
        assert WebProject(url="https://example.com/dl").identifier == "https://example.com/dl"

    def test_explicit_identifier_wins(self) -> None:
        """An explicit identifier overrides the derived one."""
        assert GitHubProject(identifier="proj-1", repo="acme/tool").get_identifier() == "proj-1"

    def test_name_defaults_to_identifier(self) -> None:
        """Unnamed projects are labelled by their identifier."""
        assert PyPIProject(package="httpx").get_name() == "pypi:httpx"

    def test_description_optional(self) -> None:
        """Description is None unless provided."""
        assert PyPIProject(package="httpx").get_description() is None
        assert PyPIProject(package="httpx", description="HTTP").get_description() == "HTTP"

    def test_missing_address_rejected(self) -> None:
        """A project with neither identifier nor address is a config error."""
        with pytest.raises(ConfigurationError):
            GitHubProject()

    def test_host_kind_is_per_variant(self) -> None:
        """host_kind is fixed by the variant class."""
        assert GitHubProject(repo="a/b").host_kind == HostKind.GITHUB
        assert WebProject(url="https://x").host_kind == HostKind.WEB
        assert "host_kind" not in {f.name for f in dataclasses.fields(GitHubProject)}

    def test_releases_start_empty(self) -> None:
        """A new project knows no releases."""
        assert NpmProject(package="left-pad").get_releases() == []


class TestProjectFromDict:
    """Tests for project_from_dict."""

    def test_round_trip(self) -> None:
        """to_dict output rebuilds an equal project."""
        project = WebProject(
            name="Tool", url="https://example.com", version_regex=r"v(\d+)", description="d"
        )
        assert project_from_dict(project.to_dict()) == project

    def test_dispatch_by_host(self) -> None:
        """The host key selects the variant."""
        project = project_from_dict({"host": "npm", "package": "react"})
        assert isinstance(project, NpmProject)
        assert project.identifier == "npm:react"

    def test_unknown_host(self) -> None:
        """Unknown hosts are configuration errors."""
        with pytest.raises(ConfigurationError):
            project_from_dict({"host": "sourceforge", "url": "https://x"})


class TestCycleReport:
    """Tests for CycleReport helpers."""

    def test_aggregates(self) -> None:
        """Report helpers summarize outcomes."""
        release = Release("1.0", "a")
        report = CycleReport(
            outcomes=[
                ProjectOutcome("a", OutcomeStatus.REPORTED, new_releases=[release]),
                ProjectOutcome("b", OutcomeStatus.NO_CHANGE),
                ProjectOutcome("c", OutcomeStatus.FAILED_PERMANENT, error="bad"),
            ]
        )
        assert report.new_releases == [release]
        assert report.get("a").new_count == 1
        assert report.get("zzz") is None
        assert report.has_failures
        assert [o.identifier for o in report.by_status(OutcomeStatus.NO_CHANGE)] == ["b"]
        assert report.to_dict()["new_releases_count"] == 1
