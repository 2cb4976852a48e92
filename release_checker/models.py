"""Data models for Release Checker."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from .errors import ConfigurationError


class HostKind(Enum):
    GITHUB = "github"
    PYPI = "pypi"
    NPM = "npm"
    WEB = "web"


class OutcomeStatus(Enum):
    REPORTED = "reported"
    NO_CHANGE = "no_change"
    FAILED_TRANSIENT = "failed_transient"
    FAILED_PERMANENT = "failed_permanent"


class CheckState(Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    DIFFED = "diffed"
    REPORTED = "reported"
    NO_CHANGE = "no_change"
    FAILED_TRANSIENT = "failed_transient"
    FAILED_PERMANENT = "failed_permanent"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as returned by host APIs.

    Args:
        value: Raw value from a JSON payload.

    Returns:
        A timezone-aware datetime, or None if missing or unparsable.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Release:
    """One published release of a project."""

    version: str
    project_identifier: str
    published_at: Optional[datetime] = None
    url: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.project_identifier, self.version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "project_identifier": self.project_identifier,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Release":
        return cls(
            version=str(data["version"]),
            project_identifier=str(data["project_identifier"]),
            published_at=parse_timestamp(data.get("published_at")),
            url=data.get("url") if isinstance(data.get("url"), str) else None,
        )


@dataclass
class Project:
    """A tracked software project hosted on some external platform.

    Subclasses carry the host-specific addressing their checker needs and
    pin ``host_kind`` at class level, so a project can never change host.
    """

    host_kind: ClassVar[HostKind]

    name: str = ""
    identifier: str = ""
    description: Optional[str] = None
    releases: list[Release] = field(default_factory=list, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.identifier:
            self.identifier = self.default_identifier()
        if not self.identifier:
            raise ConfigurationError(
                f"{type(self).__name__} needs an identifier or host address"
            )
        if not self.name:
            self.name = self.identifier

    def default_identifier(self) -> str:
        return ""

    def get_name(self) -> str:
        return self.name

    def get_identifier(self) -> str:
        return self.identifier

    def get_description(self) -> Optional[str]:
        return self.description

    def get_releases(self) -> list[Release]:
        return list(self.releases)

    def _address(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "host": self.host_kind.value,
            "name": self.name,
            "identifier": self.identifier,
            "description": self.description,
        }
        data.update(self._address())
        return data


@dataclass
class GitHubProject(Project):
    host_kind: ClassVar[HostKind] = HostKind.GITHUB

    repo: str = ""

    def default_identifier(self) -> str:
        return f"github:{self.repo}" if self.repo else ""

    def _address(self) -> dict[str, Any]:
        return {"repo": self.repo}


@dataclass
class PyPIProject(Project):
    host_kind: ClassVar[HostKind] = HostKind.PYPI

    package: str = ""

    def default_identifier(self) -> str:
        return f"pypi:{self.package}" if self.package else ""

    def _address(self) -> dict[str, Any]:
        return {"package": self.package}


@dataclass
class NpmProject(Project):
    host_kind: ClassVar[HostKind] = HostKind.NPM

    package: str = ""

    def default_identifier(self) -> str:
        return f"npm:{self.package}" if self.package else ""

    def _address(self) -> dict[str, Any]:
        return {"package": self.package}


@dataclass
class WebProject(Project):
    host_kind: ClassVar[HostKind] = HostKind.WEB

    url: str = ""
    version_regex: Optional[str] = None

    def default_identifier(self) -> str:
        return self.url

    def _address(self) -> dict[str, Any]:
        return {"url": self.url, "version_regex": self.version_regex}


def project_from_dict(data: dict[str, Any]) -> Project:
    """Build a project variant from its serialized form.

    Args:
        data: Dict with a "host" key plus the variant's fields.

    Returns:
        The matching Project subclass instance.

    Raises:
        ConfigurationError: If the host is unknown or addressing is missing.
    """
    host_raw = data.get("host")
    try:
        host = HostKind(host_raw)
    except ValueError:
        raise ConfigurationError(f"Unknown host kind: {host_raw!r}") from None

    def _get_str(key: str) -> Optional[str]:
        val = data.get(key)
        if isinstance(val, str) and val:
            return val
        return None

    common = {
        "name": _get_str("name") or "",
        "identifier": _get_str("identifier") or "",
        "description": _get_str("description"),
    }

    if host == HostKind.GITHUB:
        return GitHubProject(repo=_get_str("repo") or "", **common)
    if host == HostKind.PYPI:
        return PyPIProject(package=_get_str("package") or "", **common)
    if host == HostKind.NPM:
        return NpmProject(package=_get_str("package") or "", **common)
    return WebProject(
        url=_get_str("url") or "",
        version_regex=_get_str("version_regex"),
        **common,
    )


@dataclass
class ProjectOutcome:
    """Result of checking one project in one cycle."""

    identifier: str
    status: OutcomeStatus
    new_releases: list[Release] = field(default_factory=list)
    attempts: int = 0
    error: Optional[str] = None

    @property
    def new_count(self) -> int:
        return len(self.new_releases)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "status": self.status.value,
            "new_releases": [r.to_dict() for r in self.new_releases],
            "attempts": self.attempts,
            "error": self.error,
        }


@dataclass
class CycleReport:
    """Per-project outcomes of one checking cycle."""

    outcomes: list[ProjectOutcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def get(self, identifier: str) -> Optional[ProjectOutcome]:
        for outcome in self.outcomes:
            if outcome.identifier == identifier:
                return outcome
        return None

    def by_status(self, status: OutcomeStatus) -> list[ProjectOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def new_releases(self) -> list[Release]:
        return [r for o in self.outcomes for r in o.new_releases]

    @property
    def has_failures(self) -> bool:
        return any(
            o.status in (OutcomeStatus.FAILED_TRANSIENT, OutcomeStatus.FAILED_PERMANENT)
            for o in self.outcomes
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "new_releases_count": len(self.new_releases),
        }
