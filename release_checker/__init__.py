"""Release Checker: detect new releases of projects on external hosts."""

from .constants import __version__
from .errors import CheckFailure, ConfigurationError, StoreError, TransientFetchError
from .models import (
    CycleReport,
    GitHubProject,
    HostKind,
    NpmProject,
    OutcomeStatus,
    Project,
    ProjectOutcome,
    PyPIProject,
    Release,
    WebProject,
)
from .service import ReleaseCheckService
from .store import JsonReleaseStore, MemoryReleaseStore, ReleaseStore

__all__ = [
    "__version__",
    "CheckFailure",
    "ConfigurationError",
    "StoreError",
    "TransientFetchError",
    "CycleReport",
    "GitHubProject",
    "HostKind",
    "NpmProject",
    "OutcomeStatus",
    "Project",
    "ProjectOutcome",
    "PyPIProject",
    "Release",
    "WebProject",
    "ReleaseCheckService",
    "JsonReleaseStore",
    "MemoryReleaseStore",
    "ReleaseStore",
]
