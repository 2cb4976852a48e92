"""Service layer for Release Checker.

Drives one checking cycle: fetch each project's releases through its
host's checker, diff against the release store, persist, then notify.

Delivery policy: the merged version set is written to the store *before*
the notification sink is called. A crash between the two loses that
notification rather than sending it twice (at-most-once delivery).
"""

import asyncio
from datetime import datetime
from typing import Mapping, Optional, Sequence

import httpx

from .checkers import BaseChecker, get_checker
from .constants import CHECK_DEADLINE, MAX_CHECK_ATTEMPTS, MAX_CONCURRENT_CHECKS, RETRY_BACKOFF
from .diff import merge_seen, new_releases
from .errors import CheckFailure, ConfigurationError, StoreError, TransientFetchError
from .logging_config import get_logger
from .metrics import CheckMetrics
from .models import (
    CheckState,
    CycleReport,
    HostKind,
    OutcomeStatus,
    Project,
    ProjectOutcome,
    Release,
)
from .notifications import LogNotificationSink, NotificationSink
from .store import ReleaseStore

logger = get_logger(__name__)


class ReleaseCheckService:
    """Service for detecting new releases across tracked projects.

    This service provides:
    - Per-host checker dispatch by ``HostKind``
    - Bounded concurrency and a per-attempt deadline
    - Bounded retry with exponential backoff for transient failures
    - Per-project serialized read-diff-persist against the store
    """

    def __init__(
        self,
        store: ReleaseStore,
        sink: Optional[NotificationSink] = None,
        checkers: Optional[Mapping[HostKind, BaseChecker]] = None,
        max_concurrent: int = MAX_CONCURRENT_CHECKS,
        max_attempts: int = MAX_CHECK_ATTEMPTS,
        retry_backoff: float = RETRY_BACKOFF,
        check_timeout: float = CHECK_DEADLINE,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[CheckMetrics] = None,
    ) -> None:
        """Initialize the release check service.

        Args:
            store: Where seen versions are kept per project identifier.
            sink: Receives newly discovered releases. Logs them by default.
            checkers: Explicit checker per host kind. Missing kinds fall back
                to the checker registry.
            max_concurrent: Maximum number of checks in flight.
            max_attempts: Attempts per project per cycle for transient errors.
            retry_backoff: Base delay in seconds, doubled after each attempt.
            check_timeout: Deadline in seconds for a single check attempt.
            client: Optional shared HTTP client handed to registry checkers.
            metrics: Counter set to update; a new one is created if omitted.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._sink = sink or LogNotificationSink()
        self._checker_cache: dict[HostKind, BaseChecker] = dict(checkers or {})
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._max_attempts = max_attempts
        self._retry_backoff = retry_backoff
        self._check_timeout = check_timeout
        self._client = client
        self._locks: dict[str, asyncio.Lock] = {}
        self._states: dict[str, CheckState] = {}
        self.metrics = metrics or CheckMetrics()

    def _get_checker(self, host_kind: HostKind) -> Optional[BaseChecker]:
        """Get or create the checker for a host kind."""
        if host_kind not in self._checker_cache:
            checker = get_checker(host_kind, client=self._client)
            if checker:
                self._checker_cache[host_kind] = checker
        return self._checker_cache.get(host_kind)

    def _lock_for(self, identifier: str) -> asyncio.Lock:
        return self._locks.setdefault(identifier, asyncio.Lock())

    def get_state(self, identifier: str) -> Optional[CheckState]:
        """Return the last known check state of a project."""
        return self._states.get(identifier)

    def _set_state(self, identifier: str, state: CheckState) -> None:
        self._states[identifier] = state
        logger.debug("%s -> %s", identifier, state.value)

    async def run_cycle(self, projects: Sequence[Project]) -> CycleReport:
        """Check every project once and report per-project outcomes.

        Projects are checked concurrently; one project's failure never
        affects another. A project whose identifier repeats an earlier one
        in ``projects`` fails permanently without being checked.

        Args:
            projects: The configured projects.

        Returns:
            CycleReport with one outcome per project, in input order.
        """
        report = CycleReport()
        self.metrics.record_cycle()
        logger.info("Starting release check cycle for %d projects", len(projects))

        identifiers: set[str] = set()
        checks = []
        for project in projects:
            if project.identifier in identifiers:
                checks.append(self._reject_duplicate(project))
            else:
                identifiers.add(project.identifier)
                checks.append(self.check_project(project))

        report.outcomes = list(await asyncio.gather(*checks))
        report.finished_at = datetime.now()

        logger.info(
            "Cycle finished: %d reported, %d unchanged, %d transient failures, "
            "%d permanent failures, %d new releases",
            len(report.by_status(OutcomeStatus.REPORTED)),
            len(report.by_status(OutcomeStatus.NO_CHANGE)),
            len(report.by_status(OutcomeStatus.FAILED_TRANSIENT)),
            len(report.by_status(OutcomeStatus.FAILED_PERMANENT)),
            len(report.new_releases),
        )
        return report

    async def check_project(self, project: Project) -> ProjectOutcome:
        """Run the fetch, diff, persist and notify steps for one project.

        Args:
            project: The project to check.

        Returns:
            The project's outcome for this cycle.
        """
        identifier = project.identifier
        self._set_state(identifier, CheckState.PENDING)

        checker = self._get_checker(project.host_kind)
        if checker is None:
            return self._failure(
                identifier,
                ConfigurationError(
                    f"No checker available for host: {project.host_kind.value}",
                    identifier=identifier,
                ),
                attempts=0,
            )

        attempts = 0
        while True:
            attempts += 1
            self.metrics.record_attempt(retry=attempts > 1)
            self._set_state(identifier, CheckState.FETCHING)
            try:
                async with self._semaphore:
                    fetched = await asyncio.wait_for(
                        checker.check(project), timeout=self._check_timeout
                    )
                break
            except ConfigurationError as e:
                return self._failure(identifier, e, attempts)
            except TransientFetchError as e:
                error: CheckFailure = e
            except asyncio.TimeoutError:
                error = TransientFetchError(
                    f"Check exceeded {self._check_timeout:.0f}s deadline",
                    identifier=identifier,
                )
            except Exception as e:
                logger.exception("Unexpected error checking %s", identifier)
                error = TransientFetchError(str(e) or type(e).__name__, identifier=identifier)

            if attempts >= self._max_attempts:
                return self._failure(identifier, error, attempts)

            delay = self._retry_backoff * 2 ** (attempts - 1)
            logger.warning(
                "Attempt %d/%d for %s failed: %s; retrying in %.1fs",
                attempts, self._max_attempts, identifier, error, delay,
            )
            await asyncio.sleep(delay)

        project.releases = list(fetched)
        return await self._diff_and_report(identifier, fetched, attempts)

    async def _diff_and_report(
        self, identifier: str, fetched: list[Release], attempts: int
    ) -> ProjectOutcome:
        async with self._lock_for(identifier):
            try:
                seen = self._store.get(identifier)
                fresh = new_releases(fetched, seen)
                self._set_state(identifier, CheckState.DIFFED)
                if not fresh:
                    self._set_state(identifier, CheckState.NO_CHANGE)
                    logger.debug("No new releases for %s", identifier)
                    return ProjectOutcome(
                        identifier=identifier,
                        status=OutcomeStatus.NO_CHANGE,
                        attempts=attempts,
                    )
                self._store.put(identifier, merge_seen(seen, fetched))
            except StoreError as e:
                return self._failure(identifier, e, attempts)
            except Exception as e:
                logger.exception("Unexpected store error for %s", identifier)
                return self._failure(
                    identifier, StoreError(str(e) or type(e).__name__), attempts
                )

        self.metrics.record_new_releases(len(fresh))
        logger.info(
            "Found %d new releases for %s: %s",
            len(fresh), identifier, ", ".join(r.version for r in fresh),
        )
        try:
            await self._sink.notify(identifier, fresh)
        except Exception:
            logger.exception("Notification for %s failed", identifier)

        self._set_state(identifier, CheckState.REPORTED)
        return ProjectOutcome(
            identifier=identifier,
            status=OutcomeStatus.REPORTED,
            new_releases=fresh,
            attempts=attempts,
        )

    async def _reject_duplicate(self, project: Project) -> ProjectOutcome:
        return self._failure(
            project.identifier,
            ConfigurationError(
                f"Duplicate project identifier: {project.identifier}",
                identifier=project.identifier,
            ),
            attempts=0,
            track_state=False,
        )

    def _failure(
        self,
        identifier: str,
        error: Exception,
        attempts: int,
        track_state: bool = True,
    ) -> ProjectOutcome:
        if isinstance(error, CheckFailure) and error.permanent:
            status = OutcomeStatus.FAILED_PERMANENT
            state = CheckState.FAILED_PERMANENT
            kind = "configuration"
            logger.error("Check of %s failed permanently: %s", identifier, error)
        else:
            status = OutcomeStatus.FAILED_TRANSIENT
            state = CheckState.FAILED_TRANSIENT
            kind = "store" if isinstance(error, StoreError) else "transient"
            logger.warning(
                "Check of %s failed after %d attempts: %s", identifier, attempts, error
            )

        self.metrics.record_failure(kind)
        if track_state:
            self._set_state(identifier, state)
        return ProjectOutcome(
            identifier=identifier,
            status=status,
            attempts=attempts,
            error=str(error),
        )
