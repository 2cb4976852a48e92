"""Exception types for Release Checker."""


class ReleaseCheckerError(Exception):
    """Base class for all release checker errors."""


class CheckFailure(ReleaseCheckerError):
    """A checker could not produce a release list for a project.

    ``permanent`` tells the orchestrator whether retrying can help.
    """

    permanent: bool = False

    def __init__(self, message: str, identifier: str | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class ConfigurationError(CheckFailure):
    """Project and checker do not fit together; needs an operator fix."""

    permanent = True


class TransientFetchError(CheckFailure):
    """Network, timeout or parse failure; may succeed on a later attempt."""

    permanent = False


class StoreError(ReleaseCheckerError):
    """The release store could not be read or written."""
