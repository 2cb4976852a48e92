"""Release checkers for different hosts."""

from typing import Optional, Type

import httpx

from ..models import HostKind
from .base import BaseChecker
from .github import GitHubChecker
from .npm import NpmChecker
from .pypi import PyPIChecker
from .web import WebChecker

__all__ = [
    "BaseChecker",
    "GitHubChecker",
    "PyPIChecker",
    "NpmChecker",
    "WebChecker",
    "CheckerRegistry",
    "get_checker",
]


class CheckerRegistry:
    """Registry for release checkers."""

    _checkers: dict[HostKind, Type[BaseChecker]] = {}

    @classmethod
    def register(cls, host_kind: HostKind, checker_class: Type[BaseChecker]) -> None:
        """Register a checker for a host kind.

        Args:
            host_kind: The host kind.
            checker_class: The checker class to register.
        """
        cls._checkers[host_kind] = checker_class

    @classmethod
    def get_checker_class(cls, host_kind: HostKind) -> Type[BaseChecker] | None:
        """Get the checker class for a host kind.

        Args:
            host_kind: The host kind.

        Returns:
            The checker class, or None if not registered.
        """
        return cls._checkers.get(host_kind)

    @classmethod
    def create_checker(
        cls, host_kind: HostKind, client: Optional[httpx.AsyncClient] = None
    ) -> BaseChecker | None:
        """Create a checker instance for a host kind.

        Args:
            host_kind: The host kind.
            client: Optional shared HTTP client for the checker.

        Returns:
            A new checker instance, or None if not registered.
        """
        checker_class = cls.get_checker_class(host_kind)
        if checker_class:
            return checker_class(client=client)
        return None


CheckerRegistry.register(HostKind.GITHUB, GitHubChecker)
CheckerRegistry.register(HostKind.PYPI, PyPIChecker)
CheckerRegistry.register(HostKind.NPM, NpmChecker)
CheckerRegistry.register(HostKind.WEB, WebChecker)


def get_checker(
    host_kind: HostKind, client: Optional[httpx.AsyncClient] = None
) -> BaseChecker | None:
    """Get a checker instance for a host kind.

    Args:
        host_kind: The host kind.
        client: Optional shared HTTP client for the checker.

    Returns:
        A new checker instance, or None if not registered.
    """
    return CheckerRegistry.create_checker(host_kind, client=client)
