"""Notification sinks for newly discovered releases.

Delivery is best effort: a sink logs its own failures and the orchestrator
never retries a notification.
"""

import asyncio
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx

from .constants import DEFAULT_USER_AGENT, MAX_NOTIFIED_NAMES, WEBHOOK_TIMEOUT
from .logging_config import get_logger
from .models import Release

logger = get_logger(__name__)


class NotificationSink(ABC):
    """Receives the new releases found for one project in one cycle."""

    @abstractmethod
    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        """Deliver a notification about new releases."""


class LogNotificationSink(NotificationSink):
    """Write new releases to the log."""

    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        for release in releases:
            logger.info(
                "New release %s for %s%s",
                release.version,
                identifier,
                f" ({release.url})" if release.url else "",
            )


class DesktopNotificationSink(NotificationSink):
    """Show a desktop notification per project.

    The platform call blocks for up to its subprocess timeout, so it runs in
    a worker thread to keep other checks moving.
    """

    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        if not releases:
            return
        title, message = format_release_message(identifier, releases)
        await asyncio.to_thread(send_notification, title, message)


class WebhookNotificationSink(NotificationSink):
    """POST new releases as JSON to a webhook URL."""

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self._url = url
        self._client = client

    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        payload = {
            "project": identifier,
            "releases": [r.to_dict() for r in releases],
        }
        headers = {"User-Agent": DEFAULT_USER_AGENT}
        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT) as client:
                    response = await client.post(self._url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Webhook notification for %s failed: %s", identifier, e)


class CompositeNotificationSink(NotificationSink):
    """Fan a notification out to several sinks."""

    def __init__(self, sinks: Sequence[NotificationSink]) -> None:
        self._sinks = list(sinks)

    async def notify(self, identifier: str, releases: Sequence[Release]) -> None:
        for sink in self._sinks:
            try:
                await sink.notify(identifier, releases)
            except Exception:
                logger.exception("%s failed for %s", type(sink).__name__, identifier)


def format_release_message(identifier: str, releases: Sequence[Release]) -> tuple[str, str]:
    """Build the title and body for a new-release notification.

    Args:
        identifier: Project identifier.
        releases: New releases of that project.

    Returns:
        Tuple of (title, message).
    """
    count = len(releases)
    title = f"{count} New Release{'s' if count != 1 else ''}: {identifier}"
    versions = [r.version for r in releases]

    if len(versions) <= MAX_NOTIFIED_NAMES:
        message = ", ".join(versions)
    else:
        shown = ", ".join(versions[:MAX_NOTIFIED_NAMES])
        message = f"{shown} and {len(versions) - MAX_NOTIFIED_NAMES} more"
    return title, message


def is_notification_supported() -> bool:
    """Check if desktop notifications are supported on this platform."""
    system = platform.system()

    if system in ("Windows", "Darwin"):
        return True
    if system == "Linux":
        return shutil.which("notify-send") is not None
    return False


def send_notification(title: str, message: str) -> bool:
    """Send a desktop notification.

    Args:
        title: Notification title.
        message: Notification body.

    Returns:
        True if notification was sent successfully, False otherwise.
    """
    system = platform.system()

    try:
        if system == "Windows":
            return _notify_windows(title, message)
        elif system == "Darwin":
            return _notify_macos(title, message)
        elif system == "Linux":
            return _notify_linux(title, message)
        else:
            logger.warning("Notifications not supported on %s", system)
            return False
    except Exception as e:
        logger.error("Failed to send notification: %s", e)
        return False


def _notify_windows(title: str, message: str) -> bool:
    """Send notification on Windows."""
    from plyer import notification

    notification.notify(
        title=title,
        message=message,
        app_name="Release Checker",
        timeout=10,
    )
    return True


def _notify_macos(title: str, message: str) -> bool:
    """Send notification on macOS."""
    title = title.replace('"', '\\"')
    message = message.replace('"', '\\"')
    script = f'display notification "{message}" with title "{title}"'
    subprocess.run(["osascript", "-e", script], capture_output=True, timeout=10)
    return True


def _notify_linux(title: str, message: str) -> bool:
    """Send notification on Linux using notify-send."""
    subprocess.run(["notify-send", title, message], capture_output=True, timeout=10)
    return True
