"""Runtime settings, read from the environment with constants as defaults."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    CHECK_DEADLINE,
    DEFAULT_DATA_DIR,
    MAX_CHECK_ATTEMPTS,
    MAX_CONCURRENT_CHECKS,
    RETRY_BACKOFF,
)

ENV_PREFIX = "RELEASE_CHECKER_"


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name, "").strip()
    return value or None


def _int(name: str, default: int) -> int:
    value = _env(name)
    return int(value) if value is not None else default


def _float(name: str, default: float) -> float:
    value = _env(name)
    return float(value) if value is not None else default


@dataclass
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    max_concurrent: int = MAX_CONCURRENT_CHECKS
    max_attempts: int = MAX_CHECK_ATTEMPTS
    retry_backoff: float = RETRY_BACKOFF
    check_timeout: float = CHECK_DEADLINE
    notify: str = "log"
    webhook_url: Optional[str] = None
    github_token: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.notify == "webhook" and not self.webhook_url:
            raise ValueError("webhook notifications need a webhook URL")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from RELEASE_CHECKER_* variables and GITHUB_TOKEN."""
        data_dir = _env("DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            max_concurrent=_int("MAX_CONCURRENT", MAX_CONCURRENT_CHECKS),
            max_attempts=_int("MAX_ATTEMPTS", MAX_CHECK_ATTEMPTS),
            retry_backoff=_float("RETRY_BACKOFF", RETRY_BACKOFF),
            check_timeout=_float("CHECK_TIMEOUT", CHECK_DEADLINE),
            notify=_env("NOTIFY") or "log",
            webhook_url=_env("WEBHOOK_URL"),
            github_token=os.getenv("GITHUB_TOKEN") or None,
        )
