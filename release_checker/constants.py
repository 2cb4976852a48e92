"""Constants and configuration defaults for Release Checker."""

from pathlib import Path

# Version
__version__ = "0.1.0"

# Paths
DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
PROJECTS_FILE = "projects.json"
RELEASES_FILE = "releases.json"
BACKUP_SUFFIX = ".bak"

# Timeouts (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0
GITHUB_TIMEOUT = 30.0
REGISTRY_TIMEOUT = 30.0
WEB_TIMEOUT = 30.0
CHECK_DEADLINE = 60.0
WEBHOOK_TIMEOUT = 10.0

# Limits
GITHUB_PER_PAGE = 100
GITHUB_MAX_PAGES = 5
MAX_NOTIFIED_NAMES = 5

# Host APIs
GITHUB_API_BASE = "https://api.github.com"
PYPI_API_BASE = "https://pypi.org"
NPM_REGISTRY_BASE = "https://registry.npmjs.org"
NPM_WEB_BASE = "https://www.npmjs.com"

# Version parsing patterns for web pages, most specific first
DEFAULT_VERSION_PATTERNS = [
    r"[Vv]ersion[:\s]+(\d+(?:\.\d+)+(?:-[a-zA-Z0-9.]+)?)",
    r"[Rr]elease[:\s]+[Vv]?(\d+(?:\.\d+)+(?:-[a-zA-Z0-9.]+)?)",
    r"\b[Vv](\d+(?:\.\d+)+(?:-[a-zA-Z0-9.]+)?)",
    r"\b(\d+\.\d+\.\d+(?:-[a-zA-Z0-9.]+)?)\b",
]

# HTTP Headers
DEFAULT_USER_AGENT = "Release-Checker/{}".format(__version__)

# Concurrent checking and retries
MAX_CONCURRENT_CHECKS = 5
MAX_CHECK_ATTEMPTS = 3
RETRY_BACKOFF = 1.0
