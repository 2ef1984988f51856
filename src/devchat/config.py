"""Central configuration for paths and constants."""

import os
from pathlib import Path

# Data directory — override with DEVCHAT_DATA_DIR env var
DATA_DIR = Path(
    os.environ.get("DEVCHAT_DATA_DIR", str(Path.home() / ".devchat"))
)

# Database paths
SQLITE_PATH = DATA_DIR / "messages.db"

# Timeline pagination
PAGE_SIZE = 50  # Top-level messages per history page

# Classification thresholds
LONG_CONTENT_LINES = 5  # More lines than this counts as long content
LONG_CONTENT_CHARS = 500  # More characters than this counts as long content
THREAD_LINE_THRESHOLD = 10  # More lines than this always auto-threads

# Code block rendering hints
COLLAPSIBLE_LINES = 10
DEFAULT_COLLAPSED_LINES = 20

# Generic language marker for code/error blocks without a detected language
PLAIN_LANGUAGE = "text"
