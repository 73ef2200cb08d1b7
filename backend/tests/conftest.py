"""Root conftest — shared test configuration."""

import os

# Required settings; tests never reach a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("EVENT_CHECK_INTERVAL_SECONDS", "60")
os.environ.setdefault("EVENT_COMPLETED_AFTER_HOURS", "1")
os.environ.setdefault("LOG_FORMAT", "text")
