"""Global pytest configuration."""

import os

# Environment for tests, set before any settings are read
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CONFLICT_RETRY_DELAY_MS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")
