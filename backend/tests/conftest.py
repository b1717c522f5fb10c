"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real API keys or a persistent database
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CHROMA_URL", "")
os.environ.setdefault("EMBEDDING_URL", "")
