from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

# Assembled from parts so this file never trips the scanner it tests.
AWS_KEY_ID = "AK" + "IA" + "IOSFODNN7ABCDEFG"
AWS_SECRET = "9fK2pQ7xL4mN8vR1tY6w" + "Z3bC5dE0gH/jS+uA=kBq"


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture
def aws_key_id() -> str:
    return AWS_KEY_ID


@pytest.fixture
def aws_secret() -> str:
    return AWS_SECRET
