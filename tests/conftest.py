from __future__ import annotations

import os
import tempfile

import pytest

# config.py creates its data folder on import; keep test runs out of the repo.
os.environ.setdefault("AETHER_DATA_DIR", tempfile.mkdtemp(prefix="aether-test-"))


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace the backoff sleep with a recorder so retry tests run instantly."""
    recorded: list[float] = []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr("aether.utils.retry.asyncio.sleep", fake_sleep)
    return recorded
