import pytest

from config import Config
from storage.db import init_db


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database per test; storage modules pick up the path from init_db."""
    path = tmp_path / "events.db"
    init_db(str(path))
    return path


@pytest.fixture
def config(tmp_path):
    """Config with delays and jitter switched off so tests run instantly."""
    return Config(
        database_path=str(tmp_path / "events.db"),
        base_delay=0.0,
        jitter=0.0,
        backoff_base=1.0,
        backoff_cap=60.0,
        max_attempts=5,
        slack_webhook_url="https://hooks.example.org/alert",
    )


class FakeSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep():
    return FakeSleep()
