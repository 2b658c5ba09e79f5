from datetime import datetime, timedelta, timezone

import pytest


class SteppingClock:
    """Stand-in for repositories.utcnow that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = SteppingClock(datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc))
    # db.py binds utcnow by name, so patch both modules
    monkeypatch.setattr("todo_backend.repositories.utcnow", fake)
    monkeypatch.setattr("todo_backend.db.utcnow", fake)
    return fake
