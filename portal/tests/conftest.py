import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis

from portal import lifespan
from portal.config import clear_settings_cache
from portal.models.activities import ParticipantActivity, VolunteerActivity

SGT = timezone(timedelta(hours=8))

# Wednesday; its Sunday-Saturday week runs 2026-10-11 .. 2026-10-17
NOW = datetime(2026, 10, 14, 10, 0, tzinfo=SGT)


class FakeClock:
    """Settable clock for stores and toast channels."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


def at(day: int, hour: int, minute: int = 0, month: int = 10) -> datetime:
    return datetime(2026, month, day, hour, minute, tzinfo=SGT)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def participant_activity():
    """Factory for participant activities; defaults to a 2h slot today at 14:00."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> ParticipantActivity:
        start = overrides.pop("start", at(14, 14))
        fields = {
            "id": str(next(counter)),
            "title": "Activity",
            "start": start,
            "end": overrides.pop("end", start + timedelta(hours=2)),
            "location": "Toa Payoh Central Hub",
            "capacity": 10,
            "filled": 0,
        }
        fields.update(overrides)
        return ParticipantActivity(**fields)

    return _make


@pytest.fixture
def volunteer_activity():
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> VolunteerActivity:
        start = overrides.pop("start", at(14, 14))
        fields = {
            "id": str(next(counter)),
            "title": "Shift",
            "start": start,
            "end": overrides.pop("end", start + timedelta(hours=2)),
            "location": "Bedok East Kitchen",
            "capacity": 3,
            "filled": 0,
        }
        fields.update(overrides)
        return VolunteerActivity(**fields)

    return _make


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def client(monkeypatch, fake_redis):
    monkeypatch.delenv("ENABLE_PERSISTENCE", raising=False)
    monkeypatch.delenv("ENABLE_DEMO_CATALOG", raising=False)
    clear_settings_cache()

    async def fake_init_redis():
        return fake_redis

    monkeypatch.setattr(lifespan, "init_redis", fake_init_redis)

    import portal.main as main

    with TestClient(main.app) as c:
        yield c
    clear_settings_cache()


@pytest.fixture
def login(client):
    """Log in through the API and return the session header."""

    def _login(role: str, email: str = "user@example.com") -> dict[str, str]:
        resp = client.post("/session/login", json={"role": role, "email": email})
        assert resp.status_code == 201, resp.text
        return {"X-Session-Id": resp.json()["session_id"]}

    return _login
