"""Tests for Redis-backed login sessions."""

import pytest

from portal.session import SessionStore, user_id_for_email


@pytest.fixture
def sessions(fake_redis):
    return SessionStore(fake_redis, ttl_sec=120, key_prefix="test:session:")


class TestUserIds:
    def test_stable_and_case_insensitive(self):
        assert user_id_for_email("Ann@Example.com ") == user_id_for_email("ann@example.com")

    def test_distinct_emails_differ(self):
        assert user_id_for_email("ann@example.com") != user_id_for_email("bo@example.com")


class TestSessionStore:
    @pytest.mark.asyncio
    async def test_login_round_trip(self, sessions):
        ctx = await sessions.login("volunteer", " Bo@Example.com")
        assert ctx.email == "bo@example.com"
        assert ctx.user_id == user_id_for_email("bo@example.com")
        assert ctx.logged_in

        loaded = await sessions.get(ctx.session_id)
        assert loaded == ctx

    @pytest.mark.asyncio
    async def test_login_sets_ttl(self, sessions, fake_redis):
        ctx = await sessions.login("participant", "ann@example.com")
        ttl = await fake_redis.ttl(f"test:session:{ctx.session_id}")
        assert 0 < ttl <= 120

    @pytest.mark.asyncio
    async def test_explicit_user_id(self, sessions):
        ctx = await sessions.login("staff", "ops@example.com", user_id="staff-1")
        assert ctx.user_id == "staff-1"

    @pytest.mark.asyncio
    async def test_logout_removes_session(self, sessions):
        ctx = await sessions.login("participant", "ann@example.com")
        assert await sessions.logout(ctx.session_id) is True
        assert await sessions.get(ctx.session_id) is None
        assert await sessions.logout(ctx.session_id) is False

    @pytest.mark.asyncio
    async def test_unknown_session(self, sessions):
        assert await sessions.get("does-not-exist") is None

    @pytest.mark.asyncio
    async def test_each_login_gets_new_id(self, sessions):
        first = await sessions.login("participant", "ann@example.com")
        second = await sessions.login("participant", "ann@example.com")
        assert first.session_id != second.session_id
        assert first.user_id == second.user_id
