"""Tests for the admin session store."""

import asyncio

import pytest
from pydantic import ValidationError

from shared_calendar.models.errors import AuthenticationException
from shared_calendar.models.session import AdminSession
from shared_calendar.services.session_manager import SessionStore


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestAuthenticate:

    def test_correct_password_issues_valid_token(self):
        store = SessionStore("s3cret")
        token = store.authenticate("s3cret")

        assert len(token) == 64  # 32 random bytes, hex encoded
        assert store.validate(token) is True

    @pytest.mark.parametrize("password", ["wrong", "", None, "s3cret ", "S3CRET"])
    def test_wrong_password_is_rejected_without_token(self, password):
        store = SessionStore("s3cret")

        with pytest.raises(AuthenticationException) as exc_info:
            store.authenticate(password)

        assert exc_info.value.error_code == "INVALID_PASSWORD"
        assert store.list_sessions() == []

    def test_tokens_are_unique(self):
        store = SessionStore("s3cret")
        tokens = {store.authenticate("s3cret") for _ in range(50)}
        assert len(tokens) == 50

    def test_unconfigured_secret_is_refused(self):
        with pytest.raises(ValueError):
            SessionStore("")


class TestValidate:

    def test_unknown_and_empty_tokens_are_invalid(self):
        store = SessionStore("s3cret")
        store.authenticate("s3cret")

        assert store.validate("deadbeef") is False
        assert store.validate("") is False
        assert store.validate(None) is False

    def test_token_expires_after_ttl(self):
        clock = FakeClock()
        store = SessionStore("s3cret", session_ttl=100, clock=clock)
        token = store.authenticate("s3cret")

        clock.now = 99.5
        assert store.validate(token) is True

        clock.now = 100.0
        assert store.validate(token) is False
        # Expired tokens are dropped, not resurrected
        clock.now = 0.0
        assert store.validate(token) is False

    def test_revoke_invalidates_early(self):
        store = SessionStore("s3cret")
        token = store.authenticate("s3cret")

        assert store.revoke(token) is True
        assert store.validate(token) is False
        assert store.revoke(token) is False

    def test_cleanup_expired_counts_removed_sessions(self):
        clock = FakeClock()
        store = SessionStore("s3cret", session_ttl=10, clock=clock)
        store.authenticate("s3cret")
        clock.now = 5
        fresh = store.authenticate("s3cret")

        clock.now = 12
        assert store.cleanup_expired() == 1
        assert store.list_sessions() == [fresh]


class TestScheduledExpiry:

    def test_issued_token_schedules_its_own_removal(self):
        # Frozen clock: only the scheduled expiry can remove the session
        store = SessionStore("s3cret", clock=FakeClock())
        store.session_ttl = 0.05

        async def scenario():
            store.authenticate("s3cret")
            assert store.active_count == 1
            await asyncio.sleep(0.2)
            return store.active_count

        assert asyncio.run(scenario()) == 0

    def test_close_clears_sessions_and_timers(self):
        store = SessionStore("s3cret")

        async def scenario():
            tokens = [store.authenticate("s3cret") for _ in range(3)]
            store.close()
            return tokens

        tokens = asyncio.run(scenario())
        assert store.active_count == 0
        assert not any(store.validate(token) for token in tokens)


class TestAdminSession:

    def test_expiry_boundary(self):
        session = AdminSession(token="abc", issued_at=10.0, expires_at=20.0)

        assert not session.is_expired(19.999)
        assert session.is_expired(20.0)

    def test_blank_token_is_rejected(self):
        with pytest.raises(ValidationError):
            AdminSession(token="  ", issued_at=0.0, expires_at=1.0)
