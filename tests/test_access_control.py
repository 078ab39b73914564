"""Tests for the identity-bound AccessControl facade."""

from unittest.mock import AsyncMock

import pytest

from access_control.core.errors import ValidationAppError
from access_control.services.access_control import AccessControl
from access_control.services.identity import EmailIdentity, IPIdentity
from access_control.services.rate_limiter import RateLimiter
from access_control.services.rate_policy import PlanPolicy
from access_control.services.session_manager import session_key

HOUR_MS = 60 * 60 * 1000


@pytest.fixture
def make_access(session_manager, rate_limiter):
    def _make(identity, **kwargs) -> AccessControl:
        return AccessControl(identity, sessions=session_manager, limiter=rate_limiter, **kwargs)

    return _make


def test_raw_strings_are_classified(make_access) -> None:
    assert make_access("a@b.com").identity == EmailIdentity("a@b.com")
    assert make_access("10.0.0.1").is_ip is True
    assert make_access(EmailIdentity("a@b.com")).is_ip is False

    with pytest.raises(ValidationAppError):
        make_access("  ")


class TestSessions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["a@b.com", "someone.else@example.org"])
    async def test_new_token_validates_to_same_email(self, make_access, email: str) -> None:
        access = make_access(email)
        token = await access.new_session_token()
        assert token
        assert await access.validate_session_token(token) == email

    @pytest.mark.asyncio
    async def test_ip_identity_never_gets_sessions(self, make_access, store) -> None:
        access = make_access("192.168.1.10")

        assert await access.new_session_token() is None
        assert await access.validate_session_token("anything") is None
        assert await access.revoke_session_token("anything") is False

    @pytest.mark.asyncio
    async def test_ip_identity_cannot_validate_a_real_token(self, make_access) -> None:
        token = await make_access("a@b.com").new_session_token()
        assert await make_access("192.168.1.10").validate_session_token(token) is None

    @pytest.mark.asyncio
    async def test_token_validates_for_any_email_caller(self, make_access) -> None:
        token = await make_access("a@b.com").new_session_token()
        assert await make_access("other@b.com").validate_session_token(token) == "a@b.com"

    @pytest.mark.asyncio
    async def test_revoked_token_is_rejected(self, make_access, store) -> None:
        access = make_access("a@b.com")
        token = await access.new_session_token()
        await store.hset(session_key(token), {"isRevoked": "true"})

        assert await access.validate_session_token(token) is None

    @pytest.mark.asyncio
    async def test_revoke_session_token(self, make_access) -> None:
        access = make_access("a@b.com")
        token = await access.new_session_token()

        assert await access.revoke_session_token(token) is True
        assert await access.validate_session_token(token) is None


class TestLimits:
    @pytest.mark.asyncio
    async def test_n_requests_read_back_in_order(self, make_access, clock) -> None:
        access = make_access("a@b.com")
        recorded = []
        for _ in range(4):
            recorded.append(await access.new_request())
            clock.advance(0.5)

        assert await access.get_requests_timestamp() == recorded

    @pytest.mark.asyncio
    async def test_free_prunes_two_hour_old_entry_but_pro_keeps_it(self, make_access, store, clock) -> None:
        two_hours_ago = clock.now_ms - 2 * HOUR_MS
        free = make_access("a@b.com")
        pro = make_access("pro@example.com")
        for access in (free, pro):
            await store.zadd(access.identity.limit_key, two_hours_ago, two_hours_ago)

        assert two_hours_ago not in await free.get_requests_timestamp()
        assert two_hours_ago in await pro.get_requests_timestamp()

    @pytest.mark.asyncio
    async def test_example_free_user(self, make_access, store, clock) -> None:
        access = make_access("a@b.com")
        for ts in (1000, 2000):
            await store.zadd(access.identity.limit_key, ts, ts)
        now = await access.new_request()

        assert await access.get_plan() == "free"
        assert await access.get_requests_timestamp() == [now]

    @pytest.mark.asyncio
    async def test_reset_limit(self, make_access) -> None:
        access = make_access("10.0.0.1")
        await access.new_request()

        assert await access.reset_limit() == []
        assert await access.get_requests_timestamp() == []

    @pytest.mark.asyncio
    async def test_batch_read_equals_raw_reads(self, make_access, rate_limiter, store, clock) -> None:
        first = make_access("a@b.com")
        second = make_access("10.0.0.1")
        stale = clock.now_ms - 10 * HOUR_MS
        await store.zadd(first.identity.limit_key, stale, stale)
        await second.new_request()

        result = await AccessControl.get_requests_timestamps_of(rate_limiter, "a@b.com", IPIdentity("10.0.0.1"))

        assert len(result) == 2
        assert result[0] == await store.zrange(first.identity.limit_key, 0, -1)
        assert result[1] == await store.zrange(second.identity.limit_key, 0, -1)
        assert result[0] == [stale]


class TestCheckAndRecord:
    @pytest.mark.asyncio
    async def test_records_until_budget_is_used(self, make_access, clock) -> None:
        access = make_access("a@b.com", policies={"free": PlanPolicy("free", 2, 3600)})

        first = await access.check_and_record()
        clock.advance(1)
        second = await access.check_and_record()
        clock.advance(1)
        third = await access.check_and_record()

        assert first.result.allowed and first.timestamp is not None
        assert second.result.allowed and second.result.remaining == 0
        assert third.result.allowed is False
        assert third.timestamp is None
        assert await access.get_requests_timestamp() == [first.timestamp, second.timestamp]

    @pytest.mark.asyncio
    async def test_budget_frees_up_after_window(self, make_access, clock) -> None:
        access = make_access("a@b.com", policies={"free": PlanPolicy("free", 1, 3600)})

        assert (await access.check_and_record()).result.allowed is True
        assert (await access.check_and_record()).result.allowed is False

        clock.advance(3601)
        outcome = await access.check_and_record()
        assert outcome.result.allowed is True
        assert await access.get_requests_timestamp() == [outcome.timestamp]

    @pytest.mark.asyncio
    async def test_soft_limit_still_records(self, make_access, clock) -> None:
        access = make_access(
            "vip@example.com",
            policies={"premium": PlanPolicy("premium", 1, 10800, soft=True)},
        )

        await access.check_and_record()
        clock.advance(1)
        outcome = await access.check_and_record()

        assert outcome.plan == "premium"
        assert outcome.result.allowed is True
        assert outcome.result.throttled is True
        assert len(await access.get_requests_timestamp()) == 2

    @pytest.mark.asyncio
    async def test_shorter_free_window_keeps_the_ten_request_budget(
        self, session_manager, store, plans, clock
    ) -> None:
        limiter = RateLimiter(store, plans, free_window_seconds=600, clock=clock)
        access = AccessControl("a@b.com", sessions=session_manager, limiter=limiter)

        outcomes = []
        for _ in range(11):
            outcomes.append(await access.check_and_record())
            clock.advance(1)

        assert all(o.result.allowed for o in outcomes[:10])
        denied = outcomes[10].result
        assert denied.allowed is False
        assert denied.limit == 10
        assert denied.retry_after_seconds == 600 - 10
        assert len(await access.get_requests_timestamp()) == 10

    @pytest.mark.asyncio
    async def test_budget_window_follows_pruning_window(self, session_manager, store, plans, clock) -> None:
        limiter = RateLimiter(store, plans, free_window_seconds=600, clock=clock)
        access = AccessControl("a@b.com", sessions=session_manager, limiter=limiter)

        outcome = await access.check_and_record()

        assert outcome.result.reset_at == int(clock.now) + 600

    def test_policy_window_longer_than_kept_history_is_rejected(self, session_manager, store, plans, clock) -> None:
        limiter = RateLimiter(store, plans, free_window_seconds=600, clock=clock)

        with pytest.raises(ValueError):
            AccessControl(
                "a@b.com",
                sessions=session_manager,
                limiter=limiter,
                policies={"free": PlanPolicy("free", 10, 3600)},
            )


@pytest.mark.asyncio
async def test_history_read_reuses_resolved_plan(session_manager, store, clock) -> None:
    plans = AsyncMock()
    plans.get_plan.return_value = "pro"
    limiter = RateLimiter(store, plans, clock=clock)
    access = AccessControl("a@b.com", sessions=session_manager, limiter=limiter)

    plan = await access.get_plan()
    await access.get_requests_timestamp(plan=plan)

    assert plans.get_plan.await_count == 1
