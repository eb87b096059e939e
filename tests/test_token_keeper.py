"""
Tests for single-flight token refresh.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from questrade.core.errors import ApiError
from questrade.core.interfaces.token_source import TokenSource
from questrade.core.services.token_keeper import KeeperHooks, TokenKeeper

from .helpers import make_token

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeSource:
    """Issues `refresh-1`, `refresh-2`, ... and records what it was given."""

    def __init__(self, *, ttl_seconds: int = 1800, delay: float = 0.0, fail_with: Exception | None = None):
        self.calls: list[str] = []
        self._ttl = ttl_seconds
        self._delay = delay
        self._fail_with = fail_with

    async def refresh_token(self, refresh_token: str):
        self.calls.append(refresh_token)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_with is not None:
            raise self._fail_with
        n = len(self.calls)
        return make_token(
            access_token=f"access-{n}",
            refresh_token=f"refresh-{n}",
            ttl_seconds=self._ttl,
            now=NOW,
        )


class Clock:

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_fake_source_satisfies_protocol():
    assert isinstance(FakeSource(), TokenSource)


def test_empty_refresh_token():
    with pytest.raises(ValueError):
        TokenKeeper(FakeSource(), "")


class TestGetToken:

    @pytest.mark.asyncio
    async def test_first_call_refreshes(self):
        source = FakeSource()
        keeper = TokenKeeper(source, "initial", clock=Clock(NOW))

        assert keeper.current is None
        token = await keeper.get_token()

        assert source.calls == ["initial"]
        assert keeper.current is token

    @pytest.mark.asyncio
    async def test_fresh_token_is_reused(self):
        source = FakeSource()
        keeper = TokenKeeper(source, "initial", clock=Clock(NOW))

        first = await keeper.get_token()
        second = await keeper.get_token()

        assert first is second
        assert len(source.calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self):
        source = FakeSource(delay=0.01)
        keeper = TokenKeeper(source, "initial", clock=Clock(NOW))

        tokens = await asyncio.gather(*(keeper.get_token() for _ in range(10)))

        assert source.calls == ["initial"]
        assert all(token is tokens[0] for token in tokens)

    @pytest.mark.asyncio
    async def test_refreshes_within_leeway(self):
        clock = Clock(NOW)
        source = FakeSource(ttl_seconds=1800)
        keeper = TokenKeeper(source, "initial", leeway=timedelta(seconds=60), clock=clock)

        await keeper.get_token()
        clock.now = NOW + timedelta(seconds=1700)
        await keeper.get_token()
        assert len(source.calls) == 1

        clock.now = NOW + timedelta(seconds=1745)
        await keeper.get_token()
        assert source.calls == ["initial", "refresh-1"]

    @pytest.mark.asyncio
    async def test_failure_keeps_the_previous_token(self):
        clock = Clock(NOW)
        source = FakeSource(ttl_seconds=10)
        keeper = TokenKeeper(source, "initial", leeway=timedelta(0), clock=clock)
        previous = await keeper.get_token()

        source._fail_with = ApiError(1017, "Access token is invalid")
        clock.now = NOW + timedelta(seconds=20)
        with pytest.raises(ApiError):
            await keeper.get_token()

        assert keeper.current is previous


class TestInvalidate:

    @pytest.mark.asyncio
    async def test_rotates_the_stale_token(self):
        source = FakeSource()
        keeper = TokenKeeper(source, "initial", clock=Clock(NOW))
        stale = await keeper.get_token()

        fresh = await keeper.invalidate(stale)

        assert fresh is not stale
        assert source.calls == ["initial", "refresh-1"]

    @pytest.mark.asyncio
    async def test_concurrent_invalidations_coalesce(self):
        source = FakeSource(delay=0.01)
        keeper = TokenKeeper(source, "initial", clock=Clock(NOW))
        stale = await keeper.get_token()

        results = await asyncio.gather(*(keeper.invalidate(stale) for _ in range(5)))

        assert len(source.calls) == 2
        assert all(token is results[0] for token in results)


class TestHooks:

    @pytest.mark.asyncio
    async def test_sync_hook(self):
        seen = []
        keeper = TokenKeeper(FakeSource(), "initial", hooks=KeeperHooks(on_rotate=seen.append), clock=Clock(NOW))

        token = await keeper.get_token()

        assert seen == [token]

    @pytest.mark.asyncio
    async def test_async_hook(self):
        seen = []

        async def persist(token):
            seen.append(token.refresh_token.get_secret_value())

        keeper = TokenKeeper(FakeSource(), "initial", hooks=KeeperHooks(on_rotate=persist), clock=Clock(NOW))

        await keeper.get_token()
        await keeper.invalidate(keeper.current)

        assert seen == ["refresh-1", "refresh-2"]
