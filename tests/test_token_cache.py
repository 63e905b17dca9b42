"""Unit tests for TokenCache with a mocked token endpoint."""

import asyncio
from unittest.mock import MagicMock

import pytest

from errors import AuthenticationError
from token_cache import SAFETY_MARGIN_SECONDS, Credential, TokenCache


@pytest.fixture
def cache(tenant, fake_clock):
    return TokenCache(
        tenant["domain"],
        tenant["client_id"],
        tenant["client_secret"],
        "https://test.auth0.com/api/v2/",
        clock=fake_clock,
    )


@pytest.fixture
def session(make_response, token_payload):
    """Session whose post() always answers with a fresh token."""
    session = MagicMock()
    session.post = MagicMock(side_effect=lambda *a, **kw: make_response(200, data=token_payload))
    return session


class TestAcquisition:
    """Tests for the client-credentials exchange."""

    @pytest.mark.asyncio
    async def test_posts_client_credentials(self, cache, session):
        token = await cache.get_token(session)

        assert token == "test-token"
        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == "https://test.auth0.com/oauth/token"
        assert kwargs["json"] == {
            "grant_type": "client_credentials",
            "client_id": "test-client-id",
            "client_secret": "test-client-secret",
            "audience": "https://test.auth0.com/api/v2/",
        }
        assert kwargs["headers"] == {"Content-Type": "application/json"}

    @pytest.mark.asyncio
    async def test_expiry_is_now_plus_lifetime(self, cache, session, fake_clock):
        await cache.get_token(session)
        assert cache.credential == Credential("test-token", fake_clock.now + 86400)

    @pytest.mark.asyncio
    async def test_failure_raises_with_status_and_body(self, cache, make_response):
        session = MagicMock()
        session.post = MagicMock(return_value=make_response(401, text="Unauthorized"))

        with pytest.raises(AuthenticationError) as exc_info:
            await cache.get_token(session)

        assert exc_info.value.status == 401
        assert exc_info.value.body == "Unauthorized"
        assert "Unauthorized" in str(exc_info.value)
        assert "401" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_credential(self, cache, session, make_response, fake_clock):
        """A rejected refresh must not touch the cached pair."""
        await cache.get_token(session)
        before = cache.credential

        fake_clock.now += 86400
        session.post = MagicMock(return_value=make_response(500, text="boom"))
        with pytest.raises(AuthenticationError):
            await cache.get_token(session)

        assert cache.credential is before


class TestReuse:
    """Tests for caching and the five-minute safety margin."""

    @pytest.mark.asyncio
    async def test_repeated_calls_acquire_once(self, cache, session):
        for _ in range(5):
            assert await cache.get_token(session) == "test-token"
        assert session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_refreshes_just_inside_margin(self, cache, session, fake_clock):
        """Expiry at now + 5min - 1ms is stale."""
        await cache.get_token(session)
        expires_at = cache.credential.expires_at
        fake_clock.now = expires_at - SAFETY_MARGIN_SECONDS + 0.001

        await cache.get_token(session)
        assert session.post.call_count == 2

    @pytest.mark.asyncio
    async def test_reuses_just_outside_margin(self, cache, session, fake_clock):
        """Expiry at now + 5min + 1ms is still fresh."""
        await cache.get_token(session)
        expires_at = cache.credential.expires_at
        fake_clock.now = expires_at - SAFETY_MARGIN_SECONDS - 0.001

        await cache.get_token(session)
        assert session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_invalidate_forces_reacquire(self, cache, session):
        await cache.get_token(session)
        cache.invalidate()
        assert cache.credential is None
        await cache.get_token(session)
        assert session.post.call_count == 2

    @pytest.mark.asyncio
    async def test_new_token_replaces_old_pair(self, cache, make_response, fake_clock):
        session = MagicMock()
        session.post = MagicMock(side_effect=[
            make_response(200, data={"access_token": "first", "expires_in": 600}),
            make_response(200, data={"access_token": "second", "expires_in": 7200}),
        ])
        assert await cache.get_token(session) == "first"

        fake_clock.now += 400  # inside the margin of a 600s token
        assert await cache.get_token(session) == "second"
        assert cache.credential == Credential("second", fake_clock.now + 7200)


class TestConcurrentRefresh:
    """Concurrent callers on a stale cache share one acquisition."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_request(self, cache, make_response, token_payload):
        gate = asyncio.Event()
        resp = make_response(200, data=token_payload)

        async def slow_enter():
            await gate.wait()
            return resp

        resp.__aenter__.side_effect = slow_enter
        session = MagicMock()
        session.post = MagicMock(return_value=resp)

        tasks = [asyncio.create_task(cache.get_token(session)) for _ in range(10)]
        await asyncio.sleep(0)
        gate.set()
        tokens = await asyncio.gather(*tasks)

        assert tokens == ["test-token"] * 10
        assert session.post.call_count == 1
