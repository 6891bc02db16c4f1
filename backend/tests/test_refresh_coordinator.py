import asyncio

import pytest

from app.client.refresh import RefreshCoordinator, SessionExpiredError
from app.client.token_store import TokenStore


def _coordinator(exchange, tokens=None, on_session_expired=None):
    return RefreshCoordinator(exchange, tokens or TokenStore("stale"), on_session_expired)


def test_concurrent_callers_share_one_exchange():
    calls = []

    async def exchange():
        calls.append("x")
        await asyncio.sleep(0.01)
        return "fresh"

    async def scenario():
        tokens = TokenStore("stale")
        coordinator = _coordinator(exchange, tokens)
        results = await asyncio.gather(*(coordinator.refresh() for _ in range(5)))
        return coordinator, tokens, results

    coordinator, tokens, results = asyncio.run(scenario())

    assert calls == ["x"]
    assert results == ["fresh"] * 5
    assert tokens.access_token == "fresh"
    assert not coordinator.in_flight
    assert coordinator.pending == 0


def test_waiters_resume_in_arrival_order():
    order = []

    async def exchange():
        await asyncio.sleep(0.01)
        return "fresh"

    async def caller(coordinator, name):
        await coordinator.refresh()
        order.append(name)

    async def scenario():
        coordinator = _coordinator(exchange)
        leader = asyncio.ensure_future(caller(coordinator, "leader"))
        await asyncio.sleep(0)
        followers = []
        for name in ("a", "b", "c"):
            followers.append(asyncio.ensure_future(caller(coordinator, name)))
            await asyncio.sleep(0)
        assert coordinator.pending == 3
        await asyncio.gather(leader, *followers)

    asyncio.run(scenario())

    assert [name for name in order if name != "leader"] == ["a", "b", "c"]
    assert "leader" in order


def test_sequential_refreshes_each_exchange():
    tokens_out = iter(["one", "two"])

    async def exchange():
        return next(tokens_out)

    async def scenario():
        coordinator = _coordinator(exchange)
        return await coordinator.refresh(), await coordinator.refresh(), coordinator.exchange_count

    assert asyncio.run(scenario()) == ("one", "two", 2)


def test_failed_exchange_expires_session_for_everyone():
    expired = []

    async def exchange():
        await asyncio.sleep(0.01)
        raise RuntimeError("401 from /auth/refresh")

    async def scenario():
        tokens = TokenStore("stale")
        coordinator = _coordinator(exchange, tokens, lambda: expired.append(True))
        results = await asyncio.gather(
            *(coordinator.refresh() for _ in range(3)), return_exceptions=True
        )
        return coordinator, tokens, results

    coordinator, tokens, results = asyncio.run(scenario())

    assert all(isinstance(result, SessionExpiredError) for result in results)
    assert tokens.access_token is None
    assert expired == [True]
    assert not coordinator.in_flight
    assert coordinator.exchange_count == 1


def test_failure_is_not_retried_automatically():
    attempts = []

    async def exchange():
        attempts.append(1)
        raise RuntimeError("nope")

    async def scenario():
        with pytest.raises(SessionExpiredError):
            await _coordinator(exchange).refresh()

    asyncio.run(scenario())
    assert attempts == [1]


def test_cancelled_caller_does_not_abort_the_exchange():
    async def exchange():
        await asyncio.sleep(0.01)
        return "fresh"

    async def scenario():
        tokens = TokenStore("stale")
        coordinator = _coordinator(exchange, tokens)
        leader = asyncio.ensure_future(coordinator.refresh())
        await asyncio.sleep(0)
        follower = asyncio.ensure_future(coordinator.refresh())
        await asyncio.sleep(0)
        leader.cancel()
        return await follower, leader.cancelled(), tokens.access_token

    assert asyncio.run(scenario()) == ("fresh", True, "fresh")


def test_each_waiter_gets_its_own_error():
    async def exchange():
        await asyncio.sleep(0.01)
        raise RuntimeError("refresh rejected")

    async def scenario():
        coordinator = _coordinator(exchange)
        return await asyncio.gather(
            *(coordinator.refresh() for _ in range(3)), return_exceptions=True
        )

    leader, *waiters = asyncio.run(scenario())

    assert all(isinstance(error, SessionExpiredError) for error in waiters)
    assert waiters[0] is not waiters[1]
    assert str(waiters[0]) == "Session expired"
