import asyncio
import inspect

import pytest

from acquisition_tracker.cancellation import CancellationToken
from acquisition_tracker.errors import ResolutionCancelled
from acquisition_tracker.services.aggregator import SeasonAggregator

from conftest import USER_ID


async def _answer():
    return 42


@pytest.mark.asyncio
async def test_guard_returns_result_while_active():
    assert await CancellationToken().guard(_answer()) == 42


@pytest.mark.asyncio
async def test_guard_closes_coroutine_when_already_cancelled():
    token = CancellationToken()
    token.cancel()
    pending = _answer()

    with pytest.raises(ResolutionCancelled):
        await token.guard(pending)
    assert inspect.getcoroutinestate(pending) == inspect.CORO_CLOSED


@pytest.mark.asyncio
async def test_cancelled_aggregator_never_starts_fetches(dynasty_source):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ResolutionCancelled):
        await SeasonAggregator(dynasty_source, token).fetch_roster("L2023", USER_ID)
    assert dynasty_source.calls == []


@pytest.mark.asyncio
async def test_guard_aborts_in_flight_fetch():
    token = CancellationToken()
    never = asyncio.Event()

    task = asyncio.create_task(token.guard(never.wait()))
    await asyncio.sleep(0)
    token.cancel()

    with pytest.raises(ResolutionCancelled):
        await asyncio.wait_for(task, timeout=5)
