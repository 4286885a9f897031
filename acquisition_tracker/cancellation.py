import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import ResolutionCancelled

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation signal shared by every fetch of one resolution.

    ``guard`` races an awaitable against the signal so that cancelling the
    token aborts fetches that are already in flight.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ResolutionCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ResolutionCancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        raise ResolutionCancelled()


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken()
