import asyncio
import contextlib
from typing import Awaitable, Optional, TypeVar

from handoff.registry.errors import AbortedError, TransferError

T = TypeVar("T")


class CancelToken:
    """
    Abandonment signal shared by every phase of one flow.
    Once set it stays set; a cancelled flow is never resumed.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AbortedError()

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await `aw` unless the token fires first. In that case the pending call
        is cancelled and AbortedError is raised.
        """
        if self._event.is_set():
            # Never start a call after abandonment
            if asyncio.iscoroutine(aw):
                aw.close()
            raise AbortedError()

        task = asyncio.ensure_future(aw)
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
        with contextlib.suppress(asyncio.CancelledError, TransferError):
            await task
        raise AbortedError()


async def guarded(cancel: Optional[CancelToken], aw: Awaitable[T]) -> T:
    if cancel is None:
        return await aw
    return await cancel.guard(aw)
