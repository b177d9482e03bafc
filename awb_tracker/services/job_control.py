# services/job_control.py

"""
Per-job control token checked by the worker at row boundaries
"""

import asyncio


class JobControl:
    def __init__(self):
        self._running = asyncio.Event()
        self._running.set()
        self._cancelled = asyncio.Event()

    @property
    def paused(self) -> bool:
        return not self._running.is_set() and not self._cancelled.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def pause(self) -> None:
        if not self._cancelled.is_set():
            self._running.clear()

    def resume(self) -> None:
        self._running.set()

    def cancel(self) -> None:
        self._cancelled.set()
        # Wake a paused worker so it can observe the cancellation
        self._running.set()

    async def checkpoint(self) -> bool:
        """Block while paused; False once cancelled"""
        if self._cancelled.is_set():
            return False
        await self._running.wait()
        return not self._cancelled.is_set()

    async def pace(self, seconds: float) -> None:
        """Sleep between rows, returning early on cancel"""
        if seconds <= 0 or self._cancelled.is_set():
            return
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
