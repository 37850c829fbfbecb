"""
Fixed-interval asyncio worker.

Subclasses implement :meth:`BackgroundWorker._tick`.  ``stop()`` lets a tick
that is already running finish; only the wait between ticks is interrupted.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class BackgroundWorker:
    def __init__(self, *, interval: float, name: str) -> None:
        if interval <= 0:
            raise ValueError(f"{name}: interval must be positive, got {interval}")
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stopping), name=self._name)
        logger.info("%s started (every %.1fs)", self._name, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("%s stopped", self._name)

    async def _tick(self) -> None:
        raise NotImplementedError

    async def _run(self, stopping: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self._interval)
                return
            except TimeoutError:
                pass
            try:
                await self._tick()
            except Exception:
                logger.exception("%s tick failed, retrying next interval", self._name)
