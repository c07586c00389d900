"""Cancellable background sweep for self-hosted cache stores.

The memory and SQLite stores own one :class:`PeriodicSweeper` each.  It
runs the store's ``sweep`` coroutine every ``interval`` seconds on the
running event loop.  An asyncio task never keeps the interpreter alive on
its own, so an idle sweeper does not block process shutdown.

A failing sweep is logged and suppressed; the next tick simply tries
again.  Once :meth:`PeriodicSweeper.stop` has been called the sweeper
stays stopped, :meth:`start` becomes a no-op.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import structlog

DEFAULT_SWEEP_INTERVAL = 60.0

logger = structlog.get_logger(logger_name=__name__)


class PeriodicSweeper:
    """Run an async ``sweep`` callable on a fixed interval.

    Parameters
    ----------
    sweep:
        Zero-argument coroutine function removing expired entries.
    interval:
        Seconds between two sweeps.
    name:
        Store name, used in the task name and in log events.
    """

    def __init__(
        self,
        sweep: Callable[[], Awaitable[Any]],
        interval: float = DEFAULT_SWEEP_INTERVAL,
        *,
        name: str = "cache",
    ) -> None:
        if interval <= 0:
            msg = f"Sweep interval must be positive, got {interval}"
            raise ValueError(msg)
        self._sweep = sweep
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> bool:
        """Schedule the sweep loop on the running event loop.

        Returns ``True`` when the loop is (now) running.  Returns ``False``
        when called without a running event loop or after :meth:`stop`.
        """
        if self._stopped:
            return False
        if self.running:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        self._task = loop.create_task(self._run(), name=f"stash-sweep:{self._name}")
        logger.debug("cache_sweeper_started", store=self._name, interval=self._interval)
        return True

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.debug("cache_sweeper_stopped", store=self._name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._sweep()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "cache_sweep_failed",
                    store=self._name,
                    error=str(exc)[:200],
                )
