"""Poll loop: a self-rescheduling timer that reports newly seen messages.

The next round is scheduled only after the previous fetch has finished, so
rounds never overlap and a slow provider pushes the next round back. A
failed round is logged (and passed to ``on_error``) and the loop keeps going.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from tempinbox.errors import InvalidState
from tempinbox.utils.logger import get_logger

if TYPE_CHECKING:
    from tempinbox.gateway.models import Message
    from tempinbox.session.mailbox import MailboxSession

logger = get_logger("tempinbox.session.listener")

BatchHandler = Callable[[list["Message"]], Any]
ErrorHandler = Callable[[Exception], Any]


async def _maybe_await(value: Any) -> Any:
    """Await if value is awaitable; otherwise return as-is (sync handler)."""
    if inspect.isawaitable(value):
        return await value
    return value


class PollListener:
    """Polls one session; at most one pending timer at a time."""

    def __init__(self, session: MailboxSession):
        self._session = session
        self._active = False
        self._generation = 0
        self._interval = 0.0
        self._timer: asyncio.Handle | None = None
        self._round_task: asyncio.Task | None = None
        self._seen_remote_ids: set[str | int] = set()
        self._on_batch: BatchHandler | None = None
        self._on_error: ErrorHandler | None = None
        self.rounds = 0
        self._log = logger.bind(address=session.address)

    @property
    def active(self) -> bool:
        return self._active

    def start(
        self,
        interval_ms: int,
        on_batch: BatchHandler,
        on_error: ErrorHandler | None = None,
    ) -> None:
        """Run the first round right away, then one round ``interval_ms`` after each completes."""
        if self._active:
            raise InvalidState("Listener already running; call stop() first")
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        loop = asyncio.get_running_loop()
        self._active = True
        self._generation += 1
        self._interval = interval_ms / 1000
        self._on_batch = on_batch
        self._on_error = on_error
        self._seen_remote_ids = set()
        self.rounds = 0
        self._timer = loop.call_soon(self._tick, self._generation)
        self._log.info("listener.start", interval_ms=interval_ms)

    def stop(self) -> None:
        """Cancel the pending timer. An in-flight fetch finishes but is not reported."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._active:
            self._active = False
            self._log.info("listener.stop", rounds=self.rounds)

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _tick(self, generation: int) -> None:
        self._timer = None
        if not self._is_current(generation):
            return
        self._round_task = asyncio.ensure_future(self._run_round(generation))

    async def _run_round(self, generation: int) -> None:
        self.rounds += 1
        try:
            messages = await self._session.fetch()
        except Exception as e:
            if self._is_current(generation):
                self._log.warning("listener.fetch_failed", round=self.rounds, error=str(e))
                await self._report_error(e)
        else:
            if self._is_current(generation):
                delta = [m for m in messages if m.remote_id not in self._seen_remote_ids]
                self._seen_remote_ids.update(m.remote_id for m in messages)
                if delta:
                    self._log.info("listener.batch", round=self.rounds, new=len(delta))
                    await self._deliver(delta)

        if self._is_current(generation):
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self._interval, self._tick, generation)

    async def _deliver(self, delta: list[Message]) -> None:
        try:
            await _maybe_await(self._on_batch(delta))
        except Exception:
            self._log.exception("listener.batch_handler_error", count=len(delta))

    async def _report_error(self, error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            await _maybe_await(self._on_error(error))
        except Exception:
            self._log.exception("listener.error_handler_error")
