"""Client-side focus timer.

``FocusSession`` keeps a local tally that ticks once per second while the
session is active and is periodically pushed to storage. The local tally is
only a hint: it is reconciled against the stored value on start, on resume,
and after every successful flush.

Typical use::

    session = FocusSession(ProgressApiClient(base_url, token))
    stop = asyncio.Event()
    await run_focus_session(session, stop)
"""
import asyncio

import structlog

from .ports import IFocusStore
from ..config import settings
from ..domain.errors import StoreUnavailable, Unauthenticated
from ..domain.focus import reconcile, should_flush
from ..infrastructure.metrics import focus_flush_total

logger = structlog.get_logger()


class FocusSession:
    def __init__(self, store: IFocusStore, flush_every: int = None):
        self.store = store
        self.flush_every = flush_every or settings.FOCUS_FLUSH_EVERY_TICKS
        self.accumulated_seconds = 0
        self.last_known_stored_value = 0
        self.active = False
        self._ticks = 0
        self._flush_pending = False

    def start(self) -> int:
        stored = self.store.read_focus()
        self.last_known_stored_value = stored
        self.accumulated_seconds = stored
        self._ticks = 0
        self._flush_pending = False
        self.active = True
        logger.info("focus_session_started", stored=stored)
        return stored

    def tick(self) -> None:
        if not self.active:
            return
        self.accumulated_seconds += 1
        self._ticks += 1
        if self._flush_pending or self._ticks % self.flush_every == 0:
            self.flush()

    def flush(self) -> bool:
        """Push the local tally if it is ahead of storage. A failed flush is retried on the next tick."""
        if not should_flush(self.accumulated_seconds, self.last_known_stored_value):
            self._flush_pending = False
            return False
        try:
            stored = self.store.flush_focus(self.accumulated_seconds)
        except StoreUnavailable as e:
            self._flush_pending = True
            focus_flush_total.labels(outcome="failed").inc()
            logger.warning("focus_flush_failed", accumulated=self.accumulated_seconds, error=str(e))
            return False
        self._flush_pending = False
        self.last_known_stored_value = stored
        self.accumulated_seconds = reconcile(self.accumulated_seconds, stored)
        return True

    def suspend(self) -> None:
        """Visibility lost: save what we have and stop counting."""
        self.flush()
        self.active = False
        logger.info("focus_session_suspended", accumulated=self.accumulated_seconds)

    def resume(self) -> int:
        # время в фоне не считается; берём максимум из локального и сохранённого
        stored = self.store.read_focus()
        self.last_known_stored_value = stored
        self.accumulated_seconds = reconcile(self.accumulated_seconds, stored)
        self.active = True
        logger.info("focus_session_resumed", stored=stored, accumulated=self.accumulated_seconds)
        return self.accumulated_seconds

    def end(self) -> int:
        self.flush()
        self.active = False
        logger.info("focus_session_ended", accumulated=self.accumulated_seconds,
                    stored=self.last_known_stored_value)
        return self.last_known_stored_value


async def run_focus_session(session: FocusSession, stop: asyncio.Event, tick_seconds: float = None) -> int:
    """Tick ``session`` until ``stop`` is set, then flush one last time.

    Store calls are blocking, so they run in a worker thread to keep the
    event loop responsive.
    """
    interval = tick_seconds or settings.FOCUS_TICK_SECONDS
    await asyncio.to_thread(session.start)
    try:
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await asyncio.to_thread(session.tick)
    except Unauthenticated:
        session.active = False
        raise
    finally:
        if session.active:
            await asyncio.to_thread(session.end)
    return session.last_known_stored_value
