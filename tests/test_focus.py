import asyncio
import itertools

import pytest
from prometheus_client import REGISTRY

from progress_tracker.application.focus_session import FocusSession, run_focus_session
from progress_tracker.application.ports import IFocusStore
from progress_tracker.application.use_cases.reconcile_focus import FlushFocus, RepositoryFocusStore
from progress_tracker.domain.errors import StoreUnavailable
from progress_tracker.domain.focus import reconcile, should_flush


class MemoryFocusStore(IFocusStore):
    """Хранилище с той же семантикой «только вверх», что и сервер"""

    def __init__(self, stored=0):
        self.stored = stored
        self.flushes = []
        self.fail_next = 0

    def read_focus(self):
        return self.stored

    def flush_focus(self, accumulated_seconds):
        if self.fail_next:
            self.fail_next -= 1
            raise StoreUnavailable("down")
        self.flushes.append(accumulated_seconds)
        self.stored = max(self.stored, accumulated_seconds)
        return self.stored


def test_reconcile_rule():
    assert reconcile(10, 4) == 10
    assert reconcile(4, 10) == 10
    assert should_flush(11, 10) is True
    assert should_flush(10, 10) is False


@pytest.mark.parametrize("values", list(itertools.permutations([30, 5, 120, 90])))
def test_flush_keeps_the_maximum_regardless_of_order(store, cache, values):
    uc = FlushFocus(store, cache)
    for v in values:
        uc.execute("u1", v)
    assert store.get_focus("u1") == 120


def test_flush_returns_larger_stored_value(store, cache):
    uc = FlushFocus(store, cache)
    assert uc.execute("u1", 300) == 300
    assert uc.execute("u1", 200) == 300


def test_flush_rejects_negative(store, cache):
    with pytest.raises(ValueError):
        FlushFocus(store, cache).execute("u1", -1)


def flush_outcomes():
    return {
        outcome: REGISTRY.get_sample_value("focus_flush_total", {"outcome": outcome}) or 0
        for outcome in ("written", "kept_stored")
    }


def test_equal_value_is_not_counted_as_written(store, cache):
    uc = FlushFocus(store, cache)
    uc.execute("u1", 300)
    before = flush_outcomes()
    assert uc.execute("u1", 300) == 300
    after = flush_outcomes()
    assert after["written"] == before["written"]
    assert after["kept_stored"] == before["kept_stored"] + 1


def test_repository_reports_whether_it_wrote(store):
    store.ensure_user("u1")
    assert store.raise_focus("u1", 50) == (50, True)
    assert store.raise_focus("u1", 50) == (50, False)
    assert store.raise_focus("u1", 10) == (50, False)


def test_session_starts_from_stored_value():
    session = FocusSession(MemoryFocusStore(stored=500), flush_every=10)
    assert session.start() == 500
    assert session.accumulated_seconds == 500
    assert session.last_known_stored_value == 500


def test_ticks_flush_every_n():
    backend = MemoryFocusStore()
    session = FocusSession(backend, flush_every=10)
    session.start()
    for _ in range(25):
        session.tick()
    assert backend.flushes == [10, 20]
    assert session.accumulated_seconds == 25
    assert session.end() == 25


def test_inactive_session_does_not_tick():
    session = FocusSession(MemoryFocusStore(), flush_every=10)
    session.tick()
    assert session.accumulated_seconds == 0


def test_failed_flush_is_retried_on_next_tick():
    backend = MemoryFocusStore()
    backend.fail_next = 1
    session = FocusSession(backend, flush_every=10)
    session.start()
    for _ in range(10):
        session.tick()
    assert backend.flushes == []
    assert session.last_known_stored_value == 0

    session.tick()
    assert backend.flushes == [11]
    assert backend.stored == 11


def test_retry_keeps_going_while_store_is_down():
    backend = MemoryFocusStore()
    backend.fail_next = 3
    session = FocusSession(backend, flush_every=5)
    session.start()
    for _ in range(8):
        session.tick()
    # тики 5, 6, 7 падают, тик 8 доходит
    assert backend.flushes == [8]
    for _ in range(2):
        session.tick()
    assert backend.flushes == [8, 10]


def test_flush_skipped_when_not_ahead():
    backend = MemoryFocusStore(stored=40)
    session = FocusSession(backend)
    session.start()
    assert session.flush() is False
    assert backend.flushes == []


def test_suspend_does_not_count_background_time():
    backend = MemoryFocusStore()
    session = FocusSession(backend, flush_every=100)
    session.start()
    for _ in range(7):
        session.tick()
    session.suspend()
    assert backend.stored == 7
    session.tick()
    session.tick()
    assert session.accumulated_seconds == 7
    assert session.resume() == 7


def test_resume_adopts_larger_stored_value():
    backend = MemoryFocusStore()
    session = FocusSession(backend, flush_every=100)
    session.start()
    for _ in range(5):
        session.tick()
    session.suspend()
    # другая вкладка успела насчитать больше
    backend.stored = 60
    assert session.resume() == 60
    session.tick()
    session.end()
    assert backend.stored == 61


def test_overlapping_sessions_never_regress():
    backend = MemoryFocusStore(stored=100)
    a = FocusSession(backend, flush_every=1000)
    b = FocusSession(backend, flush_every=1000)
    a.start()
    b.start()
    for _ in range(50):
        a.tick()
    for _ in range(10):
        b.tick()
    a.flush()
    b.flush()
    assert backend.stored == 150
    assert b.accumulated_seconds == 150
    assert b.last_known_stored_value == 150


def test_repository_backed_session(store, cache):
    session = FocusSession(RepositoryFocusStore(store, cache, "u1"), flush_every=3)
    session.start()
    for _ in range(4):
        session.tick()
    assert store.get_focus("u1") == 3
    session.end()
    assert store.get_focus("u1") == 4


def test_run_focus_session_flushes_on_stop():
    backend = MemoryFocusStore(stored=10)
    session = FocusSession(backend, flush_every=1000)

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(run_focus_session(session, stop, tick_seconds=0.01))
        await asyncio.sleep(0.2)
        stop.set()
        return await task

    stored = asyncio.run(scenario())
    assert stored > 10
    assert backend.stored == stored
    assert session.active is False
