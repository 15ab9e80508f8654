"""
Unit tests for concept mastery updates.

The concurrency test uses a dict-backed store that widens the gap between
read and write, so a missing lock shows up as lost updates.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from learner_analytics.analytics.mastery import KeyedLock, MasteryUpdater, apply_attempt
from learner_analytics.db.store import CONCEPT_MASTERY

NOW = datetime(2026, 3, 15, 12, 0)


class SlowMemoryStore:
    """Just enough of the Store protocol for MasteryUpdater."""

    def __init__(self, delay: float = 0.0):
        self.rows: dict[tuple, dict] = {}
        self.delay = delay
        self.upserts = 0
        self._guard = threading.Lock()

    def get(self, collection, **filters):
        assert collection == CONCEPT_MASTERY
        key = (filters["user_id"], filters["chapter_id"], filters["concept"])
        with self._guard:
            row = self.rows.get(key)
            row = dict(row) if row is not None else None
        time.sleep(self.delay)
        return row

    def upsert(self, collection, record, conflict_keys):
        key = tuple(record[k] for k in conflict_keys)
        with self._guard:
            self.upserts += 1
            row = {"id": self.rows.get(key, {}).get("id", f"m-{len(self.rows)}"), **record}
            self.rows[key] = row
            return dict(row)


def _first(is_correct, seconds=0, difficulty=None):
    return apply_attempt(
        None,
        user_id="u",
        chapter_id="c",
        concept="k",
        is_correct=is_correct,
        time_spent_seconds=seconds,
        difficulty=difficulty,
        now=NOW,
    )


class TestApplyAttempt:
    def test_first_correct_attempt(self):
        record = _first(True, seconds=150)
        assert record.attempts_count == 1
        assert record.correct_attempts == 1
        assert record.mastery_level == 1.0
        assert record.time_to_master_minutes == 2
        assert record.last_practiced_at == NOW

    def test_first_incorrect_attempt(self):
        record = _first(False, seconds=59)
        assert record.mastery_level == 0.0
        assert record.correct_attempts == 0
        assert record.time_to_master_minutes == 0

    def test_running_accuracy(self):
        record = _first(True)
        for outcome in (False, True, True):
            record = apply_attempt(
                record,
                user_id="u",
                chapter_id="c",
                concept="k",
                is_correct=outcome,
                time_spent_seconds=60,
                now=NOW,
            )
        assert record.attempts_count == 4
        assert record.correct_attempts == 3
        assert record.mastery_level == pytest.approx(0.75)
        assert record.time_to_master_minutes == 3

    def test_difficulty_history_appends(self):
        record = _first(True, difficulty="easy")
        record = apply_attempt(
            record,
            user_id="u",
            chapter_id="c",
            concept="k",
            is_correct=True,
            time_spent_seconds=0,
            difficulty="hard",
            now=NOW,
        )
        assert record.difficulty_progression == ["easy", "hard"]

    def test_input_not_modified(self):
        record = _first(True)
        apply_attempt(
            record,
            user_id="u",
            chapter_id="c",
            concept="k",
            is_correct=False,
            time_spent_seconds=0,
            now=NOW,
        )
        assert record.attempts_count == 1


class TestKeyedLock:
    def test_entries_released_after_use(self):
        locks = KeyedLock()
        with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        with locks.hold("a"):
            acquired = threading.Event()

            def other():
                with locks.hold("b"):
                    acquired.set()

            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=2)
            thread.join()


class TestMasteryUpdater:
    def test_creates_then_updates(self):
        store = SlowMemoryStore()
        updater = MasteryUpdater(store, clock=lambda: NOW)

        first = updater.update("u", "c", "k", True, 60)
        second = updater.update("u", "c", "k", False, 120)

        assert first.attempts_count == 1
        assert second.attempts_count == 2
        assert second.correct_attempts == 1
        assert second.mastery_level == pytest.approx(0.5)
        assert second.time_to_master_minutes == 3
        assert store.upserts == 2

    def test_concurrent_updates_on_one_key_are_not_lost(self):
        store = SlowMemoryStore(delay=0.005)
        updater = MasteryUpdater(store, clock=lambda: NOW)
        n = 20

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: updater.update("u", "c", "k", i % 2 == 0, 0), range(n)))

        row = store.rows[("u", "c", "k")]
        assert row["attempts_count"] == n
        assert row["correct_attempts"] == n // 2
        assert row["mastery_level"] == pytest.approx(0.5)

    def test_store_errors_propagate(self):
        class BrokenStore(SlowMemoryStore):
            def upsert(self, collection, record, conflict_keys):
                raise RuntimeError("disk full")

        updater = MasteryUpdater(BrokenStore(), clock=lambda: NOW)
        with pytest.raises(RuntimeError, match="disk full"):
            updater.update("u", "c", "k", True, 0)
