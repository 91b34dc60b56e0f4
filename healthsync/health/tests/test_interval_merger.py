"""Tests for the sleep interval merger."""

from __future__ import annotations

import random
from datetime import timedelta

import pytest

from healthsync.health.base import SleepInterval
from healthsync.health.interval_merger import merge_intervals
from healthsync.health.tests.conftest import at


def iv(start_h: float, end_h: float) -> SleepInterval:
    """Interval on 2026-02-22 with fractional-hour bounds."""
    base = at(22, 0)
    return SleepInterval(
        start=base + timedelta(hours=start_h), end=base + timedelta(hours=end_h)
    )


class TestSleepInterval:
    def test_duration_is_derived_from_bounds(self) -> None:
        assert iv(1, 4).duration_minutes == 180

    def test_duration_truncates_partial_minutes(self) -> None:
        interval = SleepInterval(start=at(22, 1, 0, 0), end=at(22, 1, 1, 59))
        assert interval.duration_minutes == 1

    def test_zero_duration_is_valid(self) -> None:
        assert iv(2, 2).duration_minutes == 0

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValueError):
            SleepInterval(start=at(22, 5), end=at(22, 4))


class TestMergeIntervals:
    def test_empty_input_returns_empty(self) -> None:
        assert merge_intervals([]) == []

    def test_single_interval_unchanged(self) -> None:
        assert merge_intervals([iv(1, 3)]) == [iv(1, 3)]

    def test_overlapping_night_and_separate_nap(self) -> None:
        # 01:00–03:00 + 02:30–04:00 + 10:00–11:00
        merged = merge_intervals([iv(1, 3), iv(2.5, 4), iv(10, 11)])
        assert merged == [iv(1, 4), iv(10, 11)]

    def test_touching_intervals_merge(self) -> None:
        assert merge_intervals([iv(1, 2), iv(2, 3)]) == [iv(1, 3)]

    def test_gap_of_one_second_does_not_merge(self) -> None:
        a = SleepInterval(start=at(22, 1), end=at(22, 2))
        b = SleepInterval(start=at(22, 2, 0, 1), end=at(22, 3))
        assert merge_intervals([a, b]) == [a, b]

    def test_unsorted_input_is_sorted(self) -> None:
        assert merge_intervals([iv(10, 11), iv(1, 2), iv(5, 6)]) == [
            iv(1, 2), iv(5, 6), iv(10, 11),
        ]

    def test_contained_interval_absorbed(self) -> None:
        assert merge_intervals([iv(1, 8), iv(2, 3)]) == [iv(1, 8)]

    def test_chain_of_overlaps_collapses_to_one(self) -> None:
        assert merge_intervals([iv(3, 5), iv(1, 2.5), iv(2, 3.5), iv(4.5, 6)]) == [iv(1, 6)]

    def test_zero_duration_interval_merges_at_boundary(self) -> None:
        assert merge_intervals([iv(1, 2), iv(2, 2)]) == [iv(1, 2)]

    def test_zero_duration_interval_kept_when_isolated(self) -> None:
        assert merge_intervals([iv(1, 2), iv(5, 5)]) == [iv(1, 2), iv(5, 5)]

    def test_input_is_not_mutated(self) -> None:
        sessions = [iv(5, 6), iv(1, 2)]
        merge_intervals(sessions)
        assert sessions == [iv(5, 6), iv(1, 2)]


class TestMergeProperties:
    @pytest.fixture
    def random_sessions(self) -> list[SleepInterval]:
        rng = random.Random(42)
        sessions = []
        for _ in range(60):
            start = rng.uniform(0, 160)
            sessions.append(iv(start, start + rng.uniform(0, 6)))
        return sessions

    def test_output_sorted_and_disjoint(self, random_sessions: list[SleepInterval]) -> None:
        merged = merge_intervals(random_sessions)
        for prev, nxt in zip(merged, merged[1:]):
            assert prev.end < nxt.start  # neither overlapping nor touching

    def test_every_input_covered_by_one_output(
        self, random_sessions: list[SleepInterval]
    ) -> None:
        merged = merge_intervals(random_sessions)
        for session in random_sessions:
            assert any(m.start <= session.start and session.end <= m.end for m in merged)

    def test_output_bounds_come_from_input(
        self, random_sessions: list[SleepInterval]
    ) -> None:
        starts = {s.start for s in random_sessions}
        ends = {s.end for s in random_sessions}
        for m in merge_intervals(random_sessions):
            assert m.start in starts
            assert m.end in ends

    def test_merge_is_idempotent(self, random_sessions: list[SleepInterval]) -> None:
        once = merge_intervals(random_sessions)
        assert merge_intervals(once) == once
