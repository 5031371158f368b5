"""
Read-side index over a user's recurring blocks.
"""

from __future__ import annotations

from bisect import bisect_right
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from workplan.models.recurring import RecurringBlock
from workplan.utils.time_utils import overlap_minutes


class RecurringBlockIndex:
    """Per-date sorted, merged block intervals."""

    def __init__(self, blocks: Iterable[RecurringBlock] = ()):
        self._raw: dict[date, list[tuple[int, int]]] = defaultdict(list)
        self._merged: dict[date, list[tuple[int, int]]] = {}
        self.add(blocks)

    def add(self, blocks: Iterable[RecurringBlock]) -> None:
        touched = set()
        for block in blocks:
            if block.end_minutes <= block.start_minutes:
                continue
            self._raw[block.block_date].append((block.start_minutes, block.end_minutes))
            touched.add(block.block_date)
        for day in touched:
            self._merged[day] = self._merge(self._raw[day])

    @staticmethod
    def _merge(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
        merged: list[tuple[int, int]] = []
        for start, end in sorted(set(intervals)):
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    def covering(self, day: date, minute: int) -> Optional[tuple[int, int]]:
        """Block containing the minute, if any."""
        intervals = self._merged.get(day)
        if not intervals:
            return None
        index = bisect_right(intervals, (minute, float("inf"))) - 1
        if index >= 0 and intervals[index][0] <= minute < intervals[index][1]:
            return intervals[index]
        return None

    def next_start_after(self, day: date, minute: int) -> Optional[int]:
        """Start of the first block beginning strictly after the minute."""
        for start, _ in self._merged.get(day, []):
            if start > minute:
                return start
        return None

    def overlap(self, day: date, start: int, end: int) -> int:
        return sum(
            overlap_minutes(start, end, block_start, block_end)
            for block_start, block_end in self._merged.get(day, [])
        )

    def minutes_on(self, day: date) -> int:
        return sum(end - start for start, end in self._merged.get(day, []))
