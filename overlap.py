"""Detection of dates claimed by more than one leave or time category.

Vacation, sick leave and time entries are mutually exclusive per calendar day.
Before a leave entry is written the guard runs three checks in a fixed order:

1. the opposite leave category (vacation against sick, sick against vacation),
2. the same category (no self-overlap),
3. existing time entries.

The first failing check raises ConflictError and nothing is written.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Protocol

from errors import ConflictError
from storage import DataStore
from utils import format_day

logger = logging.getLogger(__name__)

VACATION = "vacation"
SICK = "sick"

_CONFLICT_LABELS = {VACATION: "vacation", SICK: "sick days"}


class Span(Protocol):
    start_date: date
    end_date: date


def span_matches(d: date, start: date, end: date) -> bool:
    """Day-level inclusive match of d against [start, end]."""
    return d == start or d == end or start < d < end


def find_overlaps(candidates: Iterable[date], spans: Iterable[Span]) -> list[date]:
    """Return the candidates that fall inside at least one span.

    Each candidate is reported once, on its first matching span.
    """
    spans = list(spans)
    overlapping = []
    for candidate in candidates:
        for span in spans:
            if span_matches(candidate, span.start_date, span.end_date):
                overlapping.append(candidate)
                break
    return overlapping


def format_dates(dates: Iterable[date]) -> str:
    return ", ".join(format_day(d) for d in dates)


def opposite_category(category: str) -> str:
    if category == VACATION:
        return SICK
    if category == SICK:
        return VACATION
    raise ValueError(f"Unknown leave category: {category}")


class OverlapGuard:
    """Runs the leave conflict checks against one data directory."""

    def __init__(self, store: DataStore):
        self.store = store

    def _spans(self, category: str):
        if category == VACATION:
            return self.store.vacations.load_all()
        if category == SICK:
            return self.store.sick_days.load_all()
        raise ValueError(f"Unknown leave category: {category}")

    def check_leave_overlap(self, dates: list[date], operation: str, against: str) -> None:
        """Raise if any date is already taken by the `against` leave category."""
        overlapping = find_overlaps(dates, self._spans(against))
        if overlapping:
            label = _CONFLICT_LABELS[against]
            logger.debug("%s blocked by %s on %s", operation, against, overlapping)
            raise ConflictError(
                f"Cannot add {operation}: {label} already scheduled for {format_dates(overlapping)}. "
                f"Please remove {label} first or choose different dates.",
                overlapping,
            )

    def check_self_overlap(self, dates: list[date], operation: str, category: str) -> None:
        overlapping = find_overlaps(dates, self._spans(category))
        if overlapping:
            label = _CONFLICT_LABELS[category]
            logger.debug("%s overlaps existing %s on %s", operation, category, overlapping)
            raise ConflictError(
                f"Cannot add {operation}: {label} already exist for {format_dates(overlapping)}. "
                "Please choose different dates or remove existing entries first.",
                overlapping,
            )

    def check_time_entry_overlap(self, dates: list[date], operation: str) -> None:
        taken = {entry.date for entry in self.store.time_entries.load_all()}
        conflicting = [d for d in dates if d in taken]
        if conflicting:
            logger.debug("%s blocked by time entries on %s", operation, conflicting)
            raise ConflictError(
                f"Cannot add {operation}: time entries already exist for {format_dates(conflicting)}. "
                "Please remove existing time entries first or choose different dates.",
                conflicting,
            )

    def check_all(self, dates: list[date], operation: str, category: str) -> None:
        """Opposite category, then self-overlap, then time entries."""
        self.check_leave_overlap(dates, operation, opposite_category(category))
        self.check_self_overlap(dates, operation, category)
        self.check_time_entry_overlap(dates, operation)

    def leave_on(self, d: date) -> str | None:
        """The leave category covering d (vacation checked first), or None."""
        if find_overlaps([d], self.store.vacations.load_all()):
            return VACATION
        if find_overlaps([d], self.store.sick_days.load_all()):
            return SICK
        return None
