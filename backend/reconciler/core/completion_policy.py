"""Completion Policy — decides when a playlist is overdue and when its event is done.

Invariants:
    - should_complete_playlist is true iff status is new/running, end_time_utc is set,
      and now >= end_time_utc + grace_period
    - A playlist without end_time_utc never completes here (it blocks its event)
    - should_complete_event is true iff there is at least one status and all are completed
    - An event with zero playlists is never completed by this rule
    - All functions are PURE: `now` is always passed in, nothing is read or written

Design Decisions:
    - Grace period as timedelta, not hours: the sweep converts configuration once
    - Empty child set → False: "all completed" over nothing is not evidence of completion
"""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from reconciler.core.domain_types import (
    ACTIVE_STATUSES, EventStatus, PlaylistSnapshot,
)


def grace_period_from_hours(hours: float) -> timedelta:
    """Convert configured CompletedAfterHours to a timedelta. Zero/negative allowed."""
    if not math.isfinite(hours):
        raise ValueError(f"grace period must be finite, got {hours}")
    try:
        return timedelta(hours=hours)
    except OverflowError as e:
        raise ValueError(f"grace period out of range: {hours} hours") from e


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are treated as UTC (SQLite drops tzinfo on read)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def completion_deadline(
    playlist: PlaylistSnapshot, grace_period: timedelta,
) -> datetime | None:
    """Moment from which the playlist is overdue, or None if it has no end time."""
    if playlist.end_time_utc is None:
        return None
    return as_utc(playlist.end_time_utc) + grace_period


def should_complete_playlist(
    playlist: PlaylistSnapshot, now: datetime, grace_period: timedelta,
) -> bool:
    """True iff the playlist is active and its deadline has been reached."""
    if playlist.status not in ACTIVE_STATUSES:
        return False
    deadline = completion_deadline(playlist, grace_period)
    if deadline is None:
        return False
    return as_utc(now) >= deadline


def should_complete_event(statuses: Iterable[EventStatus]) -> bool:
    """True iff the statuses are non-empty and every one is completed.

    Callers pass the post-transition view: statuses this pass just wrote
    (or learned from a refused conditional write), not the pre-pass snapshot.
    """
    seen = False
    for status in statuses:
        if status != EventStatus.COMPLETED:
            return False
        seen = True
    return seen
