"""Domain Types — identities, statuses, and read snapshots shared by core and shell.

Invariants:
    - EventId, PlaylistId wrap UUIDs — never use bare UUID in domain logic
    - Events and playlists share one status domain (EventStatus)
    - ACTIVE_STATUSES = {new, running}: the only statuses this service ever moves from
    - SYSTEM_TARGET_STATUSES = {completed}: the only status this service ever writes
    - Snapshots are frozen: a pass never mutates what it read

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enum: stored as-is in the status column, serializes to JSON without encoders
    - Snapshots instead of ORM objects in core: no lazy loads, no session coupling
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", UUID)
PlaylistId = NewType("PlaylistId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class EventStatus(str, Enum):
    """Lifecycle states for events and playlists — maps to DB `status` column.

    RUNNING is entered and left by external actors only.
    """
    NEW = "new"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: frozenset[EventStatus] = frozenset(
    {EventStatus.NEW, EventStatus.RUNNING},
)
SYSTEM_TARGET_STATUSES: frozenset[EventStatus] = frozenset(
    {EventStatus.COMPLETED},
)


# ─── Paging ──────────────────────────────────────────────────────

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """1-based page of a listing."""
    number: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.number < 1:
            raise ValueError(f"page number must be >= 1, got {self.number}")
        if self.size < 1:
            raise ValueError(f"page size must be >= 1, got {self.size}")

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.size

    def next(self) -> "PageRequest":
        return PageRequest(self.number + 1, self.size)


# ─── Snapshots ───────────────────────────────────────────────────

@dataclass(frozen=True)
class EventSnapshot:
    """Parent record as read by a pass."""
    id: EventId
    status: EventStatus
    name: str = ""
    is_deleted: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class PlaylistSnapshot:
    """Child record as read by a pass. end_time_utc=None means no deadline."""
    id: PlaylistId
    event_id: EventId
    status: EventStatus
    end_time_utc: datetime | None = None
    name: str = ""
    is_deleted: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
