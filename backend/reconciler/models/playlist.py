"""Playlist ORM — a child unit of an event, with an optional deadline.

Invariants:
    - Always belongs to an Event (event_id FK)
    - end_time_utc NULL means no deadline: never auto-completed
    - status shares the EventStatus domain with Event
    - is_deleted rows are invisible to the sweep

Design Decisions:
    - Composite index (event_id, is_deleted): the sweep pages playlists per event
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from reconciler.db.base import Base


class Playlist(Base):
    """Playlist entity — completes on its own once end time + grace period has passed."""
    __tablename__ = "event_playlists"
    __table_args__ = (
        Index("ix_event_playlists_event_id_is_deleted", "event_id", "is_deleted"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="new",
    )
    end_time_utc: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
