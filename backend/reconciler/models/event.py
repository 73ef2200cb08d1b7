"""Event ORM — the parent record whose status follows its playlists.

Invariants:
    - id is UUID primary key
    - status holds an EventStatus value (new, running, completed, cancelled)
    - is_deleted is a soft-delete flag; deleted events are never candidates
    - Created and deleted by other services; this service only advances status

Design Decisions:
    - status as String(20), not a DB enum: other writers own additional transitions
    - completed_at stamped by the status store when it writes completed
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from reconciler.db.base import Base


class Event(Base):
    """Event entity — completes only when every playlist has completed."""
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="new", index=True,
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
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
