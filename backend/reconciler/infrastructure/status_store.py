"""Status Store Gateway — SQLAlchemy implementation of the StatusStore protocol.

Invariants:
    - Reads exclude soft-deleted rows; candidate events are new/running only
    - Writes are conditional: UPDATE ... WHERE status IN (new, running) AND NOT is_deleted
    - rowcount == 0 → PreconditionFailedError with the status observed right after,
      or ResourceNotFoundError if the row is gone/deleted
    - Every successful patch is committed on its own (no pass-wide transaction)
    - Payloads validated by SystemStatusPatch before any SQL runs
    - SQLAlchemy failures rolled back and raised as DatabaseError; the session stays usable
    - Returns frozen snapshots, never ORM instances

Design Decisions:
    - Conditional UPDATE over SELECT-then-UPDATE: the database arbitrates races with
      other writers, no row locks held across awaits
    - populate_existing on re-reads: the identity map may hold rows loaded earlier
      in the same session with a stale status
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TypeVar

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.core.domain_types import (
    ACTIVE_STATUSES, EventId, EventSnapshot, EventStatus, PageRequest,
    PlaylistId, PlaylistSnapshot,
)
from reconciler.core.errors import (
    DatabaseError, ErrorContext, PreconditionFailedError, ResourceNotFoundError,
    StatusValidationError,
)
from reconciler.models.event import Event
from reconciler.models.playlist import Playlist
from reconciler.schemas.status_patch import SystemStatusPatch

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = sorted(s.value for s in ACTIVE_STATUSES)

ModelT = TypeVar("ModelT", Event, Playlist)


def _status(value: str, ctx: ErrorContext) -> EventStatus:
    try:
        return EventStatus(value)
    except ValueError:
        raise StatusValidationError(
            f"Unknown status '{value}' in database", "status", ctx,
        ) from None


def to_event_snapshot(row: Event) -> EventSnapshot:
    return EventSnapshot(
        id=EventId(row.id),
        status=_status(row.status, ErrorContext(event_id=str(row.id))),
        name=row.name,
        is_deleted=row.is_deleted,
    )


def to_playlist_snapshot(row: Playlist) -> PlaylistSnapshot:
    ctx = ErrorContext(event_id=str(row.event_id), playlist_id=str(row.id))
    return PlaylistSnapshot(
        id=PlaylistId(row.id),
        event_id=EventId(row.event_id),
        status=_status(row.status, ctx),
        end_time_utc=row.end_time_utc,
        name=row.name,
        is_deleted=row.is_deleted,
    )


class SqlAlchemyStatusStore:
    """StatusStore over one AsyncSession. Obtain via DatabaseSessionManager.status_store()."""

    def __init__(self, db: AsyncSession):
        self._db = db

    # ─── Reads ───────────────────────────────────────────────────

    async def list_active_events(self) -> list[EventSnapshot]:
        async with self._guard("query", ErrorContext()):
            result = await self._db.execute(
                select(Event)
                .where(
                    Event.status.in_(_ACTIVE_VALUES),
                    Event.is_deleted.is_(False),
                )
                .order_by(Event.created_at, Event.id),
            )
            rows = result.scalars().all()
        return [to_event_snapshot(row) for row in rows]

    async def list_playlists(
        self, event_id: EventId, page: PageRequest,
    ) -> list[PlaylistSnapshot]:
        async with self._guard("query", ErrorContext(event_id=str(event_id))):
            result = await self._db.execute(
                select(Playlist)
                .where(
                    Playlist.event_id == event_id,
                    Playlist.is_deleted.is_(False),
                )
                .order_by(Playlist.id)
                .offset(page.offset)
                .limit(page.size)
                .execution_options(populate_existing=True),
            )
            rows = result.scalars().all()
        return [to_playlist_snapshot(row) for row in rows]

    # ─── Conditional writes ──────────────────────────────────────

    async def patch_playlist_status(
        self, playlist_id: PlaylistId, new_status: EventStatus,
    ) -> PlaylistSnapshot:
        ctx = ErrorContext(playlist_id=str(playlist_id))
        patch = self._validate(new_status, ctx)
        async with self._guard("commit", ctx):
            await self._conditional_update(Playlist, playlist_id, patch, ctx)
            row = await self._reload(Playlist, playlist_id)
        return to_playlist_snapshot(row)

    async def patch_event_status(
        self, event_id: EventId, new_status: EventStatus,
    ) -> EventSnapshot:
        ctx = ErrorContext(event_id=str(event_id))
        patch = self._validate(new_status, ctx)
        async with self._guard("commit", ctx):
            await self._conditional_update(Event, event_id, patch, ctx)
            row = await self._reload(Event, event_id)
        return to_event_snapshot(row)

    # ─── Helpers ─────────────────────────────────────────────────

    @asynccontextmanager
    async def _guard(self, operation: str, ctx: ErrorContext):
        """Map SQLAlchemy failures to DatabaseError after rolling back."""
        try:
            yield
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError(type(e).__name__, operation, ctx) from e

    @staticmethod
    def _validate(new_status: EventStatus, ctx: ErrorContext) -> SystemStatusPatch:
        try:
            return SystemStatusPatch(status=new_status)
        except ValidationError as e:
            raise StatusValidationError(
                e.errors()[0]["msg"], "status", ctx,
            ) from None

    async def _conditional_update(
        self,
        model: type[ModelT],
        record_id,
        patch: SystemStatusPatch,
        ctx: ErrorContext,
    ) -> None:
        now = datetime.now(timezone.utc)
        values = {"status": patch.status.value, "updated_at": now}
        if model is Event and patch.status == EventStatus.COMPLETED:
            values["completed_at"] = now
        result = await self._db.execute(
            update(model)
            .where(
                model.id == record_id,
                model.is_deleted.is_(False),
                model.status.in_(_ACTIVE_VALUES),
            )
            .values(**values)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 1:
            await self._db.commit()
            return

        await self._db.rollback()
        current = await self._db.execute(
            select(model.status, model.is_deleted).where(model.id == record_id),
        )
        row = current.one_or_none()
        if row is None or row.is_deleted:
            raise ResourceNotFoundError(model.__name__, str(record_id), ctx)
        logger.debug(
            "Conditional write refused for %s %s (status=%s)",
            model.__name__, record_id, row.status,
        )
        raise PreconditionFailedError(model.__name__, str(record_id), row.status, ctx)

    async def _reload(self, model: type[ModelT], record_id) -> ModelT:
        result = await self._db.execute(
            select(model)
            .where(model.id == record_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one()
