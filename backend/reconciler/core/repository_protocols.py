"""Boundary Protocols — contracts between the sweep and the status store.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The sweep performs IO only through StatusStore
    - patch_* are conditional: they succeed only if the current status is new/running,
      otherwise raise PreconditionFailedError carrying the observed status
    - list_* never return soft-deleted rows
    - A StatusStore handle is scoped: obtained from StatusStoreScope, released on exit

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Scope is a callable returning an async context manager: the shell decides whether
      a handle spans a whole pass or a single event
"""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from reconciler.core.domain_types import (
    EventId, EventSnapshot, EventStatus, PageRequest, PlaylistId, PlaylistSnapshot,
)


class StatusStore(Protocol):
    """Contract for reading candidates and conditionally advancing status."""

    async def list_active_events(self) -> list[EventSnapshot]: ...

    async def list_playlists(
        self, event_id: EventId, page: PageRequest,
    ) -> list[PlaylistSnapshot]: ...

    async def patch_playlist_status(
        self, playlist_id: PlaylistId, new_status: EventStatus,
    ) -> PlaylistSnapshot: ...

    async def patch_event_status(
        self, event_id: EventId, new_status: EventStatus,
    ) -> EventSnapshot: ...


class StatusStoreScope(Protocol):
    """Factory for scoped StatusStore handles (`async with scope() as store`)."""

    def __call__(self) -> AbstractAsyncContextManager[StatusStore]: ...
