"""ORM Models — SQLAlchemy declarative models for events and their playlists.

Invariants:
    - All models inherit from Base (db/base.py)
    - Event is the parent; playlists scoped by event_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or autogenerate runs
"""

from reconciler.models.event import Event  # noqa: F401
from reconciler.models.playlist import Playlist  # noqa: F401
