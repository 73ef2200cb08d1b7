"""Status Patch Schema — validated payload for system-initiated status writes.

Invariants:
    - status must be a valid EventStatus
    - status must be a system target (completed): the sweep never writes new/running/cancelled
    - Extra fields rejected (a status patch touches exactly one column)

Design Decisions:
    - Validation at the store boundary, not in the sweep: every writer goes through it
"""

from pydantic import BaseModel, ConfigDict, field_validator

from reconciler.core.domain_types import EventStatus, SYSTEM_TARGET_STATUSES


class SystemStatusPatch(BaseModel):
    """Status change requested by the reconciliation sweep."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: EventStatus

    @field_validator("status")
    @classmethod
    def only_system_targets(cls, v: EventStatus) -> EventStatus:
        if v not in SYSTEM_TARGET_STATUSES:
            allowed = ", ".join(sorted(s.value for s in SYSTEM_TARGET_STATUSES))
            raise ValueError(f"system patches may only set status to: {allowed}")
        return v
