"""SystemStatusPatch — only system target statuses, nothing else in the payload."""

import pytest
from pydantic import ValidationError

from reconciler.core.domain_types import EventStatus
from reconciler.schemas.status_patch import SystemStatusPatch


def test_accepts_completed():
    assert SystemStatusPatch(status=EventStatus.COMPLETED).status == EventStatus.COMPLETED


def test_accepts_completed_as_string():
    assert SystemStatusPatch(status="completed").status == EventStatus.COMPLETED


@pytest.mark.parametrize("status", ["new", "running", "cancelled"])
def test_rejects_non_system_targets(status):
    with pytest.raises(ValidationError) as exc_info:
        SystemStatusPatch(status=status)
    assert "completed" in str(exc_info.value)


def test_rejects_unknown_status():
    with pytest.raises(ValidationError):
        SystemStatusPatch(status="archived")


def test_rejects_extra_fields():
    with pytest.raises(ValidationError):
        SystemStatusPatch(status="completed", name="renamed")


def test_is_frozen():
    patch = SystemStatusPatch(status="completed")
    with pytest.raises(ValidationError):
        patch.status = EventStatus.NEW
