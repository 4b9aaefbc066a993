"""Tally sync status and its transition table.

A weight record starts ``pending``. Sync attempts move it to ``synced`` or
``failed``; a failed record may be retried. ``synced`` is terminal because
voucher creation in Tally is not idempotent. ``ignored`` is set by an
operator to exclude a record from automatic sync and is terminal as well.
"""

from enum import Enum
from typing import Dict, FrozenSet

from ..exceptions import InvalidTransition


class SyncStatus(str, Enum):
    """Tally sync state of a weight record."""
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"
    IGNORED = "ignored"


TRANSITIONS: Dict[SyncStatus, FrozenSet[SyncStatus]] = {
    SyncStatus.PENDING: frozenset({SyncStatus.SYNCED, SyncStatus.FAILED, SyncStatus.IGNORED}),
    SyncStatus.FAILED: frozenset({SyncStatus.SYNCED, SyncStatus.FAILED, SyncStatus.IGNORED}),
    SyncStatus.SYNCED: frozenset(),
    SyncStatus.IGNORED: frozenset(),
}

# Statuses picked up by a batch sync
SYNCABLE = frozenset({SyncStatus.PENDING, SyncStatus.FAILED})


def can_transition(current: SyncStatus, target: SyncStatus) -> bool:
    return SyncStatus(target) in TRANSITIONS[SyncStatus(current)]


def transition(current: SyncStatus, target: SyncStatus) -> SyncStatus:
    """
    Validate a status change.

    Args:
        current: Status the record has now
        target: Requested status

    Returns:
        The target status

    Raises:
        InvalidTransition: If the table does not allow the move
    """
    if not can_transition(current, target):
        raise InvalidTransition(SyncStatus(current).value, SyncStatus(target).value)
    return SyncStatus(target)
