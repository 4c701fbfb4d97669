"""Booking status rules.

Forward order: pending -> confirmed -> in_progress -> pending_cod_collection -> completed.
Skipping ahead is allowed. cancelled and disputed are reachable from any
non-terminal status. completed, cancelled and disputed are terminal.
pending_cod_collection is reached only through completion branching.
"""
from services.errors import InvalidTransitionError

FORWARD_ORDER = ("pending", "confirmed", "in_progress", "pending_cod_collection", "completed")
EXIT_STATUSES = ("cancelled", "disputed")
TERMINAL_STATUSES = ("completed", "cancelled", "disputed")
# set by completion branching only, never requested directly
ENGINE_STATUSES = ("pending_cod_collection",)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, requested: str) -> bool:
    if current == requested:
        return True
    if is_terminal(current):
        return False
    if requested in EXIT_STATUSES:
        return True
    if current not in FORWARD_ORDER or requested not in FORWARD_ORDER:
        return False
    return FORWARD_ORDER.index(requested) > FORWARD_ORDER.index(current)


def validate_transition(current: str, requested: str) -> None:
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)


def validate_requested_transition(current: str, requested: str) -> None:
    """Check a status asked for by a client rather than derived by the engine."""
    if requested != current and requested in ENGINE_STATUSES:
        raise InvalidTransitionError(current, requested)
    validate_transition(current, requested)
