"""
Appointment status state machine

    pending ──> confirmed ──> completed
       │            │
       │            ├──> no-show
       └────────────┴──> cancelled

``completed``, ``cancelled`` and ``no-show`` are terminal. Writing the current
status again is always allowed.
"""
import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping

from clinic_api.errors import ValidationError
from clinic_api.models.appointment import AppointmentStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def is_transition_allowed(current: str, target: str) -> bool:
    current, target = AppointmentStatus(current), AppointmentStatus(target)
    return current == target or target in ALLOWED_TRANSITIONS[current]


def check_transition(current: str, target: str, strict: bool) -> None:
    """
    Validate a status write against the transition table

    In strict mode a disallowed transition raises ValidationError; otherwise it
    is applied and only flagged in the log.
    """
    if is_transition_allowed(current, target):
        return

    message = f"Cannot change appointment status from '{current}' to '{target}'"
    if strict:
        raise ValidationError(errors=[{"field": "status", "message": message}])
    logger.warning(f"⚠️ {message}; applying anyway")


def status_side_effects(record: Mapping[str, Any], now: datetime) -> Dict[str, Any]:
    """
    Fields to fill in when ``record`` (current values merged with the update)
    is written with its status. Values already present are never overwritten.
    """
    status = record.get("status")
    effects: Dict[str, Any] = {}

    if status == AppointmentStatus.CONFIRMED.value:
        if not record.get("confirmedDate"):
            effects["confirmedDate"] = record.get("preferredDate")
        if not record.get("confirmedTime"):
            effects["confirmedTime"] = record.get("preferredTime")

    elif status == AppointmentStatus.CANCELLED.value:
        if not record.get("cancelledAt"):
            effects["cancelledAt"] = now

    elif status == AppointmentStatus.COMPLETED.value:
        if not record.get("actualDate"):
            effects["actualDate"] = record.get("confirmedDate") or record.get("preferredDate")
        if not record.get("actualTime"):
            effects["actualTime"] = record.get("confirmedTime") or record.get("preferredTime")

    return effects
