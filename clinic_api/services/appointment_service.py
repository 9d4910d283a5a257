import logging
from datetime import date
from typing import Any, Dict, Optional

from pymongo import ASCENDING

from clinic_api.config import Settings
from clinic_api.errors import NotFoundError, ValidationError
from clinic_api.models.appointment import (
    AppointmentCreate,
    AppointmentInDB,
    AppointmentStatus,
    AppointmentUpdate,
    ConfirmRequest,
)
from clinic_api.models.common import Priority, as_datetime, clinic_today, utcnow
from clinic_api.services.appointment_lifecycle import check_transition, status_side_effects
from clinic_api.services.database_service import DatabaseService, ListQuery, Page
from clinic_api.services.email_service import EmailService
from clinic_api.services.email_templates import Scenario

logger = logging.getLogger(__name__)

COLLECTION = "appointments"
SEARCH_FIELDS = ("name", "email", "phone", "treatmentType")


class AppointmentService:
    """High-level service for appointment booking and administration"""

    def __init__(self, database: DatabaseService, email_service: EmailService, settings: Settings):
        self.database = database
        self.email_service = email_service
        self.settings = settings

    async def create(self, data: AppointmentCreate) -> AppointmentInDB:
        """
        Book an appointment; the date may not be before today at the clinic

        Both notifications (patient acknowledgement and clinic alert) are
        best-effort: the booking stands even if email delivery fails.
        """
        if data.preferred_date < clinic_today(self.settings.CLINIC_TIMEZONE):
            raise ValidationError(errors=[
                {"field": "preferredDate", "message": "Preferred date cannot be in the past"}
            ])

        document = await self.database.insert(COLLECTION, data.to_document())
        appointment = AppointmentInDB.from_document(document)
        logger.info(f"📅 Appointment {appointment.reference_id} requested by {appointment.email}")

        payload = appointment.notification_payload()
        await self.email_service.notify(Scenario.APPOINTMENT_REQUEST_CONFIRMATION, payload)
        await self.email_service.notify(Scenario.APPOINTMENT_ADMIN_ALERT, payload)
        return appointment

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        treatment_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> Page:
        filters: Dict[str, Any] = {
            "status": status,
            "priority": priority,
            "treatmentType": treatment_type,
        }
        date_range = {}
        if date_from:
            date_range["$gte"] = as_datetime(date_from)
        if date_to:
            date_range["$lte"] = as_datetime(date_to)
        if date_range:
            filters["preferredDate"] = date_range

        query = ListQuery(
            filters=filters,
            search=search,
            search_fields=SEARCH_FIELDS,
            sort=[("preferredDate", ASCENDING), ("preferredSlot", ASCENDING)],
        )
        result = await self.database.paginate(COLLECTION, query, page, limit)
        items = [AppointmentInDB.from_document(doc).to_public() for doc in result.items]
        return Page(items=items, pagination=result.pagination)

    async def _get_document(self, appointment_id: str) -> Dict[str, Any]:
        document = await self.database.find_by_id(COLLECTION, appointment_id)
        if document is None:
            raise NotFoundError("Appointment not found")
        return document

    async def get(self, appointment_id: str) -> AppointmentInDB:
        return AppointmentInDB.from_document(await self._get_document(appointment_id))

    async def _apply_changes(self, current: Dict[str, Any], changes: Dict[str, Any]) -> AppointmentInDB:
        """Run a status write through the lifecycle rules and persist the result"""
        if "status" in changes:
            check_transition(current["status"], changes["status"], self.settings.STRICT_STATUS_TRANSITIONS)
            changes = {**changes, **status_side_effects({**current, **changes}, utcnow())}

        document = await self.database.update_by_id(COLLECTION, str(current["_id"]), changes)
        if document is None:
            raise NotFoundError("Appointment not found")
        return AppointmentInDB.from_document(document)

    def _confirmation_payload(self, appointment: AppointmentInDB) -> Dict[str, Any]:
        return {
            **appointment.notification_payload(),
            "appointment_date": appointment.confirmed_date or appointment.preferred_date,
            "appointment_time": appointment.confirmed_time or appointment.preferred_time,
        }

    async def update(self, appointment_id: str, data: AppointmentUpdate) -> AppointmentInDB:
        current = await self._get_document(appointment_id)
        appointment = await self._apply_changes(current, data.to_changes())

        newly_confirmed = (
            current["status"] != AppointmentStatus.CONFIRMED.value
            and appointment.status == AppointmentStatus.CONFIRMED.value
        )
        if newly_confirmed:
            await self.email_service.notify(
                Scenario.APPOINTMENT_CONFIRMED, self._confirmation_payload(appointment)
            )

        logger.info(f"📝 Appointment {appointment.reference_id} updated")
        return appointment

    async def confirm(self, appointment_id: str, data: ConfirmRequest) -> AppointmentInDB:
        """Confirm an appointment and email the patient the final date and time"""
        current = await self._get_document(appointment_id)
        appointment = await self._apply_changes(current, data.to_changes())

        await self.email_service.notify(
            Scenario.APPOINTMENT_CONFIRMED,
            self._confirmation_payload(appointment),
            required=not self.settings.EMAIL_FAILURES_BEST_EFFORT,
        )
        logger.info(f"✅ Appointment {appointment.reference_id} confirmed")
        return appointment

    async def delete(self, appointment_id: str) -> None:
        if not await self.database.delete_by_id(COLLECTION, appointment_id):
            raise NotFoundError("Appointment not found")
        logger.info(f"🗑️ Appointment {appointment_id} deleted")

    async def stats(self) -> Dict[str, int]:
        counts = {
            "total": 0,
            "pending": 0,
            "confirmed": 0,
            "cancelled": 0,
            "completed": 0,
            "noShow": 0,
            "highPriority": 0,
            "mediumPriority": 0,
            "lowPriority": 0,
        }
        status_keys = {status.value: status.value for status in AppointmentStatus}
        status_keys[AppointmentStatus.NO_SHOW.value] = "noShow"

        for group, count in await self.database.count_by(COLLECTION, ("status", "priority")):
            counts["total"] += count
            status_key = status_keys.get(group.get("status"))
            if status_key:
                counts[status_key] += count
            if group.get("priority") in {p.value for p in Priority}:
                counts[f"{group['priority']}Priority"] += count
        return counts
