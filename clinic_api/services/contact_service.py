import logging
from typing import Dict, Optional

from clinic_api.config import Settings
from clinic_api.errors import NotFoundError
from clinic_api.models.common import Priority
from clinic_api.models.contact import ContactCreate, ContactInDB, ContactStatus, ContactUpdate
from clinic_api.services.database_service import DatabaseService, ListQuery, Page
from clinic_api.services.email_service import EmailService
from clinic_api.services.email_templates import Scenario

logger = logging.getLogger(__name__)

COLLECTION = "contacts"
SEARCH_FIELDS = ("name", "email", "subject", "message")


class ContactService:
    """High-level service for contact form messages"""

    def __init__(self, database: DatabaseService, email_service: EmailService, settings: Settings):
        self.database = database
        self.email_service = email_service
        self.settings = settings

    async def create(self, data: ContactCreate) -> ContactInDB:
        """
        Store a contact message, then acknowledge it and alert the clinic

        The message is saved before any email goes out. Unless
        EMAIL_FAILURES_BEST_EFFORT is set, a delivery failure fails the request.
        """
        document = await self.database.insert(COLLECTION, data.to_document())
        contact = ContactInDB.from_document(document)
        logger.info(f"✉️ Contact message from {contact.email}: {contact.subject}")

        required = not self.settings.EMAIL_FAILURES_BEST_EFFORT
        payload = contact.notification_payload()
        await self.email_service.notify(Scenario.CONTACT_CONFIRMATION, payload, required=required)
        await self.email_service.notify(Scenario.CONTACT_ADMIN_ALERT, payload, required=required)
        return contact

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page:
        query = ListQuery(
            filters={"status": status, "priority": priority},
            search=search,
            search_fields=SEARCH_FIELDS,
        )
        result = await self.database.paginate(COLLECTION, query, page, limit)
        items = [ContactInDB.from_document(doc).to_public() for doc in result.items]
        return Page(items=items, pagination=result.pagination)

    async def get(self, contact_id: str) -> ContactInDB:
        document = await self.database.find_by_id(COLLECTION, contact_id)
        if document is None:
            raise NotFoundError("Contact not found")
        return ContactInDB.from_document(document)

    async def update(self, contact_id: str, data: ContactUpdate) -> ContactInDB:
        document = await self.database.update_by_id(COLLECTION, contact_id, data.to_changes())
        if document is None:
            raise NotFoundError("Contact not found")
        return ContactInDB.from_document(document)

    async def delete(self, contact_id: str) -> None:
        if not await self.database.delete_by_id(COLLECTION, contact_id):
            raise NotFoundError("Contact not found")
        logger.info(f"🗑️ Contact {contact_id} deleted")

    async def stats(self) -> Dict[str, int]:
        counts = {"total": 0}
        counts.update({status.value: 0 for status in ContactStatus})
        counts.update({f"{priority.value}Priority": 0 for priority in Priority})

        for group, count in await self.database.count_by(COLLECTION, ("status", "priority")):
            counts["total"] += count
            if group.get("status") in counts:
                counts[group["status"]] += count
            priority_key = f"{group.get('priority')}Priority"
            if priority_key in counts:
                counts[priority_key] += count
        return counts
