import logging
from typing import Optional, Tuple

from pymongo.errors import DuplicateKeyError

from clinic_api.models.subscriber import SubscriberCreate, SubscriberInDB
from clinic_api.services.database_service import DatabaseService, ListQuery, Page

logger = logging.getLogger(__name__)

COLLECTION = "subscribers"


class SubscriberService:
    """High-level service for newsletter subscribers"""

    def __init__(self, database: DatabaseService):
        self.database = database

    async def subscribe(self, data: SubscriberCreate) -> Tuple[SubscriberInDB, bool]:
        """
        Subscribe an email address (idempotent)

        Returns:
            The subscriber and whether it was newly created
        """
        existing = await self.database.find_one(COLLECTION, {"email": data.email})
        if existing is not None:
            return SubscriberInDB.from_document(existing), False

        try:
            document = await self.database.insert(COLLECTION, data.to_document())
        except DuplicateKeyError:
            existing = await self.database.find_one(COLLECTION, {"email": data.email})
            return SubscriberInDB.from_document(existing), False

        logger.info(f"📬 New subscriber: {data.email}")
        return SubscriberInDB.from_document(document), True

    async def list(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Page:
        query = ListQuery(search=search, search_fields=("email",))
        result = await self.database.paginate(COLLECTION, query, page, limit)
        items = [SubscriberInDB.from_document(doc).to_public() for doc in result.items]
        return Page(items=items, pagination=result.pagination)
