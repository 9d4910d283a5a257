import logging
from typing import Any, Dict, Optional

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from clinic_api.errors import ConflictError, NotFoundError
from clinic_api.models.blog import BlogCreate, BlogInDB, BlogUpdate, publish_state
from clinic_api.models.common import utcnow
from clinic_api.services.database_service import DatabaseService, ListQuery, Page

logger = logging.getLogger(__name__)

COLLECTION = "blogs"
SLUG_TAKEN = "A blog with this slug already exists"


class BlogService:
    """High-level service for blog posts"""

    def __init__(self, database: DatabaseService):
        self.database = database

    async def _slug_taken(self, slug: str, exclude_id: Optional[Any] = None) -> bool:
        query: Dict[str, Any] = {"slug": slug}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self.database.find_one(COLLECTION, query) is not None

    async def create(self, data: BlogCreate) -> BlogInDB:
        if await self._slug_taken(data.slug):
            raise ConflictError(SLUG_TAKEN)

        document = data.to_document()
        published, _ = publish_state(None, document, utcnow())
        document.update(published)

        try:
            saved = await self.database.insert(COLLECTION, document)
        except DuplicateKeyError:
            # lost a race with another request using the same slug
            raise ConflictError(SLUG_TAKEN)

        logger.info(f"📰 Blog '{data.slug}' created ({document['status']})")
        return BlogInDB.from_document(saved)

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page:
        query = ListQuery(
            filters={"status": status, "category": category},
            search=search,
            text_search=True,
            sort=[("publishedAt", DESCENDING), ("createdAt", DESCENDING)],
        )
        result = await self.database.paginate(COLLECTION, query, page, limit)
        items = [BlogInDB.from_document(doc).to_public() for doc in result.items]
        return Page(items=items, pagination=result.pagination)

    async def get_by_slug(self, slug: str) -> BlogInDB:
        document = await self.database.find_one(COLLECTION, {"slug": slug.lower()})
        if document is None:
            raise NotFoundError("Blog not found")
        return BlogInDB.from_document(document)

    async def update(self, blog_id: str, data: BlogUpdate) -> BlogInDB:
        current = await self.database.find_by_id(COLLECTION, blog_id)
        if current is None:
            raise NotFoundError("Blog not found")

        changes = data.to_changes()
        slug = changes.get("slug")
        if slug and slug != current["slug"] and await self._slug_taken(slug, exclude_id=current["_id"]):
            raise ConflictError(SLUG_TAKEN)

        published, unset = publish_state(current.get("status"), {**current, **changes}, utcnow())
        changes.update(published)

        try:
            document = await self.database.update_by_id(COLLECTION, blog_id, changes, unset=unset)
        except DuplicateKeyError:
            raise ConflictError(SLUG_TAKEN)
        if document is None:
            raise NotFoundError("Blog not found")
        return BlogInDB.from_document(document)

    async def delete(self, blog_id: str) -> None:
        if not await self.database.delete_by_id(COLLECTION, blog_id):
            raise NotFoundError("Blog not found")
        logger.info(f"🗑️ Blog {blog_id} deleted")
