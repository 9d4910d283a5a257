import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError
from pymongo.uri_parser import parse_uri
from starlette.concurrency import run_in_threadpool

from clinic_api.models.common import Pagination, utcnow

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "doctor-derma-clinic"

# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[List[Tuple[str, Any]], Dict[str, Any]]]] = {
    "contacts": [
        ([("email", ASCENDING)], {}),
        ([("status", ASCENDING)], {}),
        ([("priority", ASCENDING)], {}),
        ([("createdAt", DESCENDING)], {}),
    ],
    "appointments": [
        ([("email", ASCENDING)], {}),
        ([("status", ASCENDING)], {}),
        ([("preferredDate", ASCENDING), ("preferredSlot", ASCENDING)], {}),
        ([("confirmedDate", ASCENDING)], {}),
        ([("treatmentType", ASCENDING)], {}),
        ([("createdAt", DESCENDING)], {}),
    ],
    "blogs": [
        ([("slug", ASCENDING)], {"unique": True}),
        ([("status", ASCENDING), ("publishedAt", DESCENDING)], {}),
        ([("category", ASCENDING)], {}),
        ([("title", TEXT), ("excerpt", TEXT), ("content", TEXT)], {}),
    ],
    "subscribers": [
        ([("email", ASCENDING)], {"unique": True}),
        ([("createdAt", DESCENDING)], {}),
    ],
}


@dataclass
class ListQuery:
    """Filters, free-text search and ordering for one list endpoint"""
    filters: Dict[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    search_fields: Sequence[str] = ()
    text_search: bool = False
    sort: List[Tuple[str, int]] = field(default_factory=lambda: [("createdAt", DESCENDING)])

    def to_mongo(self) -> Dict[str, Any]:
        query = {key: value for key, value in self.filters.items() if value is not None}
        if self.search:
            if self.text_search:
                query["$text"] = {"$search": self.search}
            else:
                pattern = re.escape(self.search)
                query["$or"] = [
                    {name: {"$regex": pattern, "$options": "i"}} for name in self.search_fields
                ]
        return query


class Page(NamedTuple):
    items: List[Dict[str, Any]]
    pagination: Pagination


def to_object_id(document_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        return None


class DatabaseService:
    """Service layer for MongoDB operations"""

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: Optional[str] = None,
        client: Optional[MongoClient] = None,
    ):
        self._uri = uri
        self._client = client
        self._db_name = db_name or self._db_name_from_uri(uri)
        self._connected = False
        self.db = None

    @staticmethod
    def _db_name_from_uri(uri: Optional[str]) -> str:
        if not uri:
            return DEFAULT_DB_NAME
        return parse_uri(uri).get("database") or DEFAULT_DB_NAME

    def init(self) -> None:
        """Open the client, check it answers and make sure indexes exist (only once)"""
        if self._connected:
            logger.info("📊 Database already connected")
            return

        try:
            if self._client is None:
                self._client = MongoClient(self._uri, serverSelectionTimeoutMS=5000)
            self._client.admin.command("ping")
            self.db = self._client[self._db_name]
            self._ensure_indexes()
            self._connected = True
            logger.info(f"✅ MongoDB connected to database: {self._db_name}")
        except PyMongoError as e:
            logger.error(f"❌ MongoDB connection failed: {e}")
            raise

    def _ensure_indexes(self) -> None:
        for name, indexes in INDEXES.items():
            for keys, options in indexes:
                self.db[name].create_index(keys, **options)
        logger.info("📇 Database indexes ensured")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("📊 MongoDB connection closed")
        self._connected = False

    def collection(self, name: str):
        if self.db is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.db[name]

    def _health(self) -> Dict[str, Any]:
        self._client.admin.command("ping")
        return {
            "status": "connected",
            "connected": True,
            "collections": sorted(self.db.list_collection_names()),
        }

    async def health_check(self) -> Dict[str, Any]:
        if not self._connected:
            return {"status": "disconnected", "connected": False}
        try:
            return await run_in_threadpool(self._health)
        except PyMongoError as e:
            logger.error(f"❌ Database health check failed: {e}")
            return {"status": "error", "connected": False}

    # ==================== DOCUMENT OPERATIONS ====================
    # pymongo blocks, so every call below runs in the threadpool

    async def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document stamped with createdAt/updatedAt, return it with its _id"""
        now = utcnow()
        document = {**document, "createdAt": now, "updatedAt": now}
        result = await run_in_threadpool(self.collection(collection).insert_one, document)
        document["_id"] = result.inserted_id
        return document

    async def find_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Get document by ID; a malformed ID simply matches nothing"""
        object_id = to_object_id(document_id)
        if object_id is None:
            return None
        return await run_in_threadpool(self.collection(collection).find_one, {"_id": object_id})

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await run_in_threadpool(self.collection(collection).find_one, query)

    async def update_by_id(
        self,
        collection: str,
        document_id: str,
        changes: Dict[str, Any],
        unset: Iterable[str] = (),
    ) -> Optional[Dict[str, Any]]:
        """Apply a partial update and return the document after it"""
        object_id = to_object_id(document_id)
        if object_id is None:
            return None

        update: Dict[str, Any] = {"$set": {**changes, "updatedAt": utcnow()}}
        unset = [name for name in unset if name not in changes]
        if unset:
            update["$unset"] = {name: "" for name in unset}

        return await run_in_threadpool(
            self.collection(collection).find_one_and_update,
            {"_id": object_id},
            update,
            return_document=ReturnDocument.AFTER,
        )

    async def delete_by_id(self, collection: str, document_id: str) -> bool:
        object_id = to_object_id(document_id)
        if object_id is None:
            return False
        result = await run_in_threadpool(self.collection(collection).delete_one, {"_id": object_id})
        return result.deleted_count == 1

    def _fetch_page(self, collection: str, list_query: ListQuery, page: int, limit: int) -> Page:
        query = list_query.to_mongo()
        cursor = (
            self.collection(collection)
            .find(query)
            .sort(list_query.sort)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        items = list(cursor)
        total = self.collection(collection).count_documents(query)
        return Page(items=items, pagination=Pagination.build(page, limit, total))

    async def paginate(
        self,
        collection: str,
        list_query: ListQuery,
        page: int,
        limit: int,
    ) -> Page:
        """Run a filtered, sorted query and cut one page out of it"""
        return await run_in_threadpool(self._fetch_page, collection, list_query, page, limit)

    async def count_by(self, collection: str, fields: Sequence[str]) -> List[Tuple[Dict[str, Any], int]]:
        """
        Count documents grouped by the given fields in one aggregation pass

        Returns:
            List of (group values, count) pairs, e.g. ({"status": "new", "priority": "high"}, 3)
        """
        pipeline = [
            {
                "$group": {
                    "_id": {name: f"${name}" for name in fields},
                    "count": {"$sum": 1},
                }
            }
        ]

        def run() -> List[Tuple[Dict[str, Any], int]]:
            return [
                (row["_id"], row["count"])
                for row in self.collection(collection).aggregate(pipeline)
            ]

        return await run_in_threadpool(run)
