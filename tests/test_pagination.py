import asyncio

import mongomock
import pytest

from clinic_api.models.common import Pagination
from clinic_api.services.database_service import DatabaseService, ListQuery


@pytest.mark.parametrize("page,limit,total,expected", [
    (1, 10, 0, dict(total_pages=0, has_next_page=False, has_prev_page=False)),
    (1, 10, 10, dict(total_pages=1, has_next_page=False, has_prev_page=False)),
    (1, 10, 11, dict(total_pages=2, has_next_page=True, has_prev_page=False)),
    (2, 5, 3, dict(total_pages=1, has_next_page=False, has_prev_page=True)),
    (3, 25, 100, dict(total_pages=4, has_next_page=True, has_prev_page=True)),
])
def test_pagination_metadata(page, limit, total, expected):
    pagination = Pagination.build(page, limit, total)

    assert pagination.current_page == page
    assert pagination.items_per_page == limit
    assert pagination.total_items == total
    for name, value in expected.items():
        assert getattr(pagination, name) == value


def test_pagination_serializes_camel_case():
    assert Pagination.build(1, 10, 11).model_dump(by_alias=True) == {
        "currentPage": 1,
        "totalPages": 2,
        "totalItems": 11,
        "itemsPerPage": 10,
        "hasNextPage": True,
        "hasPrevPage": False,
    }


def test_list_query_builds_escaped_case_insensitive_search():
    query = ListQuery(
        filters={"status": "new", "priority": None},
        search="a+b",
        search_fields=("name", "email"),
    )

    assert query.to_mongo() == {
        "status": "new",
        "$or": [
            {"name": {"$regex": r"a\+b", "$options": "i"}},
            {"email": {"$regex": r"a\+b", "$options": "i"}},
        ],
    }


def test_list_query_text_search():
    query = ListQuery(search="acne", text_search=True)

    assert query.to_mongo() == {"$text": {"$search": "acne"}}


@pytest.fixture
def store():
    database = DatabaseService(client=mongomock.MongoClient(), db_name="pagination_test")
    database.init()
    yield database
    database.close()


def test_paginate_beyond_last_page(store):
    for i in range(3):
        store.collection("contacts").insert_one({"name": f"Contact {i}", "status": "archived"})

    page = asyncio.run(store.paginate("contacts", ListQuery(sort=[("name", 1)]), page=2, limit=5))

    assert page.items == []
    assert page.pagination.total_items == 3
    assert page.pagination.total_pages == 1
    assert page.pagination.has_prev_page is True
    assert page.pagination.has_next_page is False


def test_paginate_slices_in_sort_order(store):
    for i in range(5):
        store.collection("contacts").insert_one({"name": f"Contact {i}"})

    page = asyncio.run(store.paginate("contacts", ListQuery(sort=[("name", 1)]), page=2, limit=2))

    assert [item["name"] for item in page.items] == ["Contact 2", "Contact 3"]
    assert page.pagination.total_pages == 3


def test_find_by_malformed_id_is_none(store):
    assert asyncio.run(store.find_by_id("contacts", "not-an-object-id")) is None


def test_health_check(store):
    store.collection("blogs").insert_one({"slug": "hello"})

    health = asyncio.run(store.health_check())

    assert health["status"] == "connected"
    assert "blogs" in health["collections"]


def test_insert_returns_timestamps_as_stored(store):
    document = asyncio.run(store.insert("contacts", {"name": "Stamped"}))

    stored = asyncio.run(store.find_by_id("contacts", str(document["_id"])))

    assert document["createdAt"] == stored["createdAt"]
    assert document["updatedAt"] == stored["updatedAt"]
    assert document["createdAt"].microsecond % 1000 == 0


def test_health_check_before_init():
    database = DatabaseService(client=mongomock.MongoClient(), db_name="pagination_test")

    assert asyncio.run(database.health_check()) == {"status": "disconnected", "connected": False}
