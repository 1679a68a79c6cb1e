"""Query shapes sent to Mongo by the repositories, checked against mocked Motor collections."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import DESCENDING

from smartreco.domain.models.interaction import InteractionType
from smartreco.domain.repositories.interaction_repo import InteractionRepo
from smartreco.domain.repositories.product_repo import ProductRepo
from smartreco.domain.repositories.user_repo import UserRepo

from fakes import T0, AsyncCursor, interaction


def db_with(col, name):
    return {name: col}


def aggregating(docs):
    col = MagicMock()
    col.aggregate = MagicMock(return_value=AsyncCursor(docs))
    return col


@pytest.mark.asyncio
async def test_top_products_groups_sorts_and_limits():
    col = aggregating([{"_id": "p2", "count": 5}, {"_id": "p1", "count": 3}])
    repo = InteractionRepo(db_with(col, "interactions"))

    rows = await repo.top_products(2)

    assert rows == [("p2", 5), ("p1", 3)]
    (pipeline,), _ = col.aggregate.call_args
    assert pipeline == [
        {"$group": {"_id": "$product_id", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$limit": 2},
    ]


@pytest.mark.asyncio
async def test_top_products_filters_exclusions_and_window():
    col = aggregating([])
    repo = InteractionRepo(db_with(col, "interactions"))
    since = T0 - timedelta(days=7)

    await repo.top_products(5, exclude={"p1"}, since=since)

    (pipeline,), _ = col.aggregate.call_args
    assert pipeline[0] == {"$match": {"product_id": {"$nin": ["p1"]}, "timestamp": {"$gte": since}}}


@pytest.mark.asyncio
async def test_top_products_zero_limit_skips_query():
    col = aggregating([])
    assert await InteractionRepo(db_with(col, "interactions")).top_products(0) == []
    col.aggregate.assert_not_called()


@pytest.mark.asyncio
async def test_find_by_user_filters_types_and_sorts_newest_first():
    cursor = AsyncCursor([
        {"user_id": "u1", "product_id": "p1", "interaction_type": "like", "timestamp": T0},
    ])
    cursor.sort = MagicMock(return_value=cursor)
    col = MagicMock()
    col.find = MagicMock(return_value=cursor)
    repo = InteractionRepo(db_with(col, "interactions"))

    found = await repo.find_by_user("u1", types=[InteractionType.LIKE, InteractionType.PURCHASE], newest_first=True)

    assert found[0].interaction_type is InteractionType.LIKE
    query, _ = col.find.call_args.args
    assert query == {"user_id": "u1", "interaction_type": {"$in": ["like", "purchase"]}}
    cursor.sort.assert_called_once_with("timestamp", DESCENDING)


@pytest.mark.asyncio
async def test_product_sets_by_user_uses_one_aggregation():
    col = aggregating([
        {"_id": "u2", "products": ["p1", "p2"]},
        {"_id": "u3", "products": []},
    ])
    repo = InteractionRepo(db_with(col, "interactions"))

    sets = await repo.product_sets_by_user(["u2", "u3"])

    assert sets == {"u2": {"p1", "p2"}}
    assert col.aggregate.call_count == 1
    assert await repo.product_sets_by_user([]) == {}


@pytest.mark.asyncio
async def test_insert_and_count():
    col = MagicMock()
    col.insert_one = AsyncMock()
    col.count_documents = AsyncMock(return_value=4)
    repo = InteractionRepo(db_with(col, "interactions"))

    await repo.insert(interaction("u1", "p1", "purchase"))

    (doc,), _ = col.insert_one.call_args
    assert doc["interaction_type"] == "purchase"
    assert doc["timestamp"] == T0
    assert await repo.count_by_user("u1") == 4
    col.count_documents.assert_awaited_once_with({"user_id": "u1"})


@pytest.mark.asyncio
async def test_products_are_hydrated_in_requested_order():
    col = MagicMock()
    col.find = MagicMock(return_value=AsyncCursor([
        {"product_id": "p1", "name": "One"},
        {"product_id": "p3", "name": "Three"},
    ]))
    repo = ProductRepo(db_with(col, "products"))

    products = await repo.get_many_by_product_ids(["p3", "gone", "p1"])

    assert [p.product_id for p in products] == ["p3", "p1"]
    assert await repo.get_many_by_product_ids([]) == []
    assert col.find.call_count == 1


@pytest.mark.asyncio
async def test_get_by_product_id_missing():
    col = MagicMock()
    col.find_one = AsyncMock(return_value=None)
    assert await ProductRepo(db_with(col, "products")).get_by_product_id("nope") is None


@pytest.mark.asyncio
async def test_list_user_ids_excludes_target():
    col = MagicMock()
    col.find = MagicMock(return_value=AsyncCursor([{"user_id": "u2"}, {"user_id": "u3"}, {}]))
    repo = UserRepo(db_with(col, "users"))

    assert await repo.list_user_ids(exclude="u1") == ["u2", "u3"]
    query, _ = col.find.call_args.args
    assert query == {"user_id": {"$ne": "u1"}}


@pytest.mark.asyncio
async def test_page_by_user_sorts_skips_and_counts():
    cursor = AsyncCursor([])
    cursor.sort = MagicMock(return_value=cursor)
    cursor.skip = MagicMock(return_value=cursor)
    cursor.limit = MagicMock(return_value=cursor)
    col = MagicMock()
    col.find = MagicMock(return_value=cursor)
    col.count_documents = AsyncMock(return_value=42)
    repo = InteractionRepo(db_with(col, "interactions"))

    items, total = await repo.page_by_user("u1", skip=20, limit=20)

    assert (items, total) == ([], 42)
    cursor.sort.assert_called_once_with("timestamp", DESCENDING)
    cursor.skip.assert_called_once_with(20)
    cursor.limit.assert_called_once_with(20)
    col.count_documents.assert_awaited_once_with({"user_id": "u1"})


@pytest.mark.asyncio
async def test_counts_by_type_groups_on_type():
    col = aggregating([{"_id": "view", "count": 7}, {"_id": "purchase", "count": 2}])
    repo = InteractionRepo(db_with(col, "interactions"))

    assert await repo.counts_by_type() == [("view", 7), ("purchase", 2)]
    (pipeline,), _ = col.aggregate.call_args
    assert pipeline[0] == {"$group": {"_id": "$interaction_type", "count": {"$sum": 1}}}


@pytest.mark.asyncio
async def test_top_users_groups_on_user():
    col = aggregating([{"_id": "u1", "count": 9}])
    repo = InteractionRepo(db_with(col, "interactions"))

    assert await repo.top_users(10) == [("u1", 9)]
    (pipeline,), _ = col.aggregate.call_args
    assert pipeline[-1] == {"$limit": 10}


@pytest.mark.asyncio
async def test_get_many_by_user_ids():
    col = MagicMock()
    col.find = MagicMock(return_value=AsyncCursor([{"user_id": "u1", "name": "Ada"}]))
    repo = UserRepo(db_with(col, "users"))

    users = await repo.get_many_by_user_ids(["u1", "u2"])

    assert users["u1"].name == "Ada"
    assert "u2" not in users
    assert await repo.get_many_by_user_ids([]) == {}
