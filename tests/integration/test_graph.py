"""분리된 객체 그래프를 세션에 붙이는 기능을 테스트합니다."""
from __future__ import annotations

import pytest
from sqlalchemy import inspect, select, text
from sqlalchemy.exc import NoInspectionAvailable

from fastuow.core import EntityState, GraphNode
from fastuow.uow import SqlAlchemyUnitOfWork
from tests import random_orderid
from tests.app.models import Invoice, InvoiceItem, Order, OrderLine

pytestmark = [pytest.mark.asyncio]


def all_as(state: EntityState):
    def callback(node: GraphNode) -> None:
        node.state = state

    return callback


async def disconnected_copy(add_order) -> Order:
    """DB에 저장된 주문과 같은 식별자를 가진 새 객체 그래프를 만듭니다."""
    saved = await add_order(random_orderid(), lines=[("sku-1", 1), ("sku-2", 2)])
    return Order(
        saved.id,
        saved.customer,
        [OrderLine(line.sku, line.qty, id=line.id) for line in saved.lines],
    )


async def load_order(session, orderid: str) -> Order:
    return (
        await session.execute(select(Order).where(Order.id == orderid))
    ).scalar_one()


async def test_visits_each_node_once_with_source(get_session):
    order = Order(random_orderid(), "kim", [OrderLine("a", 1), OrderLine("b", 2)])
    visited: list[GraphNode] = []

    def callback(node: GraphNode) -> EntityState:
        visited.append(node)
        return EntityState.ADDED

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        nodes = await uow.track_graph(order, callback)

    assert nodes == visited
    assert [it.entity for it in nodes] == [order, *order.lines]
    assert nodes[0].source is None
    assert all(it.source is order for it in nodes[1:])


async def test_added_graph_is_inserted(get_session):
    order = Order(random_orderid(), "kim", [OrderLine("a", 1), OrderLine("b", 2)])

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(order, all_as(EntityState.ADDED))
        assert await uow.commit() == 3

    async with get_session() as session:
        saved = await load_order(session, order.id)
        assert saved.customer == "kim"


async def test_unchanged_graph_is_attached_without_writes(get_session, add_order):
    order = await disconnected_copy(add_order)

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(order, all_as(EntityState.UNCHANGED))

        assert inspect(order).persistent
        assert all(inspect(line).persistent for line in order.lines)
        assert await uow.commit() == 0
        assert uow.last_result.is_ok


async def test_modified_root_is_updated(get_session, add_order):
    order = await disconnected_copy(add_order)
    order.customer = "lee"

    def callback(node: GraphNode) -> EntityState:
        if node.entity is order:
            return EntityState.MODIFIED
        return EntityState.UNCHANGED

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(order, callback)
        assert await uow.commit() == 1

    async with get_session() as session:
        saved = await load_order(session, order.id)
        assert saved.customer == "lee"


async def test_deleted_node_is_deleted(get_session, add_order):
    order = await disconnected_copy(add_order)
    removed = order.lines[1]

    def callback(node: GraphNode) -> EntityState:
        if node.entity is removed:
            return EntityState.DELETED
        return EntityState.UNCHANGED

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(order, callback)
        assert await uow.commit() == 1

    async with get_session() as session:
        lines = (await session.execute(select(OrderLine))).scalars().all()
        assert [line.id for line in lines] == [order.lines[0].id]



async def test_deleted_root_cascades_to_unloaded_children(get_session):
    invoice = Invoice(random_orderid(), [InvoiceItem("a", 1)])
    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        uow.session.add(invoice)
        assert await uow.commit() == 2

    # 품목이 로드되지 않은 객체를 지우면 cascade 를 위해 품목을 lazy load 합니다.
    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(Invoice(invoice.id), all_as(EntityState.DELETED))
        assert await uow.commit() == 2
        assert uow.last_result.is_ok, uow.last_result.exception

    async with get_session() as session:
        [[count]] = await session.execute(text("SELECT count(*) FROM invoice_item"))
        assert count == 0


async def test_detached_root_stops_traversal(get_session):
    order = Order(random_orderid(), "kim", [OrderLine("a", 1)])

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        nodes = await uow.track_graph(order, lambda node: None)

        assert [it.entity for it in nodes] == [order]
        assert order not in uow.session
        assert await uow.commit() == 0


async def test_detached_child_is_not_tracked(get_session):
    line = OrderLine("a", 1)
    order = Order(random_orderid(), "kim", [line])

    def callback(node: GraphNode) -> None:
        if node.entity is order:
            node.state = EntityState.ADDED

    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        await uow.track_graph(order, callback)

        assert order in uow.session
        assert line not in uow.session


async def test_unmapped_root_raises(get_session):
    async with SqlAlchemyUnitOfWork(get_session()) as uow:
        with pytest.raises(NoInspectionAvailable):
            await uow.track_graph(object(), all_as(EntityState.ADDED))
