"""분리된(disconnected) 객체 그래프를 세션에 붙이는 모듈.

그래프 탐색은 SqlAlchemy 의 ``save-update`` cascade 규칙을 따릅니다.
루트부터 너비 우선으로 방문하며, 콜백이 상태를 지정하지 않은 노드
(:attr:`EntityState.DETACHED`)의 하위 노드는 방문하지 않습니다.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Iterator

from sqlalchemy import inspect
from sqlalchemy.orm import Session, make_transient_to_detached
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.state import InstanceState

from fastuow.core import EntityState, GraphCallback, GraphNode
from fastuow.core._logging import get_logger

logger = get_logger("fastuow.graph")

_IDENTITY_STATES = (EntityState.UNCHANGED, EntityState.MODIFIED, EntityState.DELETED)


def _iter_children(state: InstanceState, visited: set[InstanceState]) -> Iterator[Any]:
    for prop in state.mapper.relationships:
        if "save-update" not in prop.cascade:
            continue
        for child, _, _, _ in prop.cascade_iterator(
            "save-update", state, state.dict, visited
        ):
            yield child


def visit_graph(root: Any, callback: GraphCallback) -> list[GraphNode]:
    """``root`` 부터 그래프를 방문하며 노드마다 ``callback`` 을 호출합니다.

    콜백은 ``node.state`` 를 지정하거나 :class:`EntityState` 를 리턴합니다.
    각 엔티티는 한 번만 방문합니다.
    """
    root_state = inspect(root)
    visited = {root_state}
    queue = deque([GraphNode(root)])
    nodes = list[GraphNode]()

    while queue:
        node = queue.popleft()
        result = callback(node)
        if isinstance(result, EntityState):
            node.state = result
        nodes.append(node)

        if node.state is EntityState.DETACHED:
            continue

        for child in _iter_children(inspect(node.entity), visited):
            queue.append(GraphNode(child, source=node.entity))

    return nodes


def attach(session: Session, nodes: list[GraphNode]) -> None:
    """방문한 노드의 상태를 세션에 반영합니다."""
    before = {id(it) for it in session}

    # 식별자가 있는 transient 객체는 add 되기 전에 detached 로 바꿔야
    # 부모의 cascade 로 인해 INSERT 대상이 되지 않습니다.
    for node in nodes:
        if node.state in _IDENTITY_STATES and inspect(node.entity).transient:
            make_transient_to_detached(node.entity)

    for node in nodes:
        entity = node.entity
        if node.state is EntityState.DETACHED:
            continue

        session.add(entity)

        if node.state is EntityState.MODIFIED:
            state = inspect(entity)
            mapper = state.mapper
            pk_keys = {mapper.get_property_by_column(col).key for col in mapper.primary_key}
            for attr in mapper.column_attrs:
                if attr.key in state.dict and attr.key not in pk_keys:
                    flag_modified(entity, attr.key)
        elif node.state is EntityState.DELETED:
            session.delete(entity)

    # cascade 로 딸려 들어온 DETACHED 노드는 다시 뺍니다.
    for node in nodes:
        if (
            node.state is EntityState.DETACHED
            and id(node.entity) not in before
            and node.entity in session
        ):
            session.expunge(node.entity)


def track_graph(session: Session, root: Any, callback: GraphCallback) -> list[GraphNode]:
    """분리된 객체 그래프를 세션에 붙이고 방문한 노드 목록을 리턴합니다.

    Example: ::

        def set_state(node: GraphNode):
            if node.entity.id is None:
                node.state = EntityState.ADDED
            else:
                node.state = EntityState.MODIFIED

        track_graph(session, order, set_state)
    """
    nodes = visit_graph(root, callback)
    attach(session, nodes)
    logger.debug(
        "track_graph: %d nodes attached from %r",
        sum(1 for it in nodes if it.state is not EntityState.DETACHED),
        root,
    )
    return nodes
