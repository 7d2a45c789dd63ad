from __future__ import annotations

import abc
import enum
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from fastuow.core._logging import get_logger
from fastuow.core.result import SaveChangesResult

logger = get_logger("fastuow.core")

S = TypeVar("S")
"""UnitOfWork 가 감싸는 세션(컨텍스트) 타입."""


class EntityState(enum.Enum):
    """그래프 노드를 세션에 붙일 때 적용할 영속 상태."""

    DETACHED = "detached"
    """세션에서 추적하지 않습니다. 콜백이 상태를 지정하지 않으면 이 값입니다."""
    UNCHANGED = "unchanged"
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(eq=False)
class GraphNode:
    """:meth:`AbstractUnitOfWork.track_graph` 콜백에 전달되는 노드.

    콜백은 ``state`` 를 지정해 엔티티의 영속 상태를 결정합니다.
    """

    entity: Any
    source: Optional[Any] = None
    """이 노드에 도달한 부모 엔티티. 루트 노드는 ``None`` 입니다."""
    state: EntityState = EntityState.DETACHED


GraphCallback = Callable[[GraphNode], Any]


class AbstractUnitOfWork(AbstractAsyncContextManager["AbstractUnitOfWork"]):
    """UnitOfWork 패턴의 추상 인터페이스입니다.

    UnitOfWork(UoW)는 하나의 세션을 독점적으로 소유하며, ``async with`` 블록을
    빠져나가거나 :meth:`close` 가 호출될 때 세션을 정확히 한 번 반환합니다.

    :meth:`commit` 은 예외를 던지지 않습니다. 실패는 :attr:`last_result` 에
    기록되고 ``0`` 이 리턴됩니다.
    """

    def __init__(self) -> None:
        self._last_result = SaveChangesResult()
        self._closed = False

    async def __aenter__(self) -> AbstractUnitOfWork:
        """``async with`` 블록에 진입했을때 실행되는 메소드입니다."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """``async with`` 블록에서 빠져나갈 때 세션을 반환합니다."""
        await self.close()

    @property
    def last_result(self) -> SaveChangesResult:
        """마지막 커밋 결과. ``None`` 이 되는 일은 없습니다."""
        return self._last_result

    @property
    def closed(self) -> bool:
        return self._closed

    async def commit(self) -> int:
        """추적중인 모든 변경을 저장하고 저장된 엔티티 수를 리턴합니다.

        실패하면 예외를 :attr:`last_result` 에 기록하고 ``0`` 을 리턴합니다.
        이전 커밋의 예외는 매 시도마다 지워집니다.
        """
        self._last_result.reset()
        try:
            return await self._commit()
        except Exception as e:  # pylint: disable=broad-except
            self._last_result.exception = e
            logger.exception("Failed to commit %r", self)
            return 0

    async def close(self) -> None:
        """세션을 반환합니다. 두 번째 호출부터는 아무 일도 하지 않습니다."""
        if self._closed:
            return
        self._closed = True
        await self._close()

    @abc.abstractmethod
    async def _commit(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    async def _close(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def begin_transaction(self, use_if_exists: bool = False) -> Any:
        """트랜잭션을 시작합니다.

        이미 진행중인 트랜잭션이 있고 ``use_if_exists`` 가 참이면 그 트랜잭션을
        그대로 리턴합니다.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def set_auto_detect_changes(self, value: bool) -> None:
        """세션의 자동 변경 감지를 켜거나 끕니다."""
        raise NotImplementedError

    @abc.abstractmethod
    async def track_graph(self, root: Any, callback: GraphCallback) -> list[GraphNode]:
        """분리된(disconnected) 객체 그래프를 세션에 붙입니다."""
        raise NotImplementedError


class AbstractContextUnitOfWork(AbstractUnitOfWork, Generic[S]):
    """세션 타입 ``S`` 를 노출하는 UnitOfWork 인터페이스입니다."""

    @property
    @abc.abstractmethod
    def session(self) -> S:
        raise NotImplementedError

    async def commit_all(self, *unit_of_works: AbstractUnitOfWork) -> int:
        """주어진 UoW 들을 순서대로 커밋한 뒤 마지막으로 자신을 커밋합니다.

        각 UoW 의 커밋 결과(``is_ok``)는 확인하지 않으며, 중간에 실패한 UoW 가
        있어도 나머지는 계속 커밋합니다. 여러 UoW 사이의 원자성은 보장하지
        않습니다 (2PC 가 아닙니다).

        Returns:
            모든 커밋에서 저장된 엔티티 수의 합계.
        """
        count = 0
        for uow in unit_of_works:
            count += await uow.commit()

        count += await self.commit()

        failed = sum(1 for it in (*unit_of_works, self) if not it.last_result.is_ok)
        logger.debug(
            "commit_all: %d unit of works, %d rows, %d failed",
            len(unit_of_works) + 1,
            count,
            failed,
        )
        return count
