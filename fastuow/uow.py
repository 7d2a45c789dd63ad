"""UnitOfWork 패턴 모듈.

SqlAlchemy 비동기 세션을 이용한 기본 구현체를 제공합니다.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction
from sqlalchemy.orm import Session, SessionTransaction

from fastuow import graph
from fastuow.core import AbstractContextUnitOfWork, FastUOWError, GraphCallback, GraphNode
from fastuow.core._logging import get_logger
from fastuow.orm import SessionMaker, get_sessionmaker

logger = get_logger("fastuow.uow")


class SqlAlchemyUnitOfWork(AbstractContextUnitOfWork[AsyncSession]):
    """``SqlAlchemy`` ORM을 이용한 UnitOfWork 패턴 구현입니다.

    주어진 :class:`~sqlalchemy.ext.asyncio.AsyncSession` 을 독점적으로 소유하며
    :meth:`close` 가 호출되면 세션을 닫습니다.

    Example: ::

        async with SqlAlchemyUnitOfWork(get_session()) as uow:
            uow.session.add(order)
            await uow.commit()
            if not uow.last_result.is_ok:
                ...
    """

    def __init__(self, session: AsyncSession) -> None:
        if session is None:
            raise FastUOWError("session should be given!")

        super().__init__()
        self._session = session
        self._flushed: dict[Optional[SessionTransaction], int] = {}
        """마지막 커밋 이후 flush 된 엔티티 수. 키는 savepoint 이며 ``None`` 은 최상위 트랜잭션입니다."""
        self._released: Optional[tuple[SessionTransaction, Optional[SessionTransaction], int]] = None
        """마지막으로 끝난 savepoint 와 부모로 옮겨진 엔티티 수."""

        for name, listener in self._listeners():
            event.listen(session.sync_session, name, listener)

    @classmethod
    def from_sessionmaker(
        cls, get_session: Optional[SessionMaker] = None
    ) -> SqlAlchemyUnitOfWork:
        """세션 팩토리에서 새 세션을 만들어 UoW 를 초기화합니다.

        팩토리가 없으면 :func:`fastuow.orm.get_sessionmaker` 를 사용합니다.
        """
        return cls((get_session or get_sessionmaker())())

    def __repr__(self) -> str:
        return f"SqlAlchemyUnitOfWork[{self._session!r}]"

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def auto_detect_changes(self) -> bool:
        return self._session.sync_session.autoflush

    def set_auto_detect_changes(self, value: bool) -> None:
        """세션의 ``autoflush`` 를 켜거나 끕니다."""
        self._session.sync_session.autoflush = value

    async def begin_transaction(
        self, use_if_exists: bool = False
    ) -> AsyncSessionTransaction:
        """트랜잭션을 시작합니다.

        ``use_if_exists`` 가 거짓이면 진행중인 트랜잭션이 있어도 ``begin()`` 을
        호출하며, 이 때 SqlAlchemy 가 던지는
        :class:`~sqlalchemy.exc.InvalidRequestError` 는 그대로 전파됩니다.
        """
        transaction = self._session.get_transaction()
        if transaction is not None and use_if_exists:
            return transaction

        return await self._session.begin()

    async def track_graph(self, root: Any, callback: GraphCallback) -> list[GraphNode]:
        """분리된 객체 그래프를 세션에 붙입니다. :func:`fastuow.graph.track_graph` 참고.

        cascade 관계를 lazy load 할 수 있도록 세션의 greenlet 안에서 실행합니다.
        """
        return await self._session.run_sync(graph.track_graph, root, callback)

    async def _commit(self) -> int:
        """세션을 커밋하고 저장된 엔티티 수를 리턴합니다.

        커밋이 실패하면 세션을 롤백해 다시 사용할 수 있게 한 뒤 예외를 던집니다.
        """
        try:
            await self._session.commit()
        except Exception as e:
            try:
                await self._session.rollback()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Failed to rollback %r", self)
            raise e

        count = sum(self._flushed.values())
        self._flushed.clear()
        self._released = None
        logger.debug("%r committed: %d rows", self, count)
        return count

    async def _close(self) -> None:
        """세션을 close합니다."""
        sync_session = self._session.sync_session
        for name, listener in self._listeners():
            event.remove(sync_session, name, listener)
        await self._session.close()

    def _count_flushed(self, session: Session, flush_context: Any) -> None:
        # after_flush 시점에는 new/dirty/deleted 가 아직 flush 이전 상태입니다.
        modified = sum(
            1
            for it in session.dirty
            if session.is_modified(it, include_collections=False)
        )
        key = session.get_nested_transaction()
        self._flushed[key] = (
            self._flushed.get(key, 0) + len(session.new) + len(session.deleted) + modified
        )

    def _end_transaction(self, session: Session, transaction: SessionTransaction) -> None:
        # savepoint 가 끝나면 그 안에서 flush 된 수를 바깥 트랜잭션으로 옮깁니다.
        # 롤백이었다면 after_soft_rollback 에서 다시 뺍니다.
        if not transaction.nested:
            return

        parent = transaction.parent
        while parent is not None and not parent.nested:
            parent = parent.parent

        delta = self._flushed.pop(transaction, 0)
        self._flushed[parent] = self._flushed.get(parent, 0) + delta
        self._released = (transaction, parent, delta)

    def _soft_rollback(
        self, session: Session, previous_transaction: SessionTransaction
    ) -> None:
        if previous_transaction.nested:
            if self._released and self._released[0] is previous_transaction:
                _, parent, delta = self._released
                self._flushed[parent] = self._flushed.get(parent, 0) - delta
            self._released = None
        elif previous_transaction.parent is None:
            self._flushed.clear()
            self._released = None

    def _listeners(self) -> list[tuple[str, Callable[..., None]]]:
        return [
            ("after_flush", self._count_flushed),
            ("after_transaction_end", self._end_transaction),
            ("after_soft_rollback", self._soft_rollback),
        ]
