"""FastAPI 앱에서 UnitOfWork 를 사용하기 위한 헬퍼 모듈."""
from __future__ import annotations

from typing import Any, AsyncGenerator, Callable, Optional

from fastuow.core import SaveChangesResult
from fastuow.orm import SessionMaker
from fastuow.uow import SqlAlchemyUnitOfWork

UowDependency = Callable[[], AsyncGenerator[SqlAlchemyUnitOfWork, None]]


def uow_provider(get_session: Optional[SessionMaker] = None) -> UowDependency:
    """요청마다 새 :class:`SqlAlchemyUnitOfWork` 를 주입하는 의존성을 리턴합니다.

    UoW 는 요청 처리가 끝나면 닫힙니다.

    Example: ::

        get_uow = uow_provider()

        @app.post("/orders")
        async def add_order(uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
            ...
    """

    async def get_uow() -> AsyncGenerator[SqlAlchemyUnitOfWork, None]:
        uow = SqlAlchemyUnitOfWork.from_sessionmaker(get_session)
        async with uow:
            yield uow

    return get_uow


def result_as_dict(result: SaveChangesResult) -> dict[str, Any]:
    """커밋 결과를 JSON 응답으로 쓸 수 있는 dict 로 바꿉니다."""
    return {
        "ok": result.is_ok,
        "error": repr(result.exception) if result.exception else None,
        "messages": list(result.messages),
    }
