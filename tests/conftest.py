# pylint: disable=redefined-outer-name
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from fastuow.config import FastUOW, set_config
from fastuow.orm import SessionMaker, init_db, set_default_sessionmaker
from fastuow.uow import SqlAlchemyUnitOfWork
from tests.app.models import Order, OrderLine
from tests.app.orm import start_mappers

AddOrderFunc = Callable[..., Awaitable[Order]]
""":func:`add_order` 픽스처 함수 타입."""


@pytest.fixture
def config(tmp_path: Path) -> FastUOW:
    """테스트마다 새 SQLite 파일 DB를 쓰는 설정을 리턴합니다."""
    return FastUOW("test", db_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")


@pytest_asyncio.fixture
async def get_session(config: FastUOW) -> AsyncGenerator[SessionMaker, None]:
    """테이블이 생성된 DB의 세션 팩토리를 리턴합니다.

    :func:`fastuow.orm.init_db` 가 등록한 기본 팩토리는 테스트가 끝나면 초기화 됩니다.
    """
    set_config(config)
    get_session = await init_db(config, metadata=start_mappers())

    yield get_session

    await get_session.kw["bind"].dispose()
    set_default_sessionmaker(None)
    set_config(None)


@pytest.fixture
def add_order(get_session: SessionMaker) -> AddOrderFunc:
    """DB에 주문을 미리 저장하는 함수를 리턴합니다."""

    async def wrapper(orderid: str, customer: str = "kim", lines=()) -> Order:
        order = Order(orderid, customer, [OrderLine(sku, qty) for sku, qty in lines])
        async with SqlAlchemyUnitOfWork(get_session()) as uow:
            uow.session.add(order)
            await uow.commit()
            assert uow.last_result.is_ok, uow.last_result.exception
        return order

    return wrapper
