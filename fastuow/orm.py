"""ORM 어댑터 모듈.

SqlAlchemy 비동기 엔진과 세션 팩토리를 초기화합니다.
"""
from __future__ import annotations

from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional, Type

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import Pool

from fastuow.config import FastUOW, get_config
from fastuow.core._logging import set_log_level

SessionMaker = Callable[[], AsyncSession]
"""AsyncSession 팩토리 타입."""
ScopedSession = AbstractAsyncContextManager[AsyncSession]

_get_session: Optional[SessionMaker] = None  # pylint: disable=invalid-name


def get_sessionmaker() -> SessionMaker:
    """:func:`init_db` 로 초기화된 기본 세션 팩토리를 리턴합니다.

    초기화 되지 않았다면 현재 설정으로 엔진을 만듭니다. 이 경우 테이블은
    생성되지 않습니다.
    """
    global _get_session  # pylint: disable=global-statement

    if not _get_session:
        config = get_config()
        engine = init_engine(
            config.get_db_url(),
            connect_args=config.get_db_connect_args(),
            poolclass=config.get_db_poolclass(),
        )
        _get_session = async_sessionmaker(engine, expire_on_commit=False)

    return _get_session


def set_default_sessionmaker(get_session: Optional[SessionMaker]) -> None:
    """기본 세션 팩토리를 교체합니다. ``None`` 이면 초기화 합니다."""
    global _get_session  # pylint: disable=global-statement
    _get_session = get_session


def init_engine(
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    echo: bool = False,
) -> AsyncEngine:
    """비동기 ORM Engine을 초기화 합니다."""
    kwargs: dict[str, Any] = dict(connect_args=connect_args or {}, echo=echo)
    if poolclass:
        kwargs["poolclass"] = poolclass
    return create_async_engine(url, **kwargs)


async def init_db(
    config: Optional[FastUOW] = None,
    metadata: Optional[MetaData] = None,
    drop_all: bool = False,
    echo: bool = False,
) -> SessionMaker:
    """DB 엔진을 초기화 하고 기본 세션 팩토리로 등록합니다.

    Args:
        config: 설정. 생략하면 :func:`~fastuow.config.get_config` 를 사용합니다.
        metadata: 주어지면 테이블을 생성합니다.
        drop_all: 테이블 생성 전에 모든 테이블을 삭제할지 여부.
    """
    config = config or get_config()
    set_log_level(config.get_log_level())

    engine = init_engine(
        config.get_db_url(),
        connect_args=config.get_db_connect_args(),
        poolclass=config.get_db_poolclass(),
        echo=echo,
    )

    if metadata is not None:
        async with engine.begin() as conn:
            if drop_all:
                await conn.run_sync(metadata.drop_all)
            await conn.run_sync(metadata.create_all)

    get_session = async_sessionmaker(engine, expire_on_commit=False)
    set_default_sessionmaker(get_session)
    return get_session


def get_scoped_session(engine: AsyncEngine) -> Callable[[], ScopedSession]:
    """``async with...`` 문으로 자동 리소스가 반환되는 세션을 리턴합니다.

    Example: ::

        scoped_session = get_scoped_session(engine)
        async with scoped_session() as db:
            ...
    """
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def scoped_session() -> AsyncGenerator[AsyncSession, None]:
        session: Optional[AsyncSession] = None
        try:
            yield (session := session_factory())  # pylint: disable=superfluous-parens
        finally:
            if session:
                await session.close()

    return scoped_session
