"""FastUOW - SqlAlchemy 비동기 세션을 위한 UnitOfWork 패턴 구현."""
from fastuow.config import FastUOW, get_config, set_config  # noqa
from fastuow.core import (  # noqa
    AbstractContextUnitOfWork,
    AbstractUnitOfWork,
    EntityState,
    FastUOWError,
    FastUOWInitError,
    GraphNode,
    SaveChangesResult,
)
from fastuow.uow import SqlAlchemyUnitOfWork  # noqa
