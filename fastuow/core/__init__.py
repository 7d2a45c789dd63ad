"""UnitOfWork 패턴 모듈.

UoW 는 하나의 ORM 세션을 소유하며, 세션에 쌓인 변경을 한 번에 커밋합니다.

- 커밋은 예외를 던지지 않습니다. 결과는 :class:`SaveChangesResult` 로 확인합니다.
- 여러 UoW 를 순서대로 커밋하고 저장된 엔티티 수를 합산할 수 있습니다.
- 세션은 ``async with`` 블록이 끝날 때 정확히 한 번 반환됩니다.
"""
from .errors import FastUOWError, FastUOWInitError  # noqa
from .models import (  # noqa
    AbstractContextUnitOfWork,
    AbstractUnitOfWork,
    EntityState,
    GraphCallback,
    GraphNode,
)
from .result import SaveChangesResult  # noqa
