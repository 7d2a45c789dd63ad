"""커밋 결과 모듈."""
from __future__ import annotations

from typing import Optional


class SaveChangesResult:
    """``commit()`` 연산의 결과를 담는 객체입니다.

    커밋 도중 발생한 예외는 다시 던져지지 않고 :attr:`exception` 에 기록됩니다.
    호출자는 예외 대신 :attr:`is_ok` 를 확인해야 합니다.

    Args:
        message: 생성과 동시에 추가할 메세지.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        self.exception: Optional[Exception] = None
        """마지막 커밋에서 발생한 예외. 성공했다면 ``None`` 입니다."""
        self._messages = list[str]()

        if message is not None:
            self.add_message(message)

    def __repr__(self) -> str:
        return (
            f"SaveChangesResult(is_ok={self.is_ok}, exception={self.exception!r}, "
            f"messages={len(self._messages)})"
        )

    @property
    def is_ok(self) -> bool:
        """마지막 커밋에서 예외가 발생하지 않았는지 여부."""
        return self.exception is None

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(self._messages)

    def add_message(self, message: str) -> None:
        """결과에 새 메세지를 추가합니다. 크기 제한은 없습니다."""
        self._messages.append(message)

    def reset(self) -> None:
        """기록된 예외를 지웁니다. 메세지는 유지됩니다."""
        self.exception = None
