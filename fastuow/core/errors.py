class FastUOWError(Exception):
    """``FastUOW`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    ...


class FastUOWInitError(FastUOWError):
    """설정 로드 또는 DB 초기화 실패 에러."""

    ...
