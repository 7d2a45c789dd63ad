import logging

from uvicorn.logging import DefaultFormatter


def get_logger(name: str, log_level=logging.INFO):
    """``name`` 로거를 리턴합니다.

    핸들러는 최상위 패키지 로거(``fastuow``)에만 한 번 붙입니다.
    """
    logger = logging.getLogger(name)
    pkg_logger = logging.getLogger(name.split(".")[0])
    if not pkg_logger.handlers:
        pkg_logger.setLevel(log_level)
        ch = logging.StreamHandler()
        ch.setFormatter(DefaultFormatter(fmt="%(levelprefix)s %(name)s: %(message)s"))
        pkg_logger.addHandler(ch)

    return logger


def set_log_level(log_level: int, name: str = "fastuow") -> None:
    get_logger(name).setLevel(log_level)
