"""기본 환경 설정."""

from __future__ import annotations

import importlib
import logging
import sys
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Type, cast

from sqlalchemy.engine import make_url
from sqlalchemy.pool import Pool, StaticPool

from fastuow.core.errors import FastUOWInitError


@dataclass
class FastUOWSetupConfig:
    name: str
    title: Optional[str] = None
    module_name: Optional[str] = None
    db_url: Optional[str] = None
    log_level: Optional[str] = None


def load_setupcfg(path: Path) -> Optional[FastUOWSetupConfig]:
    if (path / "setup.cfg").exists():
        # 주어진 경로에 "setup.cfg" 파일이 있다면 [fastuow] 섹션에서
        # name, module_name 등의 정보를 읽습니다.
        config = ConfigParser()
        config.read(path / "setup.cfg")
        if "fastuow" in config:
            try:
                return FastUOWSetupConfig(**config["fastuow"])
            except TypeError as e:
                raise FastUOWInitError(f"invalid [fastuow] section: {e}") from e
    return None


@dataclass
class FastUOW:
    """FastUOW 설정."""

    name: str
    title: Optional[str] = None
    db_url: Optional[str] = None
    """``setup.cfg`` 에서 읽은 DB URL. 없으면 :meth:`get_db_url` 기본값을 씁니다."""
    log_level: str = "INFO"
    is_implicit_name: bool = True
    """setup.cfg 없이 암시적으로 부여된 이름인지 여부."""

    @staticmethod
    def load_from_config(path=Path(".")) -> FastUOW:
        """``setup.cfg`` 와 ``<module>/config.py`` 를 읽어 설정을 로드한다.

        ``config.py`` 에 ``Config`` 클래스가 있다면 그 클래스로 설정을 만듭니다.
        """
        cfg = load_setupcfg(path)
        name = path.absolute().name
        module_name = name
        kwargs: dict[str, Any] = dict(name=name, title=name)

        if cfg:
            module_name = cfg.module_name or cfg.name
            kwargs.update(
                name=cfg.name,
                title=cfg.title or cfg.name,
                db_url=cfg.db_url,
                is_implicit_name=False,
            )
            if cfg.log_level:
                kwargs["log_level"] = cfg.log_level.upper()

        module_path = path / Path(module_name.replace(".", "/"))
        if (module_path / "config.py").exists():
            abs_path = str(path.absolute())
            if abs_path not in sys.path:
                sys.path.insert(0, abs_path)

            conf_module = importlib.import_module(f"{module_name}.config")
            config = cast(Type[FastUOW], getattr(conf_module, "Config", FastUOW))
            # config.py 파일이 발견되면 이 설정을 로드합니다.
            return config(**kwargs)

        return FastUOW(**kwargs)

    def get_db_url(self) -> str:
        """SqlAlchemy 에서 사용 가능한 형식의 비동기 DB URL을 리턴합니다.

        다음처럼 OS 환경변수를 이용할 수도 있습니다.

            db_host = os.environ.get("DB_HOST", "localhost")
            db_user = os.environ.get("DB_USER", "postgres")
            db_pass = os.environ.get("DB_PASS", "password")
            return f"postgresql+asyncpg://{db_user}:{db_pass}@{db_host}/{db_user}"
        """
        return self.db_url or "sqlite+aiosqlite://"

    def get_db_connect_args(self) -> dict[str, Any]:
        """Get db connection arguments for SQLAlchemy's engine creation.

        Example:
            For SQLite dbs, it could be: ::

                {'check_same_thread': False}
        """
        return {}

    def get_db_poolclass(self) -> Optional[Type[Pool]]:
        """Get db poolclass arguemnt for SQLAlchemy's engine creation.

        Returns:
            A pool class. In-memory SQLite needs :class:`StaticPool` so that
            every session shares one connection.
        """
        url = make_url(self.get_db_url())
        if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
            return StaticPool
        return None

    def get_log_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            raise FastUOWInitError(f"unknown log level: {self.log_level}")
        return level


_config: Optional[FastUOW] = None


def get_config() -> FastUOW:
    """현재 설정을 리턴합니다. 설정이 없다면 현재 경로에서 로드합니다."""
    global _config  # pylint: disable=global-statement,invalid-name

    if not _config:
        _config = FastUOW.load_from_config()
    return _config


def set_config(config: Optional[FastUOW]) -> None:
    global _config  # pylint: disable=global-statement,invalid-name
    _config = config
