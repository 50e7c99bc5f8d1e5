"""
数据库配置
支持SQLite（开发）和PostgreSQL（生产）

数据库的生命周期由进程入口持有的 Database 对象管理，
通过 app.state.database 注入到请求依赖中，不使用模块级全局状态。
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import StorageError

logger = logging.getLogger(__name__)


class Database:
    """数据库生命周期对象：init() / is_ready() / session() / dispose()"""

    def __init__(self, database_url: str, engine_options: Optional[Dict[str, Any]] = None):
        self.database_url = database_url
        self._engine_options = engine_options or {}
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageError("数据库尚未初始化")
        return self._engine

    def init(self, create_tables: bool = True) -> "Database":
        """创建引擎与会话工厂，并按需建表（可重复调用）"""
        if self._engine is not None:
            return self

        options = dict(self._engine_options)
        if self.database_url.startswith("sqlite"):
            options.setdefault("connect_args", {"check_same_thread": False})
            self._ensure_sqlite_dir()

        self._engine = create_engine(self.database_url, **options)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

        if create_tables:
            # 导入模型以注册所有表
            from classroom.models import Base
            Base.metadata.create_all(bind=self._engine)

        logger.info(f"数据库已初始化: {self._engine.url.render_as_string(hide_password=True)}")
        return self

    def is_ready(self) -> bool:
        return self._engine is not None

    def session(self) -> Session:
        if self._session_factory is None:
            raise StorageError("数据库尚未初始化")
        return self._session_factory()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        获取带事务管理的会话
        成功时提交，异常时回滚

        Usage:
            with database.transaction() as db:
                db.add(obj)
        """
        db = self.session()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"数据库写入失败: {e}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        """关闭引擎及所有连接，进程退出时调用"""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def _ensure_sqlite_dir(self) -> None:
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return
        db_path = self.database_url[len(prefix):]
        if not db_path or db_path.startswith(":memory:"):
            return
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """数据库会话依赖注入"""
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
