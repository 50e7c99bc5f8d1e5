"""
Pytest 配置和通用 Fixtures

提供内存 SQLite 数据库、临时目录文件存储、测试用户与令牌、
以及注入了上述依赖的 FastAPI TestClient
"""
import pytest
from typing import Callable, List, Tuple

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from classroom.core.config import AppConfig
from classroom.core.database import Database
from classroom.core.security import create_access_token
from classroom.domain import Course, Lesson, User
from classroom.gateway import PersistenceGateway
from classroom.services import ContentService, LocalBlobStorage


# ==================== 数据库 ====================

@pytest.fixture
def database():
    """内存 SQLite，所有会话共享同一个连接"""
    db = Database("sqlite://", {"poolclass": StaticPool}).init()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def gateway(db_session) -> PersistenceGateway:
    return PersistenceGateway(db_session)


# ==================== 配置与存储 ====================

@pytest.fixture
def uploads_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def config(uploads_dir) -> AppConfig:
    return AppConfig(
        database_url="sqlite://",
        jwt_secret="test-secret",
        uploads_dir=str(uploads_dir),
        max_upload_bytes=1024,
    )


@pytest.fixture
def storage(uploads_dir) -> LocalBlobStorage:
    return LocalBlobStorage(str(uploads_dir))


@pytest.fixture
def content_service(gateway, storage, config) -> ContentService:
    return ContentService(gateway, storage, config)


# ==================== 用户 ====================

@pytest.fixture
def admin_user(gateway) -> User:
    user = gateway.insert_user("Alice Admin", "alice@example.com", is_admin=True)
    gateway.commit()
    return user


@pytest.fixture
def learner_user(gateway) -> User:
    user = gateway.insert_user("Bob Learner", "bob@example.com")
    gateway.commit()
    return user


@pytest.fixture
def admin_headers(admin_user, config):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id, config)}"}


@pytest.fixture
def learner_headers(learner_user, config):
    return {"Authorization": f"Bearer {create_access_token(learner_user.id, config)}"}


# ==================== 课程数据 ====================

@pytest.fixture
def make_course(content_service) -> Callable[..., Tuple[Course, List[Lesson]]]:
    """创建一门课程并按顺序添加指定数量的课时（order 为 1..n）"""

    def _make(title: str = "Python 入门", lesson_count: int = 3, sections: List[str] = None):
        course = content_service.create_course(title)
        lessons = []
        for i in range(lesson_count):
            section = sections[i] if sections else None
            lessons.append(content_service.create_lesson(course.id, f"Lesson {i + 1}", section=section))
        return course, lessons

    return _make


@pytest.fixture
def seeded_course(make_course):
    return make_course()


# ==================== HTTP ====================

@pytest.fixture
def client(database, config, storage):
    """注入测试数据库、配置和存储的 TestClient"""
    from main import app

    previous = {
        name: getattr(app.state, name, None) for name in ("database", "config", "storage")
    }
    app.state.database = database
    app.state.config = config
    app.state.storage = storage

    with TestClient(app) as test_client:
        yield test_client

    for name, value in previous.items():
        setattr(app.state, name, value)
