"""
数据库生命周期与配置测试
"""
import pytest

from sqlalchemy.pool import StaticPool

from classroom.core.config import get_app_config, normalize_database_url
from classroom.core.database import Database
from classroom.core.errors import StorageError
from classroom.gateway import PersistenceGateway


class TestDatabaseLifecycle:

    def test_not_ready_before_init(self):
        database = Database("sqlite://")

        assert not database.is_ready()
        with pytest.raises(StorageError):
            database.session()

    def test_init_and_dispose(self):
        database = Database("sqlite://", {"poolclass": StaticPool}).init()
        assert database.is_ready()

        database.dispose()
        assert not database.is_ready()

    def test_sqlite_file_directory_created(self, tmp_path):
        db_path = tmp_path / "nested" / "classroom.db"
        database = Database(f"sqlite:///{db_path}").init()

        assert db_path.parent.exists()
        database.dispose()

    def test_transaction_commits(self, database):
        with database.transaction() as db:
            PersistenceGateway(db).insert_user("Carol", "carol@example.com")

        with database.transaction() as db:
            assert [u.name for u in PersistenceGateway(db).list_users()] == ["Carol"]

    def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.transaction() as db:
                PersistenceGateway(db).insert_user("Dave", "dave@example.com")
                raise RuntimeError("boom")

        with database.transaction() as db:
            assert PersistenceGateway(db).list_users() == []

    def test_duplicate_email_is_storage_error(self, gateway):
        gateway.insert_user("Eve", "eve@example.com")
        gateway.commit()

        with pytest.raises(StorageError):
            gateway.insert_user("Eve again", "eve@example.com")


class TestConfig:

    @pytest.mark.parametrize("raw,expected", [
        ("postgres://u:p@host/db", "postgresql://u:p@host/db"),
        ("DATABASE_URL = sqlite:///./x.db", "sqlite:///./x.db"),
        ("  sqlite://  ", "sqlite://"),
    ])
    def test_normalize_database_url(self, raw, expected):
        assert normalize_database_url(raw) == expected

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("ORDER_SWAP_ATOMIC", "false")
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")

        config = get_app_config()

        assert config.jwt_secret == "s3cret"
        assert config.order_swap_atomic is False
        assert config.max_upload_bytes == 2048
        assert config.allowed_origins == ["https://a.example", "https://b.example"]

    def test_invalid_int_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("JWT_EXPIRE_DAYS", "soon")
        assert get_app_config().jwt_expire_days == 7
