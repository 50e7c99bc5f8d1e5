"""
路由层公共依赖

数据库、配置与文件存储都从 app.state 读取，由 main.py 在启动时注入
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from classroom.core.config import AppConfig, get_app_config
from classroom.core.database import get_db
from classroom.gateway import PersistenceGateway
from classroom.services import ContentService, LessonOrderingService
from classroom.services.storage import BlobStorage, LocalBlobStorage


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    return config if config is not None else get_app_config()


def get_storage(request: Request) -> BlobStorage:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = LocalBlobStorage(get_config(request).uploads_dir)
        request.app.state.storage = storage
    return storage


def get_gateway(db: Session = Depends(get_db)) -> PersistenceGateway:
    return PersistenceGateway(db)


def get_ordering(
    gateway: PersistenceGateway = Depends(get_gateway),
    config: AppConfig = Depends(get_config),
) -> LessonOrderingService:
    return LessonOrderingService(gateway, atomic=config.order_swap_atomic)


def get_content_service(
    gateway: PersistenceGateway = Depends(get_gateway),
    storage: BlobStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
) -> ContentService:
    return ContentService(gateway, storage, config)
