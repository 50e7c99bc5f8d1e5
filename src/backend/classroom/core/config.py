"""
应用配置管理模块

统一管理数据库、认证、上传与排序策略的配置。
配置优先级：环境变量 > 默认值
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List

from .paths import UPLOADS_DIR

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./data/classroom.db"
DEFAULT_JWT_SECRET = "classroom-dev-secret-change-in-production"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB


@dataclass
class AppConfig:
    """
    应用配置

    Attributes:
        database_url: SQLAlchemy 数据库连接串
        jwt_secret: Bearer Token 签名密钥
        jwt_algorithm: 签名算法
        jwt_expire_days: 令牌有效期（天）
        uploads_dir: 本地文件存储目录
        max_upload_bytes: 单个上传文件大小上限
        order_swap_atomic: 课时交换排序是否在单个事务内完成
        allowed_origins: CORS 允许的源
        dev_mode: 开发模式
    """
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    uploads_dir: str = str(UPLOADS_DIR)
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    order_swap_atomic: bool = True
    allowed_origins: List[str] = field(default_factory=list)
    dev_mode: bool = False


def normalize_database_url(raw_url: str) -> str:
    """
    清理数据库连接串

    - 去掉误粘贴的 "DATABASE_URL = " 前缀
    - postgres:// 统一转换为 SQLAlchemy 识别的 postgresql://
    """
    url = re.sub(r"^DATABASE_URL\s*=\s*", "", raw_url.strip(), flags=re.IGNORECASE).strip()
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"环境变量 {name}={value!r} 不是整数，使用默认值 {default}")
        return default


def get_app_config() -> AppConfig:
    """
    从环境变量获取应用配置

    环境变量：
        DATABASE_URL: 数据库连接串（默认 SQLite）
        JWT_SECRET: Token 签名密钥
        JWT_ALGORITHM: 签名算法（默认 HS256）
        JWT_EXPIRE_DAYS: Token 有效天数（默认 7）
        UPLOADS_DIR: 上传文件目录
        MAX_UPLOAD_BYTES: 上传大小上限（默认 50MB）
        ORDER_SWAP_ATOMIC: 课时排序交换是否使用事务（默认 true）
        ALLOWED_ORIGINS: CORS 允许源，逗号分隔
        DEV_MODE: 开发模式

    Returns:
        AppConfig: 应用配置对象
    """
    jwt_secret = os.getenv("JWT_SECRET", "").strip()
    if not jwt_secret:
        logger.warning("未设置 JWT_SECRET，使用开发默认密钥，请勿用于生产环境")
        jwt_secret = DEFAULT_JWT_SECRET

    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    return AppConfig(
        database_url=normalize_database_url(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)),
        jwt_secret=jwt_secret,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expire_days=_env_int("JWT_EXPIRE_DAYS", 7),
        uploads_dir=os.getenv("UPLOADS_DIR", str(UPLOADS_DIR)),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        order_swap_atomic=_env_bool("ORDER_SWAP_ATOMIC", True),
        allowed_origins=origins,
        dev_mode=_env_bool("DEV_MODE", False),
    )
