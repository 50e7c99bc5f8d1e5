"""
认证协作模块

校验 Bearer JWT，提供 get_current_user / require_admin 依赖。
登录、注册与密码哈希不在本服务范围内，create_access_token 仅供脚本和测试签发令牌。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import AppConfig, get_app_config
from .database import get_db
from .errors import ForbiddenError, UnauthorizedError
from classroom.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """当前请求的用户"""
    id: str
    name: str
    email: str
    is_admin: bool


def create_access_token(user_id: str, config: Optional[AppConfig] = None,
                        expires_in: Optional[timedelta] = None) -> str:
    """
    签发访问令牌

    Args:
        user_id: 用户 ID
        config: 应用配置（默认从环境变量读取）
        expires_in: 有效期（默认 jwt_expire_days 天）

    Returns:
        str: JWT 字符串
    """
    config = config or get_app_config()
    expire = datetime.now(timezone.utc) + (expires_in or timedelta(days=config.jwt_expire_days))
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: AppConfig) -> str:
    """
    校验令牌并返回用户 ID

    Raises:
        UnauthorizedError: 令牌无效或已过期
    """
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("令牌已过期")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("令牌无效")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("令牌缺少用户信息")
    return str(user_id)


def _get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    return config if config is not None else get_app_config()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """从 Authorization: Bearer <token> 解析当前用户"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("需要访问令牌")

    user_id = decode_access_token(credentials.credentials, _get_config(request))
    user = PersistenceGateway(db).get_user(user_id)
    if not user:
        logger.warning(f"令牌对应的用户不存在: user_id={user_id}")
        raise UnauthorizedError("用户不存在")

    return CurrentUser(id=user.id, name=user.name, email=user.email, is_admin=user.is_admin)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """要求管理员权限"""
    if not current_user.is_admin:
        raise ForbiddenError("需要管理员权限")
    return current_user
