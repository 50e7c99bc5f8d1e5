"""
用户API
"""
from typing import List

from fastapi import APIRouter, Depends

from classroom.api.deps import get_gateway
from classroom.core.errors import UnauthorizedError
from classroom.core.security import CurrentUser, get_current_user, require_admin
from classroom.gateway import PersistenceGateway
from classroom.services import ProgressService

router = APIRouter(prefix="/users", tags=["用户管理"])


@router.get("/me", response_model=dict)
def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """获取当前用户信息"""
    user = gateway.get_user(current_user.id)
    if not user:
        raise UnauthorizedError("用户不存在")
    return user.to_dict()


@router.get("/admins", response_model=List[dict])
def get_admins(
    admin: CurrentUser = Depends(require_admin),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """获取管理员列表（管理员），按创建时间排序"""
    return [user.to_dict() for user in gateway.list_admins()]


@router.get("/leaderboard", response_model=List[dict])
def get_leaderboard(
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """
    排行榜

    Returns:
        List[dict]: 按积分降序排列的用户列表
    """
    return ProgressService.get_leaderboard(gateway)
