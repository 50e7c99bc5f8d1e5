"""
资源可见性服务
"""
from typing import List, Optional

from classroom.core.errors import ResourceNotFound
from classroom.domain import Resource
from classroom.gateway import PersistenceGateway


def is_visible(resource: Resource, course_id: str, lesson_id: Optional[str] = None) -> bool:
    """
    判断资源在 (course_id, lesson_id) 的查看上下文中是否可见

    - 必须属于该课程
    - 未指定课时：课程下所有资源可见
    - 指定课时：该课时的资源 + 课程级资源可见，其他课时的资源不可见
    """
    if resource.course_id != course_id:
        return False
    if lesson_id is None:
        return True
    return resource.lesson_id is None or resource.lesson_id == lesson_id


class ResourceScopingResolver:
    """
    资源可见性解析

    不做权限校验，调用方（路由层）已完成登录校验
    """

    @staticmethod
    def resolve_visible(gateway: PersistenceGateway, course_id: str, lesson_id: Optional[str] = None) -> List[Resource]:
        """
        获取查看上下文中可见的资源，按创建时间倒序

        Args:
            gateway: 持久化网关
            course_id: 课程 ID
            lesson_id: 课时 ID（可选）

        Returns:
            List[Resource]: 资源列表
        """
        resources = gateway.list_resources(course_id, lesson_id)
        return [r for r in resources if is_visible(r, course_id, lesson_id)]

    @staticmethod
    def get_resource(gateway: PersistenceGateway, resource_id: str) -> Resource:
        resource = gateway.get_resource(resource_id)
        if not resource:
            raise ResourceNotFound(resource_id)
        return resource
