"""
业务异常定义

服务层抛出以下异常，由 main.py 中注册的异常处理器统一转换为 HTTP 响应。
"""
from typing import Optional


class ClassroomError(Exception):
    """业务异常基类"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ClassroomError):
    """课程 / 课时 / 资源不存在"""
    status_code = 404


class CourseNotFound(NotFoundError):
    def __init__(self, course_id: str):
        super().__init__(f"课程 {course_id} 不存在")
        self.course_id = course_id


class LessonNotFound(NotFoundError):
    def __init__(self, lesson_id: str, course_id: Optional[str] = None):
        if course_id:
            message = f"课时 {lesson_id} 不存在于课程 {course_id}"
        else:
            message = f"课时 {lesson_id} 不存在"
        super().__init__(message)
        self.lesson_id = lesson_id
        self.course_id = course_id


class ResourceNotFound(NotFoundError):
    def __init__(self, resource_id: str):
        super().__init__(f"资源 {resource_id} 不存在")
        self.resource_id = resource_id


class ValidationError(ClassroomError):
    """缺少必填字段、URL 格式错误、排序值非数字等"""
    status_code = 400


class UnauthorizedError(ClassroomError):
    status_code = 401


class ForbiddenError(ClassroomError):
    status_code = 403


class StorageError(ClassroomError):
    """数据库或文件存储写入失败"""
    status_code = 500


class PartialFailureError(ClassroomError):
    """
    两步交换排序只完成了第一步

    第一条课时的 order 已写入，第二条写入失败，两者的 order 暂时不一致。
    调用方需要重试或等待下一次读取时自动修复。
    """
    status_code = 409

    def __init__(self, message: str, written_lesson_id: str, pending_lesson_id: str,
                 journal_id: Optional[str] = None):
        super().__init__(message)
        self.written_lesson_id = written_lesson_id
        self.pending_lesson_id = pending_lesson_id
        self.journal_id = journal_id
