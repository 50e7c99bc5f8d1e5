"""
领域数据结构

持久化网关把 ORM 行转换为这里的不可变对象，
进度汇总、课时排序与资源筛选只面向这些对象，不接触数据库行。
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class ResourceKind(Enum):
    """资源类型"""
    FILE = "file"                       # 上传的文件
    URL = "url"                         # 外部链接


class Direction(Enum):
    """课时移动方向"""
    UP = "up"
    DOWN = "down"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class User:
    """用户"""
    id: str
    name: str
    email: str
    is_admin: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "is_admin": self.is_admin,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class Course:
    """课程"""
    id: str
    title: str
    order: int                          # 课程间的展示顺序
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "order": self.order,
            "thumbnail_url": self.thumbnail_url,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class Lesson:
    """课时"""
    id: str
    course_id: str
    title: str
    order: int                          # 课程内排序值，允许重复
    content: str = ""
    video_url: Optional[str] = None
    section: Optional[str] = None       # 分组标签，None 表示未分组
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "content": self.content,
            "video_url": self.video_url,
            "order": self.order,
            "section": self.section,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class CompletionRecord:
    """某用户对某课时的完成记录"""
    user_id: str
    course_id: str
    lesson_id: str
    completed: bool
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class FilePayload:
    """文件资源内容"""
    file_url: str
    file_name: str
    saved_file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None


@dataclass(frozen=True)
class UrlPayload:
    """链接资源内容"""
    external_url: str


@dataclass(frozen=True)
class Resource:
    """课程资源，lesson_id 为 None 表示课程级资源"""
    id: str
    course_id: str
    title: str
    payload: Union[FilePayload, UrlPayload]
    uploaded_by: str
    lesson_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.URL if isinstance(self.payload, UrlPayload) else ResourceKind.FILE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "course_id": self.course_id,
            "lesson_id": self.lesson_id,
            "title": self.title,
            "description": self.description,
            "resource_type": self.kind.value,
            "uploaded_by": self.uploaded_by,
            "created_at": _iso(self.created_at),
        }
        if isinstance(self.payload, UrlPayload):
            data["external_url"] = self.payload.external_url
        else:
            data.update({
                "file_url": self.payload.file_url,
                "file_name": self.payload.file_name,
                "file_size": self.payload.file_size,
                "file_type": self.payload.file_type,
            })
        return data


@dataclass(frozen=True)
class CourseProgress:
    """
    课程进度（派生数据，不落库）

    Attributes:
        course_id: 课程 ID
        lesson_progress: 用户有记录的课时 -> 是否完成
        completed_lessons: 已完成课时数
        total_lessons: 课程当前课时总数
        percentage: 完成百分比（整数，四舍五入）
    """
    course_id: str
    lesson_progress: Dict[str, bool] = field(default_factory=dict)
    completed_lessons: int = 0
    total_lessons: int = 0
    percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "course_id": self.course_id,
            "lesson_progress": dict(self.lesson_progress),
            "completed_lessons": self.completed_lessons,
            "total_lessons": self.total_lessons,
            "percentage": self.percentage,
        }
