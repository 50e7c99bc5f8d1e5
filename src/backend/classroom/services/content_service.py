"""
内容管理服务（管理员）

课程、课时的创建 / 修改 / 删除，以及课程资源的上传与删除。
权限由路由层的 require_admin 校验。
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

from classroom.core.config import AppConfig
from classroom.core.errors import (
    CourseNotFound,
    LessonNotFound,
    ResourceNotFound,
    StorageError,
    ValidationError,
)
from classroom.domain import Course, FilePayload, Lesson, Resource, ResourceKind, UrlPayload
from classroom.gateway import PersistenceGateway
from classroom.services.lesson_ordering_service import LessonOrderingService, parse_order
from classroom.services.storage import BlobStorage, IncomingFile, make_saved_file_name

logger = logging.getLogger(__name__)

COURSE_UPDATABLE_FIELDS = ("title", "description", "thumbnail_url")
LESSON_UPDATABLE_FIELDS = ("title", "content", "video_url", "order", "section")

RESOURCE_FILE_ROUTE = "/api/resources/files/{resource_id}"


def _require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} 不能为空")
    return str(value).strip()


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def validate_external_url(url: Optional[str]) -> str:
    """外部链接必须是 http(s) 绝对地址"""
    url = _require_text(url, "external_url")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"无效的 URL 格式: {url}")
    return url


def parse_resource_kind(kind: Optional[Union[str, ResourceKind]], has_file: bool) -> ResourceKind:
    """未指定类型时，有文件则为 file，否则为 url"""
    if kind is None or kind == "":
        return ResourceKind.FILE if has_file else ResourceKind.URL
    if isinstance(kind, ResourceKind):
        return kind
    try:
        return ResourceKind(str(kind).strip().lower())
    except ValueError:
        raise ValidationError(f"无效的资源类型: {kind}，只支持 file / url")


class ContentService:
    """内容管理服务"""

    def __init__(self, gateway: PersistenceGateway, storage: BlobStorage, config: AppConfig):
        self.gateway = gateway
        self.storage = storage
        self.config = config
        self.ordering = LessonOrderingService(gateway, atomic=config.order_swap_atomic)

    # ==================== 课程 ====================

    def create_course(self, title: str, description: Optional[str] = None,
                      thumbnail_url: Optional[str] = None, order: Optional[Any] = None) -> Course:
        """创建课程，未指定 order 时排在最后"""
        title = _require_text(title, "title")
        if order is None or order == "":
            course_order = max((c.order for c in self.gateway.list_courses()), default=0) + 1
        else:
            course_order = parse_order(order)

        course = self.gateway.insert_course(
            title=title,
            order=course_order,
            description=_optional_text(description),
            thumbnail_url=_optional_text(thumbnail_url),
        )
        self.gateway.commit()
        logger.info(f"课程已创建: id={course.id}, title={course.title}")
        return course

    def update_course(self, course_id: str, fields: Dict[str, Any]) -> Course:
        """
        修改课程标题 / 描述 / 封面

        Raises:
            ValidationError: 没有需要修改的字段，或标题为空
            CourseNotFound: 课程不存在
        """
        updates = {k: v for k, v in fields.items() if k in COURSE_UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("没有需要更新的字段")
        if "title" in updates:
            updates["title"] = _require_text(updates["title"], "title")

        course = self.gateway.update_course(course_id, updates)
        if not course:
            raise CourseNotFound(course_id)
        self.gateway.commit()
        return course

    # ==================== 课时 ====================

    def create_lesson(
        self,
        course_id: str,
        title: str,
        content: Optional[str] = None,
        video_url: Optional[str] = None,
        order: Optional[Any] = None,
        section: Optional[str] = None
    ) -> Lesson:
        """
        创建课时

        Args:
            course_id: 课程 ID
            title: 标题（必填）
            content: 正文
            video_url: 视频地址
            order: 排序值（不填则排在最后，填写则原样使用）
            section: 分组标签

        Raises:
            ValidationError: 标题为空或 order 不是数字
            CourseNotFound: 课程不存在
        """
        title = _require_text(title, "title")
        if not self.gateway.get_course(course_id):
            raise CourseNotFound(course_id)

        lesson_order = self.ordering.assign_order_for_new_lesson(course_id, order)
        lesson = self.gateway.insert_lesson(
            course_id=course_id,
            title=title,
            order=lesson_order,
            content=content or "",
            video_url=_optional_text(video_url),
            section=_optional_text(section),
        )
        self.gateway.commit()
        logger.info(f"课时已创建: course={course_id}, lesson={lesson.id}, order={lesson_order}")
        return lesson

    def update_lesson(self, course_id: str, lesson_id: str, fields: Dict[str, Any]) -> Lesson:
        """
        部分更新课时

        Raises:
            ValidationError: 没有需要修改的字段、标题为空或 order 不是数字
            LessonNotFound: 课时不存在或不属于该课程
        """
        updates = {k: v for k, v in fields.items() if k in LESSON_UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("没有需要更新的字段")
        if "title" in updates:
            updates["title"] = _require_text(updates["title"], "title")
        if "order" in updates:
            updates["order"] = parse_order(updates["order"])
        if "content" in updates:
            updates["content"] = updates["content"] or ""
        if "video_url" in updates:
            updates["video_url"] = _optional_text(updates["video_url"])
        if "section" in updates:
            updates["section"] = _optional_text(updates["section"])

        lesson = self.gateway.update_lesson(course_id, lesson_id, updates)
        if not lesson:
            raise LessonNotFound(lesson_id, course_id)
        self.gateway.commit()
        return lesson

    def update_lesson_video(self, course_id: str, lesson_id: str, video_url: Optional[str]) -> Lesson:
        """单独修改课时视频地址"""
        video_url = _require_text(video_url, "video_url")
        return self.update_lesson(course_id, lesson_id, {"video_url": video_url})

    def delete_lesson(self, course_id: str, lesson_id: str) -> None:
        """
        删除课时，级联删除完成记录和课时级资源

        资源文件的清理是尽力而为，失败只记录日志
        """
        saved_names = self.gateway.delete_lesson(course_id, lesson_id)
        if saved_names is None:
            raise LessonNotFound(lesson_id, course_id)
        self.gateway.commit()
        logger.info(f"课时已删除: course={course_id}, lesson={lesson_id}, 级联文件={len(saved_names)}")

        for name in saved_names:
            self._delete_blob_quietly(name)

    # ==================== 资源 ====================

    def upload_resource(
        self,
        uploaded_by: str,
        course_id: str,
        title: str,
        kind: Optional[Union[str, ResourceKind]] = None,
        lesson_id: Optional[str] = None,
        description: Optional[str] = None,
        file: Optional[IncomingFile] = None,
        external_url: Optional[str] = None
    ) -> Resource:
        """
        上传资源（文件或外部链接）

        校验全部在写入前完成；数据库写入失败时删除已保存的文件

        Raises:
            ValidationError: 缺少必填字段、文件为空或过大、URL 无效
            CourseNotFound / LessonNotFound: 课程不存在或课时不属于该课程
            StorageError: 文件或数据库写入失败
        """
        course_id = _require_text(course_id, "course_id")
        title = _require_text(title, "title")
        lesson_id = _optional_text(lesson_id)
        resource_kind = parse_resource_kind(kind, has_file=file is not None)

        if not self.gateway.get_course(course_id):
            raise CourseNotFound(course_id)
        if lesson_id and not self.gateway.get_lesson(course_id, lesson_id):
            raise LessonNotFound(lesson_id, course_id)

        resource_id = str(uuid.uuid4())
        saved_name: Optional[str] = None
        payload: Union[FilePayload, UrlPayload]

        if resource_kind is ResourceKind.URL:
            payload = UrlPayload(external_url=validate_external_url(external_url))
        else:
            if file is None or file.size == 0:
                raise ValidationError("没有上传文件")
            if file.size > self.config.max_upload_bytes:
                raise ValidationError(f"文件过大: {file.size} 字节，上限 {self.config.max_upload_bytes} 字节")

            saved_name = make_saved_file_name(file.file_name)
            stored_url = self.storage.store(file.content, saved_name, file.content_type)
            file_url = stored_url if stored_url.startswith(("http://", "https://")) \
                else RESOURCE_FILE_ROUTE.format(resource_id=resource_id)
            payload = FilePayload(
                file_url=file_url,
                file_name=file.file_name,
                saved_file_name=saved_name,
                file_size=file.size,
                file_type=file.content_type,
            )

        resource = Resource(
            id=resource_id,
            course_id=course_id,
            lesson_id=lesson_id,
            title=title,
            description=_optional_text(description),
            payload=payload,
            uploaded_by=uploaded_by,
            created_at=datetime.utcnow(),
        )

        try:
            created = self.gateway.insert_resource(resource)
            self.gateway.commit()
        except StorageError:
            if saved_name:
                self._delete_blob_quietly(saved_name)
            raise

        logger.info(f"资源已创建: id={resource_id}, type={resource_kind.value}, course={course_id}, lesson={lesson_id}")
        return created

    def delete_resource(self, resource_id: str) -> None:
        """
        删除资源：先删数据库记录，再尽力删除文件
        """
        resource = self.gateway.get_resource(resource_id)
        if not resource:
            raise ResourceNotFound(resource_id)

        self.gateway.delete_resource(resource_id)
        self.gateway.commit()
        logger.info(f"资源已删除: id={resource_id}")

        if isinstance(resource.payload, FilePayload) and resource.payload.saved_file_name:
            self._delete_blob_quietly(resource.payload.saved_file_name)

    def _delete_blob_quietly(self, name: str) -> None:
        try:
            if not self.storage.delete(name):
                logger.warning(f"待删除的文件不存在: {name}")
        except StorageError as e:
            logger.warning(f"文件删除失败，已忽略: {name}, error={e.message}")
