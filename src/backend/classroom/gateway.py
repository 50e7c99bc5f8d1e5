"""
持久化网关

唯一直接读写 ORM 行的模块：负责行 <-> 领域对象的映射（snake_case 列 -> 领域字段），
并把 SQLAlchemyError 统一转换为 StorageError。事务由调用方通过 commit()/rollback() 控制。
"""
import logging
import uuid
from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classroom import domain
from classroom.core.errors import StorageError
from classroom.models import (
    CompletionRecord as CompletionRecordRow,
    Course as CourseRow,
    Lesson as LessonRow,
    ReorderJournal as ReorderJournalRow,
    Resource as ResourceRow,
    User as UserRow,
)

logger = logging.getLogger(__name__)

# 领域字段 -> 列名
LESSON_COLUMNS = {
    "title": "title",
    "content": "content",
    "video_url": "video_url",
    "order": "order_index",
    "section": "section",
}
COURSE_COLUMNS = {
    "title": "title",
    "description": "description",
    "thumbnail_url": "thumbnail_url",
    "order": "order_index",
}


def _new_id() -> str:
    return str(uuid.uuid4())


def _storage_errors(func):
    """把数据库异常转换为 StorageError，并回滚当前会话"""
    @wraps(func)
    def wrapper(self: "PersistenceGateway", *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"数据库操作失败: {func.__name__}, error={e}")
            raise StorageError(f"数据库操作失败: {e}") from e
    return wrapper


# ==================== 行 -> 领域对象 ====================

def to_user(row: UserRow) -> domain.User:
    return domain.User(
        id=row.id,
        name=row.name,
        email=row.email,
        is_admin=bool(row.is_admin),
        created_at=row.created_at,
    )


def to_course(row: CourseRow) -> domain.Course:
    return domain.Course(
        id=row.id,
        title=row.title,
        order=row.order_index,
        description=row.description,
        thumbnail_url=row.thumbnail_url,
        created_at=row.created_at,
    )


def to_lesson(row: LessonRow) -> domain.Lesson:
    return domain.Lesson(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        order=row.order_index,
        content=row.content or "",
        video_url=row.video_url,
        section=row.section,
        created_at=row.created_at,
    )


def to_completion_record(row: CompletionRecordRow) -> domain.CompletionRecord:
    return domain.CompletionRecord(
        user_id=row.user_id,
        course_id=row.course_id,
        lesson_id=row.lesson_id,
        completed=bool(row.completed),
        completed_at=row.completed_at,
    )


def to_resource(row: ResourceRow) -> domain.Resource:
    payload: Any
    if row.resource_type == domain.ResourceKind.URL.value:
        payload = domain.UrlPayload(external_url=row.external_url or "")
    else:
        payload = domain.FilePayload(
            file_url=row.file_url or "",
            file_name=row.file_name or "",
            saved_file_name=row.saved_file_name,
            file_size=row.file_size,
            file_type=row.file_type,
        )
    return domain.Resource(
        id=row.id,
        course_id=row.course_id,
        lesson_id=row.lesson_id,
        title=row.title,
        description=row.description,
        payload=payload,
        uploaded_by=row.uploaded_by,
        created_at=row.created_at,
    )


class PersistenceGateway:
    """持久化网关，每个请求持有一个实例"""

    def __init__(self, db: Session):
        self.db = db

    # ==================== 事务 ====================

    @_storage_errors
    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # ==================== 用户 ====================

    @_storage_errors
    def get_user(self, user_id: str) -> Optional[domain.User]:
        row = self.db.query(UserRow).filter(UserRow.id == user_id).first()
        return to_user(row) if row else None

    @_storage_errors
    def list_users(self) -> List[domain.User]:
        rows = self.db.query(UserRow).order_by(UserRow.created_at.asc(), UserRow.id.asc()).all()
        return [to_user(r) for r in rows]

    @_storage_errors
    def list_admins(self) -> List[domain.User]:
        rows = self.db.query(UserRow).filter(
            UserRow.is_admin == True  # noqa: E712
        ).order_by(UserRow.created_at.asc(), UserRow.id.asc()).all()
        return [to_user(r) for r in rows]

    @_storage_errors
    def insert_user(self, name: str, email: str, is_admin: bool = False,
                    user_id: Optional[str] = None, password_hash: Optional[str] = None) -> domain.User:
        row = UserRow(
            id=user_id or _new_id(),
            name=name,
            email=email,
            is_admin=is_admin,
            password_hash=password_hash,
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return to_user(row)

    # ==================== 课程 ====================

    @_storage_errors
    def get_course(self, course_id: str) -> Optional[domain.Course]:
        row = self.db.query(CourseRow).filter(CourseRow.id == course_id).first()
        return to_course(row) if row else None

    @_storage_errors
    def list_courses(self) -> List[domain.Course]:
        rows = self.db.query(CourseRow).order_by(
            CourseRow.order_index.asc(), CourseRow.title.asc(), CourseRow.id.asc()
        ).all()
        return [to_course(r) for r in rows]

    @_storage_errors
    def insert_course(self, title: str, order: int, description: Optional[str] = None,
                      thumbnail_url: Optional[str] = None) -> domain.Course:
        row = CourseRow(
            id=_new_id(),
            title=title,
            description=description,
            order_index=order,
            thumbnail_url=thumbnail_url,
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return to_course(row)

    @_storage_errors
    def update_course(self, course_id: str, fields: Dict[str, Any]) -> Optional[domain.Course]:
        row = self.db.query(CourseRow).filter(CourseRow.id == course_id).first()
        if not row:
            return None
        for name, value in fields.items():
            setattr(row, COURSE_COLUMNS[name], value)
        self.db.flush()
        return to_course(row)

    # ==================== 课时 ====================

    @_storage_errors
    def list_lessons(self, course_id: str) -> List[domain.Lesson]:
        rows = self.db.query(LessonRow).filter(LessonRow.course_id == course_id).order_by(
            LessonRow.order_index.asc(), LessonRow.created_at.asc(), LessonRow.id.asc()
        ).all()
        return [to_lesson(r) for r in rows]

    @_storage_errors
    def list_all_lessons(self) -> List[domain.Lesson]:
        rows = self.db.query(LessonRow).all()
        return [to_lesson(r) for r in rows]

    @_storage_errors
    def get_lesson(self, course_id: str, lesson_id: str) -> Optional[domain.Lesson]:
        row = self.db.query(LessonRow).filter(
            LessonRow.id == lesson_id,
            LessonRow.course_id == course_id
        ).first()
        return to_lesson(row) if row else None

    @_storage_errors
    def insert_lesson(self, course_id: str, title: str, order: int, content: str = "",
                      video_url: Optional[str] = None, section: Optional[str] = None) -> domain.Lesson:
        row = LessonRow(
            id=_new_id(),
            course_id=course_id,
            title=title,
            content=content,
            video_url=video_url,
            order_index=order,
            section=section,
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return to_lesson(row)

    @_storage_errors
    def update_lesson(self, course_id: str, lesson_id: str, fields: Dict[str, Any]) -> Optional[domain.Lesson]:
        row = self.db.query(LessonRow).filter(
            LessonRow.id == lesson_id,
            LessonRow.course_id == course_id
        ).first()
        if not row:
            return None
        for name, value in fields.items():
            setattr(row, LESSON_COLUMNS[name], value)
        self.db.flush()
        return to_lesson(row)

    def update_lesson_order(self, course_id: str, lesson_id: str, order: int) -> Optional[domain.Lesson]:
        return self.update_lesson(course_id, lesson_id, {"order": order})

    @_storage_errors
    def delete_lesson(self, course_id: str, lesson_id: str) -> Optional[List[str]]:
        """
        删除课时，级联删除其完成记录和课时级资源

        Returns:
            被级联删除的文件资源的存储文件名；课时不存在时返回 None
        """
        row = self.db.query(LessonRow).filter(
            LessonRow.id == lesson_id,
            LessonRow.course_id == course_id
        ).first()
        if not row:
            return None
        saved_names = [
            r.saved_file_name for r in row.resources
            if r.resource_type != domain.ResourceKind.URL.value and r.saved_file_name
        ]
        self.db.delete(row)
        self.db.flush()
        return saved_names

    # ==================== 完成记录 ====================

    @_storage_errors
    def list_completion_records(self, user_id: str, course_id: Optional[str] = None) -> List[domain.CompletionRecord]:
        query = self.db.query(CompletionRecordRow).filter(CompletionRecordRow.user_id == user_id)
        if course_id is not None:
            query = query.filter(CompletionRecordRow.course_id == course_id)
        return [to_completion_record(r) for r in query.all()]

    @_storage_errors
    def list_all_completion_records(self) -> List[domain.CompletionRecord]:
        rows = self.db.query(CompletionRecordRow).filter(CompletionRecordRow.completed == True).all()  # noqa: E712
        return [to_completion_record(r) for r in rows]

    def _find_completion_row(self, user_id: str, course_id: str, lesson_id: str) -> Optional[CompletionRecordRow]:
        return self.db.query(CompletionRecordRow).filter(
            CompletionRecordRow.user_id == user_id,
            CompletionRecordRow.course_id == course_id,
            CompletionRecordRow.lesson_id == lesson_id
        ).first()

    @_storage_errors
    def upsert_completion(self, user_id: str, course_id: str, lesson_id: str,
                          completed: bool, now: datetime) -> domain.CompletionRecord:
        """
        按 (user_id, course_id, lesson_id) 写入完成状态

        - 无记录且 completed=True：插入，completed_at=now
        - 无记录且 completed=False：不写入（无记录等价于未完成）
        - 有记录：覆盖 completed，completed_at 为 now 或 None
        """
        completed_at = now if completed else None
        row = self._find_completion_row(user_id, course_id, lesson_id)

        if row is None:
            if not completed:
                return domain.CompletionRecord(user_id, course_id, lesson_id, False, None)
            row = CompletionRecordRow(
                id=_new_id(),
                user_id=user_id,
                course_id=course_id,
                lesson_id=lesson_id,
                completed=True,
                completed_at=completed_at,
            )
            self.db.add(row)
            try:
                self.db.flush()
            except IntegrityError:
                # 并发请求已插入同一条记录，改为更新
                self.db.rollback()
                row = self._find_completion_row(user_id, course_id, lesson_id)
                if row is None:
                    raise
                row.completed = True
                row.completed_at = completed_at
                self.db.flush()
        else:
            row.completed = completed
            row.completed_at = completed_at
            self.db.flush()

        return to_completion_record(row)

    # ==================== 资源 ====================

    @_storage_errors
    def list_resources(self, course_id: str, lesson_id: Optional[str] = None) -> List[domain.Resource]:
        """
        查询课程资源，按创建时间倒序

        lesson_id 为空时返回课程下全部资源；
        否则返回该课时的资源和课程级资源（lesson_id IS NULL）
        """
        query = self.db.query(ResourceRow).filter(ResourceRow.course_id == course_id)
        if lesson_id is not None:
            query = query.filter(or_(ResourceRow.lesson_id == lesson_id, ResourceRow.lesson_id.is_(None)))
        rows = query.order_by(ResourceRow.created_at.desc(), ResourceRow.id.desc()).all()
        return [to_resource(r) for r in rows]

    @_storage_errors
    def get_resource(self, resource_id: str) -> Optional[domain.Resource]:
        row = self.db.query(ResourceRow).filter(ResourceRow.id == resource_id).first()
        return to_resource(row) if row else None

    @_storage_errors
    def insert_resource(self, resource: domain.Resource) -> domain.Resource:
        row = ResourceRow(
            id=resource.id,
            course_id=resource.course_id,
            lesson_id=resource.lesson_id,
            title=resource.title,
            description=resource.description,
            resource_type=resource.kind.value,
            uploaded_by=resource.uploaded_by,
            created_at=resource.created_at or datetime.utcnow(),
        )
        if isinstance(resource.payload, domain.UrlPayload):
            row.external_url = resource.payload.external_url
        else:
            row.file_url = resource.payload.file_url
            row.file_name = resource.payload.file_name
            row.saved_file_name = resource.payload.saved_file_name
            row.file_size = resource.payload.file_size
            row.file_type = resource.payload.file_type
        self.db.add(row)
        self.db.flush()
        return to_resource(row)

    @_storage_errors
    def delete_resource(self, resource_id: str) -> bool:
        row = self.db.query(ResourceRow).filter(ResourceRow.id == resource_id).first()
        if not row:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    # ==================== 排序交换日志 ====================

    @_storage_errors
    def insert_reorder_journal(self, course_id: str, first_lesson_id: str, first_order: int,
                               second_lesson_id: str, second_order: int) -> str:
        row = ReorderJournalRow(
            id=_new_id(),
            course_id=course_id,
            first_lesson_id=first_lesson_id,
            first_order=first_order,
            second_lesson_id=second_lesson_id,
            second_order=second_order,
            status="pending",
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return row.id

    @_storage_errors
    def list_pending_reorders(self, course_id: str) -> List[Dict[str, Any]]:
        rows = self.db.query(ReorderJournalRow).filter(
            ReorderJournalRow.course_id == course_id,
            ReorderJournalRow.status == "pending"
        ).order_by(ReorderJournalRow.created_at.asc()).all()
        return [
            {
                "id": r.id,
                "first_lesson_id": r.first_lesson_id,
                "first_order": r.first_order,
                "second_lesson_id": r.second_lesson_id,
                "second_order": r.second_order,
            }
            for r in rows
        ]

    @_storage_errors
    def set_reorder_status(self, journal_id: str, status: str) -> None:
        row = self.db.query(ReorderJournalRow).filter(ReorderJournalRow.id == journal_id).first()
        if row:
            row.status = status
            row.applied_at = datetime.utcnow() if status == "applied" else None
            self.db.flush()
