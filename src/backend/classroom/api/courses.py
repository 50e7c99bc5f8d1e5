"""
课程与课时API

- 课程目录：课程列表、课程详情（含 section 分组）、课时详情
- 管理员：创建 / 修改课程，创建 / 修改 / 删除课时，调整课时顺序
- 学习进度：课程进度、全部进度、标记课时完成
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictBool

from classroom.api.deps import get_content_service, get_gateway, get_ordering
from classroom.core.security import CurrentUser, get_current_user, require_admin
from classroom.gateway import PersistenceGateway
from classroom.services import ContentService, CourseService, LessonOrderingService, ProgressService
from classroom.services.course_service import lesson_to_dict

router = APIRouter(prefix="/courses", tags=["课程管理"])


# 请求模型
class CourseCreateRequest(BaseModel):
    """创建课程请求"""
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    order: Optional[Any] = None  # 不填则排在最后


class CourseUpdateRequest(BaseModel):
    """修改课程请求（只提交需要修改的字段）"""
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None


class LessonCreateRequest(BaseModel):
    """创建课时请求"""
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    order: Optional[Any] = None  # 数字或数字字符串
    section: Optional[str] = None


class LessonUpdateRequest(BaseModel):
    """修改课时请求（只提交需要修改的字段）"""
    title: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = None
    order: Optional[Any] = None
    section: Optional[str] = None


class LessonVideoRequest(BaseModel):
    video_url: str


class ReorderRequest(BaseModel):
    direction: str  # up / down


class CompletionRequest(BaseModel):
    """标记课时完成请求"""
    completed: StrictBool


# ==================== 课程目录 ====================

@router.get("", response_model=List[dict])
def get_courses(
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    ordering: LessonOrderingService = Depends(get_ordering)
):
    """
    获取课程列表

    Returns:
        List[dict]: 课程列表，每门课程带有排好序的课时
    """
    return CourseService.list_courses(gateway, ordering)


@router.post("", response_model=dict, status_code=201)
def create_course(
    request: CourseCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """创建课程（管理员）"""
    course = service.create_course(
        title=request.title,
        description=request.description,
        thumbnail_url=request.thumbnail_url,
        order=request.order,
    )
    return course.to_dict()


@router.get("/progress/all", response_model=dict)
def get_all_progress(
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """
    获取当前用户在所有课程中的进度

    Returns:
        dict: 课程 ID -> 课程进度
    """
    progress = ProgressService.get_all_progress(gateway, current_user.id)
    return {course_id: p.to_dict() for course_id, p in progress.items()}


@router.get("/{course_id}", response_model=dict)
def get_course(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    ordering: LessonOrderingService = Depends(get_ordering)
):
    """
    获取课程详情

    Args:
        course_id: 课程ID

    Returns:
        dict: 课程详情，包含 lessons 和按 section 分组的 sections

    Raises:
        404: 课程不存在
    """
    return CourseService.get_course(gateway, ordering, course_id)


@router.put("/{course_id}", response_model=dict)
def update_course(
    course_id: str,
    request: CourseUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """修改课程标题 / 描述 / 封面（管理员）"""
    course = service.update_course(course_id, request.model_dump(exclude_unset=True))
    return course.to_dict()


@router.get("/{course_id}/progress", response_model=dict)
def get_course_progress(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """获取当前用户的课程进度，课程不存在时进度为 0"""
    return ProgressService.get_course_progress(gateway, current_user.id, course_id).to_dict()


# ==================== 课时 ====================

@router.get("/{course_id}/lessons", response_model=List[dict])
def get_lessons(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    ordering: LessonOrderingService = Depends(get_ordering)
):
    """获取课程的课时列表（按 order 排序）"""
    CourseService.get_course(gateway, ordering, course_id)
    return [lesson_to_dict(lesson) for lesson in ordering.list_lessons(course_id)]


@router.post("/{course_id}/lessons", response_model=dict, status_code=201)
def create_lesson(
    course_id: str,
    request: LessonCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """创建课时（管理员）"""
    lesson = service.create_lesson(
        course_id=course_id,
        title=request.title,
        content=request.content,
        video_url=request.video_url,
        order=request.order,
        section=request.section,
    )
    return lesson_to_dict(lesson)


@router.get("/{course_id}/lessons/{lesson_id}", response_model=dict)
def get_lesson(
    course_id: str,
    lesson_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """获取课时详情，附带视频识别结果"""
    return CourseService.get_lesson(gateway, course_id, lesson_id)


@router.put("/{course_id}/lessons/{lesson_id}", response_model=dict)
def update_lesson(
    course_id: str,
    lesson_id: str,
    request: LessonUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """部分更新课时（管理员）"""
    lesson = service.update_lesson(course_id, lesson_id, request.model_dump(exclude_unset=True))
    return lesson_to_dict(lesson)


@router.delete("/{course_id}/lessons/{lesson_id}")
def delete_lesson(
    course_id: str,
    lesson_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """删除课时，同时删除其完成记录和课时级资源（管理员）"""
    service.delete_lesson(course_id, lesson_id)
    return {"success": True}


@router.put("/{course_id}/lessons/{lesson_id}/video", response_model=dict)
def update_lesson_video(
    course_id: str,
    lesson_id: str,
    request: LessonVideoRequest,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """修改课时视频地址（管理员）"""
    lesson = service.update_lesson_video(course_id, lesson_id, request.video_url)
    return lesson_to_dict(lesson)


@router.put("/{course_id}/lessons/{lesson_id}/reorder", response_model=List[dict])
def reorder_lesson(
    course_id: str,
    lesson_id: str,
    request: ReorderRequest,
    admin: CurrentUser = Depends(require_admin),
    ordering: LessonOrderingService = Depends(get_ordering)
):
    """
    上移 / 下移课时（管理员）

    Returns:
        List[dict]: 更新后的课时列表

    Raises:
        400: 方向无效
        409: 非事务模式下交换只完成了一半
    """
    lessons = ordering.reorder(course_id, lesson_id, request.direction)
    return [lesson_to_dict(lesson) for lesson in lessons]


@router.post("/{course_id}/lessons/{lesson_id}/progress", response_model=dict)
def set_lesson_completion(
    course_id: str,
    lesson_id: str,
    request: CompletionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
) -> Dict[str, Any]:
    """
    标记课时完成 / 未完成

    Returns:
        dict: {"success": true, "progress": 重新计算后的课程进度}
    """
    progress = ProgressService.set_completion(
        gateway, current_user.id, course_id, lesson_id, request.completed
    )
    return {"success": True, "progress": progress.to_dict()}
