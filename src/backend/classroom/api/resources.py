"""
课程资源API

读取需要登录，上传和删除需要管理员权限
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, RedirectResponse

from classroom.api.deps import get_config, get_content_service, get_gateway, get_storage
from classroom.core.config import AppConfig
from classroom.core.errors import ResourceNotFound, ValidationError
from classroom.core.security import CurrentUser, get_current_user, require_admin
from classroom.domain import UrlPayload
from classroom.gateway import PersistenceGateway
from classroom.services import ContentService, IncomingFile, ResourceScopingResolver
from classroom.services.storage import BlobStorage

router = APIRouter(prefix="/resources", tags=["课程资源"])


@router.get("", response_model=List[dict])
def get_resources(
    course_id: Optional[str] = None,
    lesson_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """
    获取资源列表

    Args:
        course_id: 课程 ID（必填）
        lesson_id: 课时 ID（可选，指定后只返回该课时资源和课程级资源）

    Returns:
        List[dict]: 资源列表，最新的在前
    """
    if not course_id:
        raise ValidationError("course_id 不能为空")
    resources = ResourceScopingResolver.resolve_visible(gateway, course_id, lesson_id or None)
    return [r.to_dict() for r in resources]


@router.get("/files/{resource_id}")
def download_resource_file(
    resource_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway),
    storage: BlobStorage = Depends(get_storage)
):
    """
    下载资源文件

    外部地址重定向，本地文件按原始文件名返回
    """
    resource = ResourceScopingResolver.get_resource(gateway, resource_id)
    payload = resource.payload
    if isinstance(payload, UrlPayload):
        return RedirectResponse(payload.external_url)
    if payload.file_url.startswith(("http://", "https://")):
        return RedirectResponse(payload.file_url)

    path = storage.path_for(payload.saved_file_name) if payload.saved_file_name else None
    if path is None:
        raise ResourceNotFound(resource_id)
    return FileResponse(
        path,
        filename=payload.file_name,
        media_type=payload.file_type or "application/octet-stream",
    )


@router.get("/{resource_id}", response_model=dict)
def get_resource(
    resource_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gateway: PersistenceGateway = Depends(get_gateway)
):
    """获取资源详情"""
    return ResourceScopingResolver.get_resource(gateway, resource_id).to_dict()


@router.post("", response_model=dict, status_code=201)
async def upload_resource(
    course_id: str = Form(...),
    title: str = Form(...),
    resource_type: Optional[str] = Form(None),
    lesson_id: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    external_url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service),
    config: AppConfig = Depends(get_config)
):
    """
    上传资源（管理员）

    multipart/form-data：resource_type=file 时上传 file，resource_type=url 时提交 external_url

    Raises:
        400: 缺少字段、文件为空或过大、URL 无效
        404: 课程或课时不存在
    """
    incoming = None
    if file is not None and file.filename:
        # 最多读取 上限+1 字节，超出上限由服务层拒绝
        content = await file.read(config.max_upload_bytes + 1)
        incoming = IncomingFile(
            file_name=file.filename,
            content=content,
            content_type=file.content_type,
        )

    resource = service.upload_resource(
        uploaded_by=admin.id,
        course_id=course_id,
        title=title,
        kind=resource_type,
        lesson_id=lesson_id,
        description=description,
        file=incoming,
        external_url=external_url,
    )
    return resource.to_dict()


@router.delete("/{resource_id}")
def delete_resource(
    resource_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service)
):
    """删除资源（管理员），文件清理失败不影响结果"""
    service.delete_resource(resource_id)
    return {"success": True}
