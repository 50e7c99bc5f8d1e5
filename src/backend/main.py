"""
FastAPI应用入口
"""
from dotenv import load_dotenv
from pathlib import Path
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classroom.api import courses, resources, users
from classroom.core.config import AppConfig, get_app_config
from classroom.core.database import Database
from classroom.core.errors import ClassroomError, PartialFailureError
from classroom.services.storage import LocalBlobStorage


def _get_cors_config(config: AppConfig) -> tuple[list[str], Optional[str]]:
    """
    获取 CORS 配置

    Returns:
        (allow_origins, allow_origin_regex)
        - 生产环境：使用精确匹配的 origins 列表
        - 开发环境：使用正则匹配本地端口，方便本地开发
    """
    if config.allowed_origins:
        return config.allowed_origins, None

    # 开发环境：使用正则匹配所有本地端口
    if config.dev_mode:
        return [], r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    # 非开发环境且未配置 ALLOWED_ORIGINS：拒绝所有跨域
    logger.warning("未配置 ALLOWED_ORIGINS 且非开发模式，CORS 将拒绝所有跨域请求")
    return [], None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时初始化数据库，退出时释放连接；已注入的 Database 由注入方负责释放"""
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database(app.state.config.database_url).init()
        app.state.database = database
    yield
    if owns_database:
        database.dispose()
        app.state.database = None


config = get_app_config()

app = FastAPI(
    title="Classroom API",
    description="Course & lesson learning platform - progress tracking, lesson ordering and resources",
    version="0.1.0",
    lifespan=lifespan
)
app.state.config = config
app.state.storage = LocalBlobStorage(config.uploads_dir)

# CORS配置 - 从环境变量读取允许的源
allow_origins, allow_origin_regex = _get_cors_config(config)
logger.info(f"CORS 配置: origins={allow_origins}, regex={allow_origin_regex}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClassroomError)
async def classroom_error_handler(request: Request, exc: ClassroomError):
    """业务异常统一转换为 {"detail", "error"}"""
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, PartialFailureError):
        content.update({
            "written_lesson_id": exc.written_lesson_id,
            "pending_lesson_id": exc.pending_lesson_id,
        })
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 失败: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


# 包含所有路由
app.include_router(courses.router, prefix="/api", tags=["课程管理"])
app.include_router(resources.router, prefix="/api", tags=["课程资源"])
app.include_router(users.router, prefix="/api", tags=["用户管理"])


@app.get("/")
async def root():
    """根路径"""
    return {"message": "Classroom API", "docs": "/docs"}


@app.get("/health")
async def health(request: Request):
    """健康检查"""
    database = getattr(request.app.state, "database", None)
    return {
        "status": "healthy",
        "database_ready": bool(database and database.is_ready()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
