"""
路径配置常量

统一管理项目中的目录路径，避免硬编码。
"""
import os
from pathlib import Path


def _get_project_root() -> Path:
    """获取项目根目录"""
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parents[4]


PROJECT_ROOT = _get_project_root()

# ==================== 目录常量 ====================

# 本地上传文件目录（资源文件的 blob 存储）
UPLOADS_DIR_NAME = "uploads"
UPLOADS_DIR = Path(os.environ.get(
    "UPLOADS_DIR",
    str(PROJECT_ROOT / UPLOADS_DIR_NAME)
))
