"""
文件存储

资源文件的 blob 存储协作者：store(data, name) -> url，delete(name) -> bool。
默认实现写入本地 UPLOADS_DIR 目录。
"""
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from classroom.core.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingFile:
    """上传的文件"""
    file_name: str                      # 原始文件名
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class BlobStorage(Protocol):
    """blob 存储接口"""

    def store(self, data: bytes, name: str, content_type: Optional[str] = None) -> str:
        ...

    def delete(self, name: str) -> bool:
        ...

    def path_for(self, name: str) -> Optional[Path]:
        ...


def make_saved_file_name(original_name: str) -> str:
    """
    生成存储文件名：<uuid4>-<原始文件名>

    去掉目录部分和不安全字符，防止路径穿越
    """
    base = Path(original_name.replace("\\", "/")).name or "file"
    safe = re.sub(r"[^\w.\-]", "_", base)
    safe = safe.lstrip(".") or "file"
    return f"{uuid.uuid4()}-{safe}"


class LocalBlobStorage:
    """本地文件系统存储"""

    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)

    def _resolve(self, name: str) -> Path:
        path = (self.root_dir / name).resolve()
        if self.root_dir.resolve() not in path.parents:
            raise StorageError(f"非法的文件名: {name}")
        return path

    def store(self, data: bytes, name: str, content_type: Optional[str] = None) -> str:
        """写入文件，返回 file:// 地址"""
        path = self._resolve(name)
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"文件保存失败: {e}") from e
        logger.info(f"文件已保存: {path} ({len(data)} bytes)")
        return path.as_uri()

    def delete(self, name: str) -> bool:
        """删除文件，文件不存在时返回 False"""
        path = self._resolve(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"文件删除失败: {e}") from e
        return True

    def path_for(self, name: str) -> Optional[Path]:
        path = self._resolve(name)
        return path if path.exists() else None
