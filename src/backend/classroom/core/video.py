"""
课时视频地址识别

把课时的 video_url 识别为 Loom / 直链 mp4 / YouTube / Vimeo / 其他，
并生成可嵌入 iframe 或 video 标签的地址。纯字符串处理，无副作用。
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs, urlparse


class VideoKind(Enum):
    """视频地址类型"""
    LOOM_SHARE = "loom-share"           # loom.com/share/... -> iframe
    LOOM_CDN_OR_MP4 = "loom-cdn-or-mp4"  # 直接用 <video> 播放
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    OTHER = "other"                     # 无法识别，展示占位


@dataclass(frozen=True)
class VideoEmbed:
    """识别结果"""
    kind: VideoKind
    source_url: str
    embed_url: Optional[str] = None     # OTHER 时为 None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "source_url": self.source_url,
            "embed_url": self.embed_url,
        }


YOUTUBE_EMBED_TEMPLATE = "https://www.youtube.com/embed/{video_id}"
VIMEO_PLAYER_TEMPLATE = "https://player.vimeo.com/video/{video_id}"

_ID_TERMINATORS = re.compile(r"[?&#/]")


def _clean_id(raw: str) -> str:
    return _ID_TERMINATORS.split(raw, maxsplit=1)[0].strip()


def extract_youtube_id(url: str) -> Optional[str]:
    """
    提取 YouTube 视频 ID

    支持 youtu.be/<id>、watch?v=<id>、/embed/<id>、/shorts/<id>，去掉尾部查询参数
    """
    if "youtu.be/" in url:
        video_id = _clean_id(url.split("youtu.be/", 1)[1])
        return video_id or None

    parsed = urlparse(url if "://" in url else f"https://{url}")
    query_ids = parse_qs(parsed.query).get("v")
    if query_ids and query_ids[0].strip():
        return query_ids[0].strip()

    for prefix in ("/embed/", "/shorts/", "/live/"):
        if parsed.path.startswith(prefix):
            video_id = _clean_id(parsed.path[len(prefix):])
            return video_id or None
    return None


def extract_vimeo_id(url: str) -> Optional[str]:
    """取 vimeo 地址的最后一段路径作为视频 ID"""
    parsed = urlparse(url if "://" in url else f"https://{url}")
    segments = [s for s in parsed.path.split("/") if s]
    return segments[-1] if segments else None


def classify_video_url(video_url: Optional[str]) -> Optional[VideoEmbed]:
    """
    识别视频地址

    判断顺序很重要：loom.com/share/ 必须在 cdn.loom.com / .mp4 之前判断

    Args:
        video_url: 课时视频地址，可为空

    Returns:
        Optional[VideoEmbed]: 地址为空时返回 None
    """
    if video_url is None or not video_url.strip():
        return None
    url = video_url.strip()

    if "loom.com/share/" in url:
        return VideoEmbed(
            kind=VideoKind.LOOM_SHARE,
            source_url=url,
            embed_url=url.replace("loom.com/share/", "loom.com/embed/", 1),
        )

    if "cdn.loom.com" in url or ".mp4" in url:
        return VideoEmbed(kind=VideoKind.LOOM_CDN_OR_MP4, source_url=url, embed_url=url)

    if "youtube.com" in url or "youtu.be" in url:
        video_id = extract_youtube_id(url)
        if video_id:
            return VideoEmbed(
                kind=VideoKind.YOUTUBE,
                source_url=url,
                embed_url=YOUTUBE_EMBED_TEMPLATE.format(video_id=video_id),
            )
        return VideoEmbed(kind=VideoKind.OTHER, source_url=url)

    if "vimeo.com" in url:
        video_id = extract_vimeo_id(url)
        if video_id:
            return VideoEmbed(
                kind=VideoKind.VIMEO,
                source_url=url,
                embed_url=VIMEO_PLAYER_TEMPLATE.format(video_id=video_id),
            )

    return VideoEmbed(kind=VideoKind.OTHER, source_url=url)
