"""
视频地址识别测试
"""
import pytest

from classroom.core.video import VideoKind, classify_video_url


class TestClassifyVideoUrl:

    @pytest.mark.parametrize("url,kind,embed_url", [
        ("https://www.loom.com/share/abc123", VideoKind.LOOM_SHARE, "https://www.loom.com/embed/abc123"),
        ("https://youtu.be/XYZ?t=5", VideoKind.YOUTUBE, "https://www.youtube.com/embed/XYZ"),
        ("https://www.youtube.com/watch?v=XYZ&list=foo", VideoKind.YOUTUBE, "https://www.youtube.com/embed/XYZ"),
        ("https://vimeo.com/12345", VideoKind.VIMEO, "https://player.vimeo.com/video/12345"),
        ("https://cdn.loom.com/sessions/raw/abc.webm", VideoKind.LOOM_CDN_OR_MP4, "https://cdn.loom.com/sessions/raw/abc.webm"),
        ("https://files.example.com/intro.mp4", VideoKind.LOOM_CDN_OR_MP4, "https://files.example.com/intro.mp4"),
    ])
    def test_known_providers(self, url, kind, embed_url):
        embed = classify_video_url(url)

        assert embed.kind is kind
        assert embed.embed_url == embed_url
        assert embed.source_url == url

    def test_loom_share_checked_before_mp4(self):
        embed = classify_video_url("https://www.loom.com/share/demo.mp4")
        assert embed.kind is VideoKind.LOOM_SHARE

    def test_vimeo_uses_last_path_segment(self):
        embed = classify_video_url("https://vimeo.com/channels/staffpicks/76979871")
        assert embed.embed_url == "https://player.vimeo.com/video/76979871"

    def test_youtube_without_id_falls_back(self):
        embed = classify_video_url("https://www.youtube.com/")

        assert embed.kind is VideoKind.OTHER
        assert embed.embed_url is None

    def test_unknown_provider(self):
        embed = classify_video_url("https://example.com/video")

        assert embed.kind is VideoKind.OTHER
        assert embed.to_dict() == {"kind": "other", "source_url": "https://example.com/video", "embed_url": None}

    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_blank(self, url):
        assert classify_video_url(url) is None
