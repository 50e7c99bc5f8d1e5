"""
课时模型 - 课程内按 order_index 排列的课时
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Lesson(Base):
    """课时模型"""

    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, index=True)
    course_id = Column(String(36), ForeignKey('courses.id', ondelete="CASCADE"), nullable=False, index=True)  # 所属课程ID
    title = Column(Text, nullable=False)  # 课时标题
    content = Column(Text, nullable=True)  # 正文
    video_url = Column(Text, nullable=True)  # 视频地址（Loom / YouTube / Vimeo / mp4）
    order_index = Column(Integer, nullable=False)  # 课程内排序，不强制唯一
    section = Column(Text, nullable=True)  # 分组标签，为空表示未分组
    created_at = Column(DateTime, default=datetime.utcnow)

    # 关系
    course = relationship("Course", back_populates="lessons")
    completion_records = relationship("CompletionRecord", back_populates="lesson", cascade="all, delete-orphan")
    resources = relationship("Resource", back_populates="lesson", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Lesson(id='{self.id}' title='{self.title}' course_id='{self.course_id}' order={self.order_index})>"
