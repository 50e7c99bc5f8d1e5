"""
课程资源模型
lesson_id 为空表示课程级资源，在该课程所有课时下可见
"""
from sqlalchemy import Column, String, Text, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Resource(Base):
    """课程资源（文件或外部链接）"""
    __tablename__ = "resources"

    id = Column(String(36), primary_key=True, index=True)
    course_id = Column(String(36), ForeignKey('courses.id', ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column(String(36), ForeignKey('lessons.id', ondelete="CASCADE"), nullable=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    resource_type = Column(String(50), nullable=False, default="file")  # file | url

    # 文件资源字段
    file_url = Column(Text, nullable=True)
    file_name = Column(Text, nullable=True)  # 原始文件名
    saved_file_name = Column(Text, nullable=True)  # 存储中的文件名
    file_size = Column(BigInteger, nullable=True)
    file_type = Column(String(100), nullable=True)

    # 链接资源字段
    external_url = Column(Text, nullable=True)

    uploaded_by = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    lesson = relationship("Lesson", back_populates="resources")

    def __repr__(self):
        return f"<Resource(id='{self.id}' type='{self.resource_type}' title='{self.title}')>"
