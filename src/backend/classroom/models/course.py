"""
课程模型
"""
from sqlalchemy import Column, String, Integer, Text, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base


class Course(Base):
    """课程模型"""
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(Text, nullable=False)  # 课程标题
    description = Column(Text, nullable=True)  # 课程描述
    order_index = Column(Integer, nullable=False, default=0)  # 课程展示顺序
    thumbnail_url = Column(Text, nullable=True)  # 封面图URL
    created_at = Column(DateTime, default=datetime.utcnow)

    # 关系
    lessons = relationship("Lesson", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course(id='{self.id}' title='{self.title}' order={self.order_index})>"
