"""
课时完成记录模型
每个 (user_id, course_id, lesson_id) 至多一条记录，课程进度由这些记录实时汇总，不单独存储
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class CompletionRecord(Base):
    """课时完成记录"""
    __tablename__ = "course_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "lesson_id", name="uq_course_progress_user_course_lesson"),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey('courses.id', ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column(String(36), ForeignKey('lessons.id', ondelete="CASCADE"), nullable=False, index=True)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)  # 仅在 completed=True 时有值

    lesson = relationship("Lesson", back_populates="completion_records")

    def __repr__(self):
        return f"<CompletionRecord(user='{self.user_id}' lesson='{self.lesson_id}' completed={self.completed})>"
