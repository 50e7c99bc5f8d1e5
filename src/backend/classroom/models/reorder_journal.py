"""
排序交换日志
非事务模式下，交换两条课时的 order 前先记录意图，第二步失败时据此修复
"""
from sqlalchemy import Column, String, Integer, DateTime
from datetime import datetime

from .base import Base


class ReorderJournal(Base):
    """排序交换日志"""
    __tablename__ = "reorder_journal"

    id = Column(String(36), primary_key=True)
    course_id = Column(String(36), nullable=False, index=True)
    first_lesson_id = Column(String(36), nullable=False)
    first_order = Column(Integer, nullable=False)  # 第一条课时的目标 order
    second_lesson_id = Column(String(36), nullable=False)
    second_order = Column(Integer, nullable=False)  # 第二条课时的目标 order
    status = Column(String(20), nullable=False, default="pending")  # pending | applied | abandoned
    created_at = Column(DateTime, default=datetime.utcnow)
    applied_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<ReorderJournal(id='{self.id}' course_id='{self.course_id}' status='{self.status}')>"
