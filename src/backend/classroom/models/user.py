"""
用户模型
身份由认证模块负责，这里只保存资料与管理员标记
"""
from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from .base import Base


class User(Base):
    """用户模型"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # 由认证模块写入
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<User(id='{self.id}' email='{self.email}' is_admin={self.is_admin})>"
