"""
Models package
Export all database models
"""

from .base import Base
from .user import User
from .course import Course
from .lesson import Lesson
from .completion_record import CompletionRecord
from .resource import Resource
from .reorder_journal import ReorderJournal

__all__ = [
    "Base",
    "User",
    "Course",
    "Lesson",
    "CompletionRecord",
    "Resource",
    "ReorderJournal",
]
