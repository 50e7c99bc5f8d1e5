"""
Services package
"""

from .content_service import ContentService
from .course_service import CourseService
from .lesson_ordering_service import LessonOrderingService
from .progress_service import ProgressService
from .resource_service import ResourceScopingResolver
from .storage import BlobStorage, IncomingFile, LocalBlobStorage

__all__ = [
    "ContentService",
    "CourseService",
    "LessonOrderingService",
    "ProgressService",
    "ResourceScopingResolver",
    "BlobStorage",
    "IncomingFile",
    "LocalBlobStorage",
]
