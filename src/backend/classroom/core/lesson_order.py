"""
课时排序与分组工具
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from classroom.domain import Lesson

_EPOCH = datetime.min


def lesson_sort_key(lesson: Lesson) -> Tuple[int, datetime, str]:
    """
    课时的规范排序键

    order 相同时按创建时间，再按 ID，保证任何存储返回顺序下结果一致
    """
    return (lesson.order, lesson.created_at or _EPOCH, lesson.id)


def sort_lessons(lessons: Iterable[Lesson]) -> List[Lesson]:
    return sorted(lessons, key=lesson_sort_key)


def next_order(lessons: Iterable[Lesson]) -> int:
    """新课时的默认 order：max(现有 order, 0) + 1"""
    return max((lesson.order for lesson in lessons), default=0) + 1


@dataclass(frozen=True)
class SectionGroup:
    """按 section 分组后的课时"""
    section: Optional[str]              # None 表示未分组
    lessons: Tuple[Lesson, ...]

    def to_dict(self) -> dict:
        return {
            "section": self.section,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
        }


def _section_key(lesson: Lesson) -> Optional[str]:
    if lesson.section is None or not lesson.section.strip():
        return None
    return lesson.section


def group_by_section(lessons: Sequence[Lesson]) -> List[SectionGroup]:
    """
    按 section 分组，保持各分组首次出现的顺序

    没有 section 的课时归入 section=None 的分组；课程内完全没有 section 时只返回一个分组
    """
    ordered = sort_lessons(lessons)
    order: List[Optional[str]] = []
    buckets: dict = {}
    for lesson in ordered:
        key = _section_key(lesson)
        if key not in buckets:
            buckets[key] = []
            order.append(key)
        buckets[key].append(lesson)

    return [SectionGroup(section=key, lessons=tuple(buckets[key])) for key in order]
