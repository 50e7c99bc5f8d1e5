"""
课程进度汇总算法

纯函数：相同输入永远得到相同输出，前端可用同样规则独立计算，结果必须一致。
"""
from typing import Dict, Iterable, Sequence

from classroom.domain import CompletionRecord, CourseProgress, Lesson

# 排行榜积分
POINTS_PER_LESSON = 10
POINTS_PER_COURSE = 50


def round_percentage(completed: int, total: int) -> int:
    """
    计算整数百分比，0.5 向上取整（与浏览器 Math.round 一致）

    total 为 0 时返回 0
    """
    if total <= 0:
        return 0
    # round-half-up(100 * completed / total)，全程整数运算
    return (200 * completed + total) // (2 * total)


def compute_progress(
    course_id: str,
    course_lessons: Sequence[Lesson],
    records: Iterable[CompletionRecord],
) -> CourseProgress:
    """
    根据课时列表和完成记录计算课程进度

    Args:
        course_id: 课程 ID
        course_lessons: 课程当前的全部课时（决定 total_lessons）
        records: 该用户在该课程下的全部完成记录

    Returns:
        CourseProgress: 课程进度

    规则：
        - completed=False 的记录与没有记录等价
        - 只统计仍属于该课程的课时，已删除课时的记录不计入
        - 课程没有课时时 percentage 为 0
    """
    lesson_ids = {lesson.id for lesson in course_lessons}
    lesson_progress: Dict[str, bool] = {}

    for record in records:
        if record.lesson_id not in lesson_ids:
            continue
        # 同一课时出现多条记录时，任一为 True 即视为完成
        lesson_progress[record.lesson_id] = lesson_progress.get(record.lesson_id, False) or bool(record.completed)

    completed_lessons = sum(1 for done in lesson_progress.values() if done)
    total_lessons = len(lesson_ids)

    return CourseProgress(
        course_id=course_id,
        lesson_progress=lesson_progress,
        completed_lessons=completed_lessons,
        total_lessons=total_lessons,
        percentage=round_percentage(completed_lessons, total_lessons),
    )


def calculate_points(completed_lessons: int, completed_courses: int) -> int:
    """排行榜积分：每完成一个课时 10 分，每完成一门课程额外 50 分"""
    return completed_lessons * POINTS_PER_LESSON + completed_courses * POINTS_PER_COURSE
