"""
学习进度服务
课时完成状态的写入，以及课程进度、全部进度、排行榜的汇总
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from classroom.core.errors import CourseNotFound, LessonNotFound, StorageError, ValidationError
from classroom.core.progress import calculate_points, compute_progress
from classroom.domain import CourseProgress
from classroom.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class ProgressService:
    """学习进度服务"""

    @staticmethod
    def get_course_progress(gateway: PersistenceGateway, user_id: str, course_id: str) -> CourseProgress:
        """
        获取用户在指定课程中的进度

        课程不存在时返回 total_lessons=0、percentage=0，不抛异常

        Args:
            gateway: 持久化网关
            user_id: 用户 ID
            course_id: 课程 ID

        Returns:
            CourseProgress: 课程进度
        """
        lessons = gateway.list_lessons(course_id)
        records = gateway.list_completion_records(user_id, course_id) if lessons else []
        return compute_progress(course_id, lessons, records)

    @staticmethod
    def get_all_progress(gateway: PersistenceGateway, user_id: str) -> Dict[str, CourseProgress]:
        """
        获取用户在所有课程中的进度

        Returns:
            Dict[str, CourseProgress]: 课程 ID -> 课程进度
        """
        records_by_course = defaultdict(list)
        for record in gateway.list_completion_records(user_id):
            records_by_course[record.course_id].append(record)

        result: Dict[str, CourseProgress] = {}
        for course in gateway.list_courses():
            lessons = gateway.list_lessons(course.id)
            result[course.id] = compute_progress(course.id, lessons, records_by_course.get(course.id, []))
        return result

    @staticmethod
    def set_completion(
        gateway: PersistenceGateway,
        user_id: str,
        course_id: str,
        lesson_id: str,
        completed: bool,
        now: Optional[datetime] = None
    ) -> CourseProgress:
        """
        设置课时完成状态（幂等），返回重新计算后的课程进度

        Args:
            gateway: 持久化网关
            user_id: 用户 ID
            course_id: 课程 ID
            lesson_id: 课时 ID
            completed: 是否完成
            now: 写入时间（默认当前 UTC 时间）

        Raises:
            ValidationError: completed 不是布尔值
            CourseNotFound: 课程不存在
            LessonNotFound: 课时不存在或不属于该课程
            StorageError: 写入失败，此时不会有任何记录被修改
        """
        if not isinstance(completed, bool):
            raise ValidationError("completed 必须是布尔值")

        if not gateway.get_course(course_id):
            raise CourseNotFound(course_id)
        if not gateway.get_lesson(course_id, lesson_id):
            raise LessonNotFound(lesson_id, course_id)

        try:
            gateway.upsert_completion(user_id, course_id, lesson_id, completed, now or datetime.utcnow())
            gateway.commit()
        except StorageError:
            logger.error(f"完成状态写入失败: user={user_id}, course={course_id}, lesson={lesson_id}")
            raise

        return ProgressService.get_course_progress(gateway, user_id, course_id)

    @staticmethod
    def get_leaderboard(gateway: PersistenceGateway) -> List[Dict]:
        """
        排行榜

        积分 = 完成课时数 * 10 + 完成课程数 * 50，按积分降序、姓名升序
        """
        lessons_by_course = defaultdict(list)
        for lesson in gateway.list_all_lessons():
            lessons_by_course[lesson.course_id].append(lesson)
        total_lessons = sum(len(lessons) for lessons in lessons_by_course.values())
        total_courses = len(gateway.list_courses())

        records_by_user = defaultdict(lambda: defaultdict(list))
        for record in gateway.list_all_completion_records():
            records_by_user[record.user_id][record.course_id].append(record)

        entries = []
        for user in gateway.list_users():
            completed_lessons = 0
            completed_courses = 0
            for course_id, lessons in lessons_by_course.items():
                progress = compute_progress(course_id, lessons, records_by_user[user.id].get(course_id, []))
                completed_lessons += progress.completed_lessons
                if progress.total_lessons > 0 and progress.completed_lessons == progress.total_lessons:
                    completed_courses += 1
            entries.append({
                "user_id": user.id,
                "name": user.name,
                "completed_lessons": completed_lessons,
                "completed_courses": completed_courses,
                "total_courses": total_courses,
                "total_lessons": total_lessons,
                "points": calculate_points(completed_lessons, completed_courses),
            })

        entries.sort(key=lambda e: (-e["points"], e["name"]))
        return entries
