"""
课程服务
课程目录的只读查询
"""
from typing import Dict, List

from classroom.core.errors import CourseNotFound, LessonNotFound
from classroom.core.lesson_order import group_by_section
from classroom.core.video import classify_video_url
from classroom.domain import Course, Lesson
from classroom.gateway import PersistenceGateway
from classroom.services.lesson_ordering_service import LessonOrderingService


def lesson_to_dict(lesson: Lesson) -> Dict:
    """课时详情，附带视频识别结果"""
    data = lesson.to_dict()
    video = classify_video_url(lesson.video_url)
    data["video"] = video.to_dict() if video else None
    return data


class CourseService:
    """课程服务"""

    @staticmethod
    def _course_dict(course: Course, lessons: List[Lesson], with_sections: bool = False) -> Dict:
        data = course.to_dict()
        data["lessons"] = [lesson_to_dict(lesson) for lesson in lessons]
        if with_sections:
            data["sections"] = [group.to_dict() for group in group_by_section(lessons)]
        return data

    @staticmethod
    def list_courses(gateway: PersistenceGateway, ordering: LessonOrderingService) -> List[Dict]:
        """
        获取课程列表（按 order 排序），每门课程带有排好序的课时

        Returns:
            List[dict]: 课程列表
        """
        return [
            CourseService._course_dict(course, ordering.list_lessons(course.id))
            for course in gateway.list_courses()
        ]

    @staticmethod
    def get_course(gateway: PersistenceGateway, ordering: LessonOrderingService, course_id: str) -> Dict:
        """
        获取课程详情，包含课时和按 section 分组的结果

        Raises:
            CourseNotFound: 课程不存在
        """
        course = gateway.get_course(course_id)
        if not course:
            raise CourseNotFound(course_id)
        return CourseService._course_dict(course, ordering.list_lessons(course_id), with_sections=True)

    @staticmethod
    def get_lesson(gateway: PersistenceGateway, course_id: str, lesson_id: str) -> Dict:
        """
        获取课时详情

        Raises:
            LessonNotFound: 课时不存在或不属于该课程
        """
        lesson = gateway.get_lesson(course_id, lesson_id)
        if not lesson:
            raise LessonNotFound(lesson_id, course_id)
        return lesson_to_dict(lesson)
