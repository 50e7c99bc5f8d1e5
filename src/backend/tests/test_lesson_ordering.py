"""
课时排序测试

- 上移 / 下移：交换 order 值、边界不变
- 新课时 order 分配
- 规范排序与 section 分组
- 非事务模式下的部分失败与日志修复
"""
import pytest
from datetime import datetime

from classroom.core.errors import LessonNotFound, PartialFailureError, StorageError, ValidationError
from classroom.core.lesson_order import group_by_section, sort_lessons
from classroom.domain import Lesson
from classroom.gateway import PersistenceGateway
from classroom.services import LessonOrderingService
from classroom.services.lesson_ordering_service import parse_order


class FlakyGateway(PersistenceGateway):
    """第 fail_on_call 次 update_lesson_order 调用抛出 StorageError"""

    def __init__(self, db, fail_on_call):
        super().__init__(db)
        self.fail_on_call = fail_on_call
        self.calls = 0

    def update_lesson_order(self, course_id, lesson_id, order):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise StorageError("模拟写入失败")
        return super().update_lesson_order(course_id, lesson_id, order)


def _orders(gateway, course_id):
    return {lesson.title: lesson.order for lesson in gateway.list_lessons(course_id)}


class TestReorder:

    def test_move_up_swaps_order_values(self, gateway, seeded_course):
        course, lessons = seeded_course
        service = LessonOrderingService(gateway)

        result = service.reorder(course.id, lessons[1].id, "up")

        assert _orders(gateway, course.id) == {"Lesson 1": 2, "Lesson 2": 1, "Lesson 3": 3}
        assert [lesson.title for lesson in result] == ["Lesson 2", "Lesson 1", "Lesson 3"]

    def test_move_down(self, gateway, seeded_course):
        course, lessons = seeded_course

        LessonOrderingService(gateway).reorder(course.id, lessons[0].id, "down")

        assert _orders(gateway, course.id) == {"Lesson 1": 2, "Lesson 2": 1, "Lesson 3": 3}

    def test_swap_keeps_sparse_values(self, gateway, content_service):
        course = content_service.create_course("Sparse")
        first = content_service.create_lesson(course.id, "First", order=10)
        content_service.create_lesson(course.id, "Second", order=20)

        LessonOrderingService(gateway).reorder(course.id, first.id, "down")

        assert _orders(gateway, course.id) == {"First": 20, "Second": 10}

    @pytest.mark.parametrize("index,direction", [(0, "up"), (2, "down")])
    def test_boundary_is_noop(self, gateway, seeded_course, index, direction):
        course, lessons = seeded_course

        result = LessonOrderingService(gateway).reorder(course.id, lessons[index].id, direction)

        assert _orders(gateway, course.id) == {"Lesson 1": 1, "Lesson 2": 2, "Lesson 3": 3}
        assert [lesson.id for lesson in result] == [lesson.id for lesson in lessons]

    def test_invalid_direction(self, gateway, seeded_course):
        course, lessons = seeded_course

        with pytest.raises(ValidationError):
            LessonOrderingService(gateway).reorder(course.id, lessons[0].id, "sideways")

    @pytest.mark.parametrize("atomic", [True, False])
    def test_equal_orders_still_move(self, gateway, content_service, atomic):
        course = content_service.create_course("Ties")
        content_service.create_lesson(course.id, "A", order=1)
        content_service.create_lesson(course.id, "B", order=1)
        service = LessonOrderingService(gateway, atomic=atomic)
        before = service.list_lessons(course.id)

        result = service.reorder(course.id, before[1].id, "up")

        assert [lesson.id for lesson in result] == [before[1].id, before[0].id]
        assert [lesson.order for lesson in result] == [1, 2]

    def test_equal_orders_renumber_whole_course(self, gateway, content_service):
        course = content_service.create_course("Ties")
        content_service.create_lesson(course.id, "First", order=0)
        content_service.create_lesson(course.id, "X", order=5)
        content_service.create_lesson(course.id, "Y", order=5)
        service = LessonOrderingService(gateway)
        before = service.list_lessons(course.id)

        result = service.reorder(course.id, before[2].id, "up")

        assert [lesson.id for lesson in result] == [before[0].id, before[2].id, before[1].id]
        assert [lesson.order for lesson in result] == [1, 2, 3]

    def test_unknown_lesson(self, gateway, seeded_course):
        course, _ = seeded_course

        with pytest.raises(LessonNotFound):
            LessonOrderingService(gateway).reorder(course.id, "missing", "up")


class TestAtomicSwapFailure:

    def test_second_write_failure_rolls_back_both(self, db_session, gateway, seeded_course):
        course, lessons = seeded_course
        service = LessonOrderingService(FlakyGateway(db_session, fail_on_call=2), atomic=True)

        with pytest.raises(StorageError):
            service.reorder(course.id, lessons[1].id, "up")

        assert _orders(gateway, course.id) == {"Lesson 1": 1, "Lesson 2": 2, "Lesson 3": 3}


class TestJournaledSwap:

    def test_successful_swap_marks_journal_applied(self, gateway, seeded_course):
        course, lessons = seeded_course

        LessonOrderingService(gateway, atomic=False).reorder(course.id, lessons[1].id, "up")

        assert _orders(gateway, course.id) == {"Lesson 1": 2, "Lesson 2": 1, "Lesson 3": 3}
        assert gateway.list_pending_reorders(course.id) == []

    def test_partial_failure_is_reported(self, db_session, gateway, seeded_course):
        course, lessons = seeded_course
        service = LessonOrderingService(FlakyGateway(db_session, fail_on_call=2), atomic=False)

        with pytest.raises(PartialFailureError) as exc_info:
            service.reorder(course.id, lessons[1].id, "up")

        assert exc_info.value.written_lesson_id == lessons[1].id
        assert exc_info.value.pending_lesson_id == lessons[0].id
        # 第一条已写入，第二条未写入：两个课时 order 相同
        assert _orders(gateway, course.id) == {"Lesson 1": 1, "Lesson 2": 1, "Lesson 3": 3}
        assert len(gateway.list_pending_reorders(course.id)) == 1

    def test_next_read_repairs_partial_swap(self, db_session, gateway, seeded_course):
        course, lessons = seeded_course
        with pytest.raises(PartialFailureError):
            LessonOrderingService(FlakyGateway(db_session, fail_on_call=2), atomic=False).reorder(
                course.id, lessons[1].id, "up"
            )

        repaired = LessonOrderingService(gateway, atomic=False).list_lessons(course.id)

        assert [lesson.title for lesson in repaired] == ["Lesson 2", "Lesson 1", "Lesson 3"]
        assert _orders(gateway, course.id) == {"Lesson 1": 2, "Lesson 2": 1, "Lesson 3": 3}
        assert gateway.list_pending_reorders(course.id) == []

    def test_edit_after_failure_is_not_overwritten(self, db_session, gateway, content_service, seeded_course):
        course, lessons = seeded_course
        with pytest.raises(PartialFailureError):
            LessonOrderingService(FlakyGateway(db_session, fail_on_call=2), atomic=False).reorder(
                course.id, lessons[1].id, "up"
            )
        content_service.update_lesson(course.id, lessons[0].id, {"order": 99})

        LessonOrderingService(gateway, atomic=False).list_lessons(course.id)

        assert _orders(gateway, course.id) == {"Lesson 1": 99, "Lesson 2": 1, "Lesson 3": 3}
        assert gateway.list_pending_reorders(course.id) == []

    def test_deleted_lesson_abandons_journal(self, db_session, gateway, content_service, seeded_course):
        course, lessons = seeded_course
        with pytest.raises(PartialFailureError):
            LessonOrderingService(FlakyGateway(db_session, fail_on_call=2), atomic=False).reorder(
                course.id, lessons[1].id, "up"
            )
        content_service.delete_lesson(course.id, lessons[0].id)

        remaining = LessonOrderingService(gateway, atomic=False).list_lessons(course.id)

        assert [(lesson.title, lesson.order) for lesson in remaining] == [("Lesson 2", 1), ("Lesson 3", 3)]
        assert gateway.list_pending_reorders(course.id) == []

    def test_first_write_failure_changes_nothing(self, db_session, gateway, seeded_course):
        course, lessons = seeded_course

        with pytest.raises(StorageError) as exc_info:
            LessonOrderingService(FlakyGateway(db_session, fail_on_call=1), atomic=False).reorder(
                course.id, lessons[1].id, "up"
            )

        assert not isinstance(exc_info.value, PartialFailureError)
        assert _orders(gateway, course.id) == {"Lesson 1": 1, "Lesson 2": 2, "Lesson 3": 3}
        assert gateway.list_pending_reorders(course.id) == []


class TestAssignOrder:

    def test_default_is_max_plus_one(self, gateway, seeded_course):
        course, _ = seeded_course
        assert LessonOrderingService(gateway).assign_order_for_new_lesson(course.id) == 4

    def test_empty_course_starts_at_one(self, gateway, content_service):
        course = content_service.create_course("Empty")
        assert LessonOrderingService(gateway).assign_order_for_new_lesson(course.id) == 1

    def test_requested_order_used_verbatim(self, gateway, seeded_course):
        course, _ = seeded_course
        assert LessonOrderingService(gateway).assign_order_for_new_lesson(course.id, 2) == 2

    @pytest.mark.parametrize("value,expected", [(3, 3), ("7", 7), (4.0, 4), (" 12 ", 12)])
    def test_parse_order(self, value, expected):
        assert parse_order(value) == expected

    @pytest.mark.parametrize("value", ["abc", 1.5, True, None, ""])
    def test_parse_order_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_order(value)


class TestCanonicalOrder:

    def test_duplicate_orders_tie_break_by_creation(self):
        early = Lesson(id="b", course_id="c", title="Early", order=1, created_at=datetime(2024, 1, 1))
        late = Lesson(id="a", course_id="c", title="Late", order=1, created_at=datetime(2024, 1, 2))
        first = Lesson(id="z", course_id="c", title="First", order=0, created_at=datetime(2024, 1, 3))

        assert [lesson.title for lesson in sort_lessons([late, early, first])] == ["First", "Early", "Late"]

    def test_group_by_section_keeps_first_appearance(self):
        lessons = [
            Lesson(id="1", course_id="c", title="Intro", order=1, section="Basics"),
            Lesson(id="2", course_id="c", title="Loose", order=2),
            Lesson(id="3", course_id="c", title="Advanced", order=3, section="Deep Dive"),
            Lesson(id="4", course_id="c", title="More basics", order=4, section="Basics"),
        ]

        groups = group_by_section(lessons)

        assert [g.section for g in groups] == ["Basics", None, "Deep Dive"]
        assert [lesson.title for lesson in groups[0].lessons] == ["Intro", "More basics"]

    def test_no_sections_single_group(self):
        lessons = [Lesson(id=str(i), course_id="c", title=f"L{i}", order=i, section=" ") for i in range(3)]

        groups = group_by_section(lessons)

        assert len(groups) == 1
        assert groups[0].section is None
        assert len(groups[0].lessons) == 3
