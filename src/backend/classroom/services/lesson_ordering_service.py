"""
课时排序服务

维护课程内课时的顺序：上移 / 下移（交换相邻两条课时的 order 值）以及新课时的 order 分配。
"""
import logging
from typing import Any, List, Optional, Union

from classroom.core.errors import (
    CourseNotFound,
    LessonNotFound,
    PartialFailureError,
    StorageError,
    ValidationError,
)
from classroom.core.lesson_order import next_order, sort_lessons
from classroom.domain import Direction, Lesson
from classroom.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def parse_direction(value: Union[str, Direction]) -> Direction:
    """把 "up" / "down" 解析为 Direction"""
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"无效的移动方向: {value}，只支持 up / down")


def parse_order(value: Any) -> int:
    """
    解析排序值

    接受整数、整数值的浮点数和数字字符串，其他输入抛出 ValidationError
    """
    if isinstance(value, bool):
        raise ValidationError("order 必须是数字")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"order 必须是整数: {value}")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValidationError(f"order 必须是数字: {value!r}")
    raise ValidationError(f"order 必须是数字: {value!r}")


class LessonOrderingService:
    """
    课时排序服务

    Args:
        gateway: 持久化网关
        atomic: True 时两次写入在同一事务内完成；
                False 时先写交换日志，再分两次提交，第二次失败抛出 PartialFailureError
    """

    def __init__(self, gateway: PersistenceGateway, atomic: bool = True):
        self.gateway = gateway
        self.atomic = atomic

    def list_lessons(self, course_id: str) -> List[Lesson]:
        """按规范顺序返回课程的全部课时，读取前先修复未完成的交换"""
        self.repair_pending_swaps(course_id)
        return sort_lessons(self.gateway.list_lessons(course_id))

    def assign_order_for_new_lesson(self, course_id: str, requested_order: Optional[Any] = None) -> int:
        """
        为新课时分配 order

        提供了 requested_order 时原样使用（允许与现有 order 重复）；
        否则为 max(现有 order, 0) + 1
        """
        if requested_order is not None and requested_order != "":
            return parse_order(requested_order)
        return next_order(self.gateway.list_lessons(course_id))

    def reorder(self, course_id: str, lesson_id: str, direction: Union[str, Direction]) -> List[Lesson]:
        """
        上移 / 下移课时

        交换目标课时与相邻课时的 order 值；已在顶部上移或已在底部下移时不做任何修改

        Args:
            course_id: 课程 ID
            lesson_id: 课时 ID
            direction: up / down

        Returns:
            List[Lesson]: 更新后的课时列表

        Raises:
            ValidationError: 方向无效
            CourseNotFound / LessonNotFound: 课程或课时不存在
            StorageError: 写入失败（事务模式下两条都未修改）
            PartialFailureError: 非事务模式下第二次写入失败
        """
        move = parse_direction(direction)
        if not self.gateway.get_course(course_id):
            raise CourseNotFound(course_id)

        lessons = self.list_lessons(course_id)
        idx = next((i for i, lesson in enumerate(lessons) if lesson.id == lesson_id), None)
        if idx is None:
            raise LessonNotFound(lesson_id, course_id)

        target_idx = idx - 1 if move is Direction.UP else idx + 1
        if target_idx < 0 or target_idx >= len(lessons):
            return lessons

        if lessons[idx].order == lessons[target_idx].order:
            # order 相同时交换不会改变位置，先按当前顺序重新编号
            lessons = self._renumber(course_id, lessons)

        current, neighbour = lessons[idx], lessons[target_idx]
        if self.atomic:
            self._swap_in_transaction(course_id, current, neighbour)
        else:
            self._swap_with_journal(course_id, current, neighbour)

        logger.info(
            f"课时顺序已交换: course={course_id}, {current.id}:{current.order}->{neighbour.order}, "
            f"{neighbour.id}:{neighbour.order}->{current.order}"
        )
        return sort_lessons(self.gateway.list_lessons(course_id))

    def _renumber(self, course_id: str, lessons: List[Lesson]) -> List[Lesson]:
        """
        按规范顺序把课程的 order 重新编号为 1..n（单个事务）

        Returns:
            List[Lesson]: 重新编号后的课时列表，顺序与传入的一致
        """
        try:
            for position, lesson in enumerate(lessons, start=1):
                if lesson.order != position:
                    self.gateway.update_lesson_order(course_id, lesson.id, position)
            self.gateway.commit()
        except StorageError:
            self.gateway.rollback()
            logger.error(f"课时重新编号失败，已回滚: course={course_id}")
            raise

        logger.info(f"课时 order 存在重复，已重新编号: course={course_id}, count={len(lessons)}")
        return sort_lessons(self.gateway.list_lessons(course_id))

    def _swap_in_transaction(self, course_id: str, current: Lesson, neighbour: Lesson) -> None:
        try:
            self.gateway.update_lesson_order(course_id, current.id, neighbour.order)
            self.gateway.update_lesson_order(course_id, neighbour.id, current.order)
            self.gateway.commit()
        except StorageError:
            self.gateway.rollback()
            logger.error(f"课时顺序交换失败，已回滚: course={course_id}, lessons={current.id},{neighbour.id}")
            raise

    def _swap_with_journal(self, course_id: str, current: Lesson, neighbour: Lesson) -> None:
        journal_id = self.gateway.insert_reorder_journal(
            course_id, current.id, neighbour.order, neighbour.id, current.order
        )
        self.gateway.commit()

        try:
            self.gateway.update_lesson_order(course_id, current.id, neighbour.order)
            self.gateway.commit()
        except StorageError:
            # 第一步失败：什么都没改，作废日志
            self.gateway.set_reorder_status(journal_id, "abandoned")
            self.gateway.commit()
            raise

        try:
            self.gateway.update_lesson_order(course_id, neighbour.id, current.order)
            self.gateway.commit()
        except StorageError as e:
            logger.error(
                f"课时顺序交换部分失败: course={course_id}, 已写入={current.id}, 未写入={neighbour.id}, "
                f"journal={journal_id}"
            )
            raise PartialFailureError(
                f"课时 {current.id} 的顺序已更新，但课时 {neighbour.id} 更新失败: {e.message}",
                written_lesson_id=current.id,
                pending_lesson_id=neighbour.id,
                journal_id=journal_id,
            ) from e

        self.gateway.set_reorder_status(journal_id, "applied")
        self.gateway.commit()

    def repair_pending_swaps(self, course_id: str) -> int:
        """
        重放未完成的交换日志，返回修复的条数

        只有两条课时仍停留在部分写入的状态时才重放：
        第一条已是目标 order，第二条仍是原 order（即第一条的目标 order）。
        交换已完整生效的日志标记为 applied；课时在此之后被删除或修改过的日志标记为 abandoned。
        """
        repaired = 0
        for entry in self.gateway.list_pending_reorders(course_id):
            first = self.gateway.get_lesson(course_id, entry["first_lesson_id"])
            second = self.gateway.get_lesson(course_id, entry["second_lesson_id"])

            if first and second and first.order == entry["first_order"]:
                if second.order == entry["second_order"]:
                    self.gateway.set_reorder_status(entry["id"], "applied")
                    self.gateway.commit()
                    continue
                if second.order == entry["first_order"]:
                    self.gateway.update_lesson_order(course_id, second.id, entry["second_order"])
                    self.gateway.set_reorder_status(entry["id"], "applied")
                    self.gateway.commit()
                    repaired += 1
                    logger.warning(
                        f"已根据交换日志修复课时顺序: course={course_id}, journal={entry['id']}, "
                        f"lessons={first.id},{second.id}"
                    )
                    continue

            self.gateway.set_reorder_status(entry["id"], "abandoned")
            self.gateway.commit()
            logger.warning(
                f"课时在交换失败后已被修改，放弃重放交换日志: course={course_id}, journal={entry['id']}, "
                f"lessons={entry['first_lesson_id']},{entry['second_lesson_id']}"
            )
        return repaired
