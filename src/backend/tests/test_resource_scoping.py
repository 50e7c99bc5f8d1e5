"""
资源可见性测试
"""
import pytest
from datetime import datetime

from classroom.core.errors import ResourceNotFound
from classroom.domain import FilePayload, Resource, UrlPayload
from classroom.services import ResourceScopingResolver
from classroom.services.resource_service import is_visible


def _resource(resource_id, course_id, lesson_id=None, created_at=None, uploaded_by="u1"):
    return Resource(
        id=resource_id,
        course_id=course_id,
        lesson_id=lesson_id,
        title=f"Resource {resource_id}",
        payload=UrlPayload(external_url=f"https://example.com/{resource_id}"),
        uploaded_by=uploaded_by,
        created_at=created_at,
    )


class TestIsVisible:

    def test_lesson_scoped_resource(self):
        resource = _resource("r1", "c1", lesson_id="L1")

        assert is_visible(resource, "c1", "L1")
        assert not is_visible(resource, "c1", "L2")
        assert is_visible(resource, "c1")

    def test_course_level_resource_visible_everywhere(self):
        resource = _resource("r2", "c1")

        assert is_visible(resource, "c1", "L1")
        assert is_visible(resource, "c1", "L2")
        assert is_visible(resource, "c1")

    def test_other_course_never_visible(self):
        assert not is_visible(_resource("r3", "c2"), "c1")


class TestResolveVisible:

    @pytest.fixture
    def scoped(self, gateway, admin_user, make_course):
        course, lessons = make_course("Scoped", 2)
        other_course, other_lessons = make_course("Other", 1)
        l1, l2 = lessons

        rows = [
            _resource("course-wide", course.id, None, datetime(2024, 1, 1), admin_user.id),
            _resource("for-l1", course.id, l1.id, datetime(2024, 1, 2), admin_user.id),
            _resource("for-l2", course.id, l2.id, datetime(2024, 1, 3), admin_user.id),
            _resource("elsewhere", other_course.id, other_lessons[0].id, datetime(2024, 1, 4), admin_user.id),
        ]
        for r in rows:
            gateway.insert_resource(r)
        gateway.commit()
        return course, l1, l2

    def test_lesson_context(self, gateway, scoped):
        course, l1, l2 = scoped

        ids_l1 = [r.id for r in ResourceScopingResolver.resolve_visible(gateway, course.id, l1.id)]
        ids_l2 = [r.id for r in ResourceScopingResolver.resolve_visible(gateway, course.id, l2.id)]

        assert ids_l1 == ["for-l1", "course-wide"]
        assert ids_l2 == ["for-l2", "course-wide"]

    def test_course_context_returns_all_newest_first(self, gateway, scoped):
        course, _, _ = scoped

        ids = [r.id for r in ResourceScopingResolver.resolve_visible(gateway, course.id)]

        assert ids == ["for-l2", "for-l1", "course-wide"]

    def test_file_payload_round_trips_through_gateway(self, gateway, admin_user, seeded_course):
        course, _ = seeded_course
        gateway.insert_resource(Resource(
            id="file-1",
            course_id=course.id,
            title="Slides",
            payload=FilePayload(
                file_url="/api/resources/files/file-1",
                file_name="slides.pdf",
                saved_file_name="abc-slides.pdf",
                file_size=42,
                file_type="application/pdf",
            ),
            uploaded_by=admin_user.id,
        ))
        gateway.commit()

        data = ResourceScopingResolver.get_resource(gateway, "file-1").to_dict()

        assert data["resource_type"] == "file"
        assert data["file_name"] == "slides.pdf"
        assert data["file_size"] == 42
        assert "external_url" not in data

    def test_get_missing_resource(self, gateway):
        with pytest.raises(ResourceNotFound):
            ResourceScopingResolver.get_resource(gateway, "missing")
