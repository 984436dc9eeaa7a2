"""
테스트 공통 fixture.

Object Storage 호출은 모두 mock 처리하고, 캐시는 테스트마다 비움.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from apps.courses.models import Course, LectureRecording, LiveClass
from apps.users.models import Role, User


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def storage_delete():
    """모델 저장/삭제 시 Object Storage 삭제 호출 차단"""
    with patch("apps.courses.models.delete_file_from_storage") as mocked:
        yield mocked


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    sequence = iter(range(1, 10000))

    def _make(role=Role.STUDENT, **extra_fields):
        n = next(sequence)
        return User.objects.create_user(email=f"{role}{n}@example.com", name=f"{role}{n}", role=role, **extra_fields)

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT)


@pytest.fixture
def teacher(make_user):
    return make_user(Role.TEACHER)


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN, is_staff=True)


@pytest.fixture
def superadmin(make_user):
    return make_user(Role.SUPERADMIN, is_staff=True)


@pytest.fixture
def course(db):
    return Course.objects.create(title="화성학 기초", price=100000, is_published=True)


def make_recording(course, title, created_at=None, **fields):
    fields.setdefault("is_published", True)
    fields.setdefault("video_key", f"courses/{course.id}/recordings/{title}.mp4")
    recording = LectureRecording.objects.create(course=course, title=title, **fields)
    if created_at is not None:
        # auto_now_add 필드는 update로만 변경 가능
        LectureRecording.objects.filter(pk=recording.pk).update(created_at=created_at)
        recording.refresh_from_db()
    return recording


def make_live_class(course, title, created_at=None, **fields):
    fields.setdefault("is_published", True)
    fields.setdefault("scheduled_at", timezone.now() + timedelta(days=1))
    fields.setdefault("meeting_url", "https://meet.example.com/abc")
    live_class = LiveClass.objects.create(course=course, title=title, **fields)
    if created_at is not None:
        LiveClass.objects.filter(pk=live_class.pk).update(created_at=created_at)
        live_class.refresh_from_db()
    return live_class


@pytest.fixture
def recordings(course):
    """A(3일 전), B(1일 전) 녹화 영상"""
    now = timezone.now()
    a = make_recording(course, "A", created_at=now - timedelta(days=3))
    b = make_recording(course, "B", created_at=now - timedelta(days=1))
    return a, b
