from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone

from apps.demo.models import DemoGrant
from apps.registrations.models import Enrollment, EnrollmentKind

from .conftest import make_recording

pytestmark = pytest.mark.django_db

RECORDING = "lecture_recording"


def expire(grant, hours_ago=1):
    DemoGrant.objects.filter(pk=grant.pk).update(
        granted_at=timezone.now() - timedelta(hours=24 + hours_ago),
        expires_at=timezone.now() - timedelta(hours=hours_ago),
    )


class TestDemoRequest:
    def test_first_request_creates_grant_and_demo_enrollment(self, api_client, student, course):
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert response.status_code == 201
        grant = DemoGrant.objects.get(user=student, course=course, access_type=RECORDING)
        assert grant.expires_at - grant.granted_at == timedelta(hours=24)
        assert Enrollment.objects.get(student=student, course=course).kind == EnrollmentKind.DEMO
        assert response["Cache-Control"] == "no-store"

    def test_repeat_request_returns_existing_grant(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        first = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        second = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert second.status_code == 200
        assert second.data["demo_access"]["id"] == first.data["demo_access"]["id"]
        assert DemoGrant.objects.count() == 1

    def test_expired_grant_is_not_renewed(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})
        grant = DemoGrant.objects.get(user=student)
        expire(grant)

        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert response.status_code == 409
        grant.refresh_from_db()
        assert grant.expires_at < timezone.now()

    def test_grant_expires_after_demo_duration(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        granted_at = timezone.now()
        with patch("django.utils.timezone.now", return_value=granted_at):
            api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        with patch("django.utils.timezone.now", return_value=granted_at + timedelta(hours=24)):
            response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert response.status_code == 409

    def test_each_access_type_gets_its_own_trial(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": "live_class"})

        assert response.status_code == 201
        assert DemoGrant.objects.filter(user=student, course=course).count() == 2
        assert Enrollment.objects.filter(student=student, course=course).count() == 1

    def test_paid_enrollment_is_kept(self, api_client, student, course):
        Enrollment.objects.create(student=student, course=course, kind=EnrollmentKind.PAID)
        api_client.force_authenticate(user=student)

        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert Enrollment.objects.get(student=student, course=course).kind == EnrollmentKind.PAID

    def test_teacher_cannot_request_demo(self, api_client, teacher, course):
        api_client.force_authenticate(user=teacher)

        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert response.status_code == 403

    def test_unknown_course(self, api_client, student):
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("demo-access"), {"course_id": 9999, "access_type": RECORDING})

        assert response.status_code == 404

    def test_invalid_access_type(self, api_client, student, course):
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": "quiz"})

        assert response.status_code == 400

    def test_anonymous_request_is_rejected(self, api_client, course):
        response = api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})

        assert response.status_code == 401


class TestDemoList:
    def test_lists_valid_and_expired_grants(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": "live_class"})
        expire(DemoGrant.objects.get(user=student, access_type="live_class"))

        response = api_client.get(reverse("demo-access"))

        assert response.status_code == 200
        assert response["Cache-Control"] == "no-store"
        assert response.data["has_access"] is True
        assert [g["access_type"] for g in response.data["demo_access"]] == [RECORDING]
        assert [g["access_type"] for g in response.data["expired"]] == ["live_class"]
        assert response.data["expired"][0]["remaining_seconds"] == 0

    def test_demo_enrollment_removed_when_all_grants_expired(self, api_client, student, course):
        api_client.force_authenticate(user=student)
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})
        expire(DemoGrant.objects.get(user=student))

        response = api_client.get(reverse("demo-access"), {"course_id": course.id})

        assert response.data["has_access"] is False
        assert not Enrollment.objects.filter(student=student, course=course).exists()
        # 체험 이력은 남아 재신청 불가
        assert DemoGrant.objects.filter(user=student, course=course).exists()


class TestAdminDemo:
    def test_admin_grant_renews_expired_trial(self, api_client, admin_user, student, course):
        grant = DemoGrant.objects.create(
            user=student,
            course=course,
            access_type=RECORDING,
            granted_at=timezone.now() - timedelta(days=3),
            expires_at=timezone.now() - timedelta(days=2),
        )
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            reverse("admin-demo-grant"),
            {"user_id": student.id, "course_id": course.id, "access_type": RECORDING},
        )

        assert response.status_code == 200
        grant.refresh_from_db()
        assert grant.expires_at > timezone.now()
        assert grant.granted_by == admin_user
        assert Enrollment.objects.get(student=student, course=course).kind == EnrollmentKind.DEMO

    def test_admin_grant_unknown_student(self, api_client, admin_user, teacher, course):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            reverse("admin-demo-grant"),
            {"user_id": teacher.id, "course_id": course.id, "access_type": RECORDING},
        )

        assert response.status_code == 404

    def test_student_cannot_use_admin_grant(self, api_client, student, course):
        api_client.force_authenticate(user=student)

        response = api_client.post(
            reverse("admin-demo-grant"),
            {"user_id": student.id, "course_id": course.id, "access_type": RECORDING},
        )

        assert response.status_code == 403

    def test_revoke_deletes_grant_and_demo_enrollment(self, api_client, admin_user, student, course):
        api_client.force_authenticate(user=student)
        api_client.post(reverse("demo-access"), {"course_id": course.id, "access_type": RECORDING})
        grant = DemoGrant.objects.get(user=student)

        api_client.force_authenticate(user=admin_user)
        response = api_client.delete(reverse("demo-access-revoke", args=[grant.id]))

        assert response.status_code == 204
        assert not DemoGrant.objects.exists()
        assert not Enrollment.objects.filter(student=student, course=course).exists()

    def test_revoke_unknown_grant(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        assert api_client.delete(reverse("demo-access-revoke", args=[12345])).status_code == 404

    def test_admin_list_filters_by_course(self, api_client, admin_user, student, course):
        other = type(course).objects.create(title="리듬 훈련", is_published=True)
        now = timezone.now()
        for target in (course, other):
            DemoGrant.objects.create(
                user=student, course=target, access_type=RECORDING, granted_at=now, expires_at=now + timedelta(days=1)
            )
        api_client.force_authenticate(user=admin_user)

        response = api_client.get(reverse("admin-demo-list"), {"course_id": other.id})

        assert response.status_code == 200
        assert [g["course"] for g in response.data] == [other.id]

    def test_superadmin_pins_grant_resource(self, api_client, superadmin, student, recordings):
        a, b = recordings
        now = timezone.now()
        grant = DemoGrant.objects.create(
            user=student, course=a.course, access_type=RECORDING, granted_at=now, expires_at=now + timedelta(days=1)
        )
        api_client.force_authenticate(user=superadmin)

        response = api_client.patch(
            reverse("admin-demo-resource", args=[grant.id]), {"resource_id": b.id}, format="json"
        )

        assert response.status_code == 200
        grant.refresh_from_db()
        assert grant.resource_id == b.id

    def test_pin_rejects_resource_from_other_course(self, api_client, superadmin, student, course):
        other = type(course).objects.create(title="리듬 훈련", is_published=True)
        foreign = make_recording(other, "X")
        now = timezone.now()
        grant = DemoGrant.objects.create(
            user=student, course=course, access_type=RECORDING, granted_at=now, expires_at=now + timedelta(days=1)
        )
        api_client.force_authenticate(user=superadmin)

        response = api_client.patch(
            reverse("admin-demo-resource", args=[grant.id]), {"resource_id": foreign.id}, format="json"
        )

        assert response.status_code == 400
        grant.refresh_from_db()
        assert grant.resource_id is None

    def test_admin_cannot_pin_resource(self, api_client, admin_user, student, course):
        now = timezone.now()
        grant = DemoGrant.objects.create(
            user=student, course=course, access_type=RECORDING, granted_at=now, expires_at=now + timedelta(days=1)
        )
        api_client.force_authenticate(user=admin_user)

        response = api_client.patch(reverse("admin-demo-resource", args=[grant.id]), {"resource_id": 1}, format="json")

        assert response.status_code == 403


class TestPurgeCommand:
    def test_purge_removes_stale_demo_enrollments_only(self, student, course, make_user):
        active_student = make_user()
        now = timezone.now()
        DemoGrant.objects.create(
            user=student,
            course=course,
            access_type=RECORDING,
            granted_at=now - timedelta(days=2),
            expires_at=now - timedelta(days=1),
        )
        DemoGrant.objects.create(
            user=active_student,
            course=course,
            access_type=RECORDING,
            granted_at=now,
            expires_at=now + timedelta(days=1),
        )
        Enrollment.objects.create(student=student, course=course, kind=EnrollmentKind.DEMO)
        Enrollment.objects.create(student=active_student, course=course, kind=EnrollmentKind.DEMO)
        out = StringIO()

        call_command("purge_expired_demos", stdout=out)

        assert not Enrollment.objects.filter(student=student).exists()
        assert Enrollment.objects.filter(student=active_student).exists()
        assert DemoGrant.objects.count() == 2
        assert "1건" in out.getvalue()

    def test_prune_days_deletes_old_grants(self, student, course):
        now = timezone.now()
        DemoGrant.objects.create(
            user=student,
            course=course,
            access_type=RECORDING,
            granted_at=now - timedelta(days=40),
            expires_at=now - timedelta(days=39),
        )

        call_command("purge_expired_demos", "--prune-days", "30", stdout=StringIO())

        assert not DemoGrant.objects.exists()
