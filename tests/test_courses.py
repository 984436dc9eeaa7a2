from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from django.core import signing
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from apps.courses.models import LectureRecording, TeacherCourse
from apps.courses.tokens import issue_play_token, read_play_token
from apps.demo.guest import issue_guest_token, read_guest_token, start_guest_demo
from apps.demo.models import DemoGrant
from apps.registrations.models import Enrollment, EnrollmentKind

from .conftest import make_live_class, make_recording

pytestmark = pytest.mark.django_db

RECORDING = "lecture_recording"


def give_demo(student, course, access_type=RECORDING):
    now = timezone.now()
    Enrollment.objects.get_or_create(student=student, course=course, defaults={"kind": EnrollmentKind.DEMO})
    return DemoGrant.objects.create(
        user=student, course=course, access_type=access_type, granted_at=now, expires_at=now + timedelta(days=1)
    )


def locked_map(response):
    return {item["id"]: item["locked"] for item in response.data["items"]}


class TestCourseList:
    def test_only_published_courses(self, api_client, course):
        type(course).objects.create(title="준비 중", is_published=False)

        response = api_client.get(reverse("course-list"))

        assert response.status_code == 200
        assert [c["id"] for c in response.data] == [course.id]

    def test_teaching_courses(self, api_client, teacher, course):
        TeacherCourse.objects.create(teacher=teacher, course=course)
        api_client.force_authenticate(user=teacher)

        response = api_client.get(reverse("course-teaching"))

        assert [c["id"] for c in response.data] == [course.id]

    def test_student_cannot_list_teaching_courses(self, api_client, student):
        api_client.force_authenticate(user=student)

        assert api_client.get(reverse("course-teaching")).status_code == 403


class TestRecordingList:
    def test_demo_student_sees_one_unlocked(self, api_client, student, recordings):
        a, b = recordings
        give_demo(student, a.course)
        api_client.force_authenticate(user=student)

        response = api_client.get(reverse("course-recordings", args=[a.course_id]))

        assert response.status_code == 200
        assert locked_map(response) == {a.id: False, b.id: True}
        assert response.data["entitlement"]["tier"] == "demo"
        assert "video_key" not in response.data["items"][0]

    def test_paid_student_sees_all_unlocked(self, api_client, student, recordings):
        a, b = recordings
        Enrollment.objects.create(student=student, course=a.course, kind=EnrollmentKind.PAID)
        api_client.force_authenticate(user=student)

        response = api_client.get(reverse("course-recordings", args=[a.course_id]))

        assert locked_map(response) == {a.id: False, b.id: False}

    def test_student_without_access_sees_all_locked(self, api_client, student, recordings):
        a, b = recordings
        api_client.force_authenticate(user=student)

        response = api_client.get(reverse("course-recordings", args=[a.course_id]))

        assert locked_map(response) == {a.id: True, b.id: True}
        assert response.data["entitlement"]["action"] == "upgrade"

    def test_teacher_sees_unpublished(self, api_client, teacher, recordings):
        a, b = recordings
        hidden = make_recording(a.course, "C", is_published=False)
        api_client.force_authenticate(user=teacher)

        response = api_client.get(reverse("course-recordings", args=[a.course_id]))

        assert locked_map(response) == {a.id: False, b.id: False, hidden.id: False}

    def test_guest_sees_first_recording_unlocked(self, api_client, recordings):
        a, b = recordings

        response = api_client.get(reverse("course-recordings", args=[a.course_id]))

        assert locked_map(response) == {a.id: False, b.id: True}
        assert response.data["entitlement"]["demo_available"] is True

    def test_listing_cache_is_cleared_on_save(self, api_client, student, recordings):
        a, _ = recordings
        Enrollment.objects.create(student=student, course=a.course, kind=EnrollmentKind.PAID)
        api_client.force_authenticate(user=student)
        url = reverse("course-recordings", args=[a.course_id])
        api_client.get(url)

        added = make_recording(a.course, "C")
        response = api_client.get(url)

        assert added.id in locked_map(response)

    def test_unknown_course(self, api_client):
        assert api_client.get(reverse("course-recordings", args=[9999])).status_code == 404


class TestLiveClassList:
    def test_locked_live_class_hides_meeting_url(self, api_client, student, course):
        first = make_live_class(course, "1회차", created_at=timezone.now() - timedelta(days=2))
        second = make_live_class(course, "2회차")
        give_demo(student, course, access_type="live_class")
        api_client.force_authenticate(user=student)

        response = api_client.get(reverse("course-live-classes", args=[course.id]))

        items = {item["id"]: item for item in response.data["items"]}
        assert items[first.id]["locked"] is False
        assert items[first.id]["meeting_url"] == "https://meet.example.com/abc"
        assert items[second.id]["locked"] is True
        assert items[second.id]["meeting_url"] is None

    def test_recording_demo_does_not_unlock_live_classes(self, api_client, student, course):
        live = make_live_class(course, "1회차")
        give_demo(student, course, access_type=RECORDING)
        api_client.force_authenticate(user=student)

        response = api_client.get(reverse("course-live-classes", args=[course.id]))

        assert locked_map(response) == {live.id: True}

    def test_guest_without_window_gets_no_meeting_url(self, api_client, course):
        first = make_live_class(course, "1회차")

        response = api_client.get(reverse("course-live-classes", args=[course.id]))

        assert response.status_code == 200
        assert response.data["entitlement"]["tier"] == "guest_demo"
        assert response.data["entitlement"]["expires_at"] is None
        item = response.data["items"][0]
        assert item["id"] == first.id
        assert item["locked"] is True
        assert item["meeting_url"] is None

    def test_guest_with_started_window_gets_first_meeting_url(self, api_client, course):
        first = make_live_class(course, "1회차", created_at=timezone.now() - timedelta(days=2))
        second = make_live_class(course, "2회차")
        token = issue_guest_token(start_guest_demo(course.id, "live_class", first.id, timezone.now()))

        response = api_client.get(reverse("course-live-classes", args=[course.id]), {"guest_token": token})

        items = {item["id"]: item for item in response.data["items"]}
        assert items[first.id]["meeting_url"] == "https://meet.example.com/abc"
        assert items[second.id]["meeting_url"] is None

    def test_recording_guest_token_is_ignored_for_live_classes(self, api_client, recordings):
        first_recording = recordings[0]
        live = make_live_class(first_recording.course, "1회차")
        token = issue_guest_token(
            start_guest_demo(first_recording.course_id, RECORDING, first_recording.id, timezone.now())
        )

        response = api_client.get(
            reverse("course-live-classes", args=[first_recording.course_id]), HTTP_X_GUEST_DEMO_TOKEN=token
        )

        assert response.status_code == 200
        assert response.data["entitlement"]["expires_at"] is None
        assert response.data["items"][0]["id"] == live.id
        assert response.data["items"][0]["locked"] is True
        assert response.data["items"][0]["meeting_url"] is None


class TestSetDemoRecording:
    def test_superadmin_moves_course_demo(self, api_client, superadmin, recordings):
        a, b = recordings
        LectureRecording.objects.filter(pk=a.pk).update(is_demo=True)
        api_client.force_authenticate(user=superadmin)

        response = api_client.post(
            reverse("course-recordings-set-demo", args=[a.course_id]), {"recording_id": b.id}, format="json"
        )

        assert response.status_code == 200
        assert list(LectureRecording.objects.filter(is_demo=True).values_list("id", flat=True)) == [b.id]

    def test_set_demo_refreshes_guest_listing(self, api_client, superadmin, recordings):
        a, b = recordings
        url = reverse("course-recordings", args=[a.course_id])
        assert locked_map(api_client.get(url))[a.id] is False

        api_client.force_authenticate(user=superadmin)
        api_client.post(reverse("course-recordings-set-demo", args=[a.course_id]), {"recording_id": b.id}, format="json")
        api_client.force_authenticate(user=None)

        assert locked_map(api_client.get(url)) == {a.id: True, b.id: False}

    def test_recording_from_other_course(self, api_client, superadmin, course):
        other = type(course).objects.create(title="리듬 훈련")
        foreign = make_recording(other, "X")
        api_client.force_authenticate(user=superadmin)

        response = api_client.post(
            reverse("course-recordings-set-demo", args=[course.id]), {"recording_id": foreign.id}, format="json"
        )

        assert response.status_code == 400

    def test_admin_cannot_set_demo(self, api_client, admin_user, recordings):
        a, b = recordings
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            reverse("course-recordings-set-demo", args=[a.course_id]), {"recording_id": b.id}, format="json"
        )

        assert response.status_code == 403


class TestAccessToken:
    def test_demo_student_gets_token_for_demo_recording(self, api_client, student, recordings):
        a, _ = recordings
        give_demo(student, a.course)
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": a.id}, format="json")

        assert response.status_code == 200
        assert response.data["expires_in"] == 600
        payload = read_play_token(response.data["token"])
        assert payload == {"sub": f"user:{student.id}", "key": a.video_key, "course": a.course_id, "rec": a.id}

    def test_demo_student_denied_other_recording(self, api_client, student, recordings):
        a, b = recordings
        give_demo(student, a.course)
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": b.id}, format="json")

        assert response.status_code == 403
        assert response.data["entitlement"]["demo_resource_id"] == a.id

    def test_guest_first_play_starts_guest_demo(self, api_client, recordings):
        a, b = recordings

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": a.id}, format="json")

        assert response.status_code == 200
        state = read_guest_token(response.data["guest_token"])
        assert state.resource_id == a.id
        assert response.data["entitlement"]["remaining_seconds"] == 24 * 3600

    def test_guest_second_recording_is_denied(self, api_client, recordings):
        a, b = recordings
        guest_token = issue_guest_token(start_guest_demo(a.course_id, RECORDING, a.id, timezone.now()))

        response = api_client.post(
            reverse("lecture-recording-access-token"),
            {"recording_id": b.id, "guest_token": guest_token},
            format="json",
        )

        assert response.status_code == 403
        assert response.data["entitlement"]["action"] == "signup"

    def test_guest_without_token_cannot_pick_second_recording(self, api_client, recordings):
        _, b = recordings

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": b.id}, format="json")

        assert response.status_code == 403
        assert "guest_token" not in response.data

    def test_unpublished_recording_hidden_from_students(self, api_client, student, course):
        hidden = make_recording(course, "C", is_published=False)
        Enrollment.objects.create(student=student, course=course, kind=EnrollmentKind.PAID)
        api_client.force_authenticate(user=student)

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": hidden.id}, format="json")

        assert response.status_code == 404

    def test_recording_without_video(self, api_client, teacher, course):
        empty = make_recording(course, "C", video_key="")
        api_client.force_authenticate(user=teacher)

        response = api_client.post(reverse("lecture-recording-access-token"), {"recording_id": empty.id}, format="json")

        assert response.status_code == 404


class TestStream:
    def test_returns_signed_url(self, api_client, recordings):
        a, _ = recordings
        token = issue_play_token("guest", a)
        s3_client = MagicMock()
        s3_client.generate_presigned_url.return_value = "https://storage.example.com/signed"

        with patch("apps.common.utils.boto3.client", return_value=s3_client):
            response = api_client.get(reverse("lecture-recording-stream"), {"token": token})

        assert response.status_code == 200
        assert response.data == {"url": "https://storage.example.com/signed", "expires_in": 1800}
        _, kwargs = s3_client.generate_presigned_url.call_args
        assert kwargs["Params"]["Key"] == a.video_key
        assert kwargs["ExpiresIn"] == 1800

    def test_missing_token(self, api_client):
        assert api_client.get(reverse("lecture-recording-stream")).status_code == 401

    def test_expired_token(self, api_client, recordings):
        a, _ = recordings
        token = issue_play_token("guest", a)

        with patch("django.core.signing.time.time", return_value=signing.time.time() + 601):
            response = api_client.get(reverse("lecture-recording-stream"), {"token": token})

        assert response.status_code == 401

    def test_forged_token(self, api_client):
        forged = signing.dumps({"sub": "guest", "key": "courses/1/x.mp4"}, salt="other-salt")

        assert api_client.get(reverse("lecture-recording-stream"), {"token": forged}).status_code == 401

    def test_storage_error_is_502(self, api_client, recordings):
        a, _ = recordings
        s3_client = MagicMock()
        s3_client.generate_presigned_url.side_effect = ClientError({"Error": {"Code": "500"}}, "GetObject")

        with patch("apps.common.utils.boto3.client", return_value=s3_client):
            response = api_client.get(reverse("lecture-recording-stream"), {"token": issue_play_token("guest", a)})

        assert response.status_code == 502

    @override_settings(AWS_STORAGE_BUCKET_NAME=None)
    def test_streaming_not_configured(self, api_client, recordings):
        a, _ = recordings

        response = api_client.get(reverse("lecture-recording-stream"), {"token": issue_play_token("guest", a)})

        assert response.status_code == 500
