import pytest
from django.urls import reverse

from apps.registrations.models import Enrollment, EnrollmentKind

pytestmark = pytest.mark.django_db


def test_lists_paid_and_demo_enrollments(api_client, student, course):
    other = type(course).objects.create(title="리듬 훈련", is_published=True)
    Enrollment.objects.create(student=student, course=course, kind=EnrollmentKind.PAID)
    Enrollment.objects.create(student=student, course=other, kind=EnrollmentKind.DEMO)
    api_client.force_authenticate(user=student)

    response = api_client.get(reverse("enrollment-in-progress"))

    assert response.status_code == 200
    assert {(e["title"], e["kind"]) for e in response.data} == {("화성학 기초", "paid"), ("리듬 훈련", "demo")}


def test_teacher_is_rejected(api_client, teacher):
    api_client.force_authenticate(user=teacher)

    assert api_client.get(reverse("enrollment-in-progress")).status_code == 403
