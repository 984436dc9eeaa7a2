from django.conf import settings
from django.db import models

from apps.common.models import BaseModel
from apps.courses.models import Course


class EnrollmentKind(models.TextChoices):
    PAID = "paid", "Paid"
    DEMO = "demo", "Demo"


class Enrollment(BaseModel):
    """수강 등록 모델.

    학생과 과정을 연결하며 유료(paid) 또는 데모(demo) 등록으로 구분.
    학생당 과정별로 하나만 존재.
    """

    course = models.ForeignKey(Course, on_delete=models.CASCADE)
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="enrollments")
    kind = models.CharField(max_length=10, choices=EnrollmentKind.choices, default=EnrollmentKind.PAID)
    subscription = models.ForeignKey(
        "subscriptions.Subscription", on_delete=models.SET_NULL, null=True, blank=True, related_name="enrollments"
    )

    def __str__(self):
        return f"{self.student} - {self.course} ({self.kind})"

    class Meta:
        db_table = "enrollment"
        constraints = [models.UniqueConstraint(fields=["student", "course"], name="uniq_enrollment_student_course")]
