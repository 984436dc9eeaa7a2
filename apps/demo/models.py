from django.conf import settings
from django.db import models

from apps.common.models import BaseModel
from apps.courses.models import AccessType, Course


class DemoGrantQuerySet(models.QuerySet):
    def valid_at(self, now):
        return self.filter(expires_at__gt=now)

    def expired_at(self, now):
        return self.filter(expires_at__lte=now)


class DemoGrant(BaseModel):
    """데모 체험 권한.

    학생이 과정/자원 유형별로 한 번만 받을 수 있는 24시간 체험 권한.
    만료된 권한도 체험 이력으로 남겨 두어 재신청을 막음.
    resource_id가 지정되면 그 자원만 재생 가능 (superadmin 지정).
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="demo_grants")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="demo_grants")
    access_type = models.CharField(max_length=20, choices=AccessType.choices)
    resource_id = models.PositiveBigIntegerField(null=True, blank=True)
    granted_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    granted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    objects = DemoGrantQuerySet.as_manager()

    def is_expired(self, now):
        return now >= self.expires_at

    def __str__(self):
        return f"{self.user} - {self.course} ({self.access_type})"

    class Meta:
        db_table = "demo_grant"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "course", "access_type"], name="uniq_demo_grant_user_course_type"
            )
        ]
