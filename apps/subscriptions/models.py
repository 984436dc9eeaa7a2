from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel
from apps.common.utils import add_months
from apps.courses.models import Course


class PlanType(models.TextChoices):
    RECORDINGS_ONLY = "recordings_only", "Recordings only"
    LIVE_CLASSES_ONLY = "live_classes_only", "Live classes only"
    RECORDINGS_AND_LIVE = "recordings_and_live", "Recordings and live"


class SubscriptionPlan(BaseModel):
    """구독 요금제.

    기간은 개월 수(duration_months) 또는 고정 종료일(duration_until_date) 중 하나로 지정.
    """

    name = models.CharField(max_length=100)
    plan_type = models.CharField(max_length=30, choices=PlanType.choices)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    duration_months = models.PositiveSmallIntegerField(null=True, blank=True)
    duration_until_date = models.DateTimeField(null=True, blank=True)
    features = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name

    def expiry_from(self, start):
        """start 시점에 시작한 구독의 만료 시각. 기간 설정이 없으면 None"""
        if self.duration_months:
            return add_months(start, self.duration_months)
        if self.duration_until_date:
            return self.duration_until_date
        return None

    class Meta:
        db_table = "subscription_plan"


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    PENDING_APPROVAL = "pending_approval", "Pending approval"
    EXPIRED = "expired", "Expired"
    REJECTED = "rejected", "Rejected"


class SubscriptionQuerySet(models.QuerySet):
    def active_at(self, now):
        """status가 active이고 아직 만료되지 않은 구독"""
        return self.filter(status=SubscriptionStatus.ACTIVE, expires_at__gt=now)


class Subscription(BaseModel):
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="subscriptions")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="subscriptions")
    plan = models.ForeignKey(SubscriptionPlan, on_delete=models.PROTECT, related_name="subscriptions")
    status = models.CharField(
        max_length=20, choices=SubscriptionStatus.choices, default=SubscriptionStatus.PENDING_APPROVAL
    )
    starts_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    price = models.DecimalField(max_digits=10, decimal_places=2)

    objects = SubscriptionQuerySet.as_manager()

    def is_active_at(self, now):
        return self.status == SubscriptionStatus.ACTIVE and now < self.expires_at

    def __str__(self):
        return f"{self.student} - {self.course} ({self.status})"

    class Meta:
        db_table = "subscription"


class VerificationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class PaymentVerification(BaseModel):
    """수동 결제 확인 요청.

    학생이 구독을 신청하면 pending 상태로 생성되고,
    관리자가 승인하면 구독과 유료 등록이 생성됨.
    """

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payment_verifications"
    )
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="payment_verifications")
    plan = models.ForeignKey(SubscriptionPlan, on_delete=models.PROTECT, related_name="payment_verifications")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, choices=VerificationStatus.choices, default=VerificationStatus.PENDING)
    notes = models.TextField(blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    subscription = models.OneToOneField(
        Subscription, on_delete=models.SET_NULL, null=True, blank=True, related_name="payment_verification"
    )

    class Meta:
        db_table = "payment_verification"
