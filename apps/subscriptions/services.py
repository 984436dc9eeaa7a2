import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.registrations.models import Enrollment, EnrollmentKind

from .models import (
    PaymentVerification,
    Subscription,
    SubscriptionStatus,
    VerificationStatus,
)

logger = logging.getLogger(__name__)


def request_subscription(student, course, plan):
    """구독 신청. 즉시 구독을 만들지 않고 결제 확인 요청(pending)을 생성.

    Raises:
        ValidationError: 이미 활성 구독이 있거나 요금제 기간 설정이 잘못된 경우.
    """
    now = timezone.now()
    if Subscription.objects.active_at(now).filter(student=student, course=course).exists():
        raise ValidationError({"error": "이미 이 과정에 대한 활성 구독이 있습니다."})

    if plan.expiry_from(now) is None:
        raise ValidationError({"error": "요금제 기간 설정이 올바르지 않습니다."})

    verification = PaymentVerification.objects.create(student=student, course=course, plan=plan, amount=plan.price)
    logger.info("결제 확인 요청 생성: student=%s course=%s plan=%s", student.pk, course.pk, plan.pk)
    return verification


@transaction.atomic
def review_payment(verification_id, reviewer, decision, notes=""):
    """관리자의 결제 확인 처리.

    승인 시 활성 구독을 만들고 유료 등록(paid enrollment)으로 전환.
    데모 등록이 있던 경우에도 유료로 덮어씀.

    Args:
        verification_id (int): 결제 확인 요청 식별자.
        reviewer (User): 처리하는 관리자.
        decision (str): approved 또는 rejected.
        notes (str): 관리자 메모.

    Returns:
        PaymentVerification: 처리된 요청.

    Raises:
        PaymentVerification.DoesNotExist: 요청이 없는 경우.
        ValidationError: 이미 처리되었거나 요금제 기간이 잘못된 경우.
    """
    verification = (
        PaymentVerification.objects.select_for_update().select_related("plan", "course").get(pk=verification_id)
    )

    if verification.status != VerificationStatus.PENDING:
        raise ValidationError({"error": "이미 처리된 결제 확인 요청입니다."})

    now = timezone.now()
    verification.status = decision
    verification.verified_by = reviewer
    verification.verified_at = now
    if notes:
        verification.notes = notes

    if decision == VerificationStatus.APPROVED:
        expires_at = verification.plan.expiry_from(now)
        if expires_at is None:
            raise ValidationError({"error": "요금제 기간 설정이 올바르지 않습니다."})

        subscription = Subscription.objects.create(
            student=verification.student,
            course=verification.course,
            plan=verification.plan,
            status=SubscriptionStatus.ACTIVE,
            starts_at=now,
            expires_at=expires_at,
            price=verification.amount,
        )
        Enrollment.objects.update_or_create(
            student=verification.student,
            course=verification.course,
            defaults={"kind": EnrollmentKind.PAID, "subscription": subscription},
        )
        verification.subscription = subscription
        logger.info(
            "결제 승인: verification=%s subscription=%s reviewer=%s", verification.pk, subscription.pk, reviewer.pk
        )
    else:
        logger.info("결제 거절: verification=%s reviewer=%s", verification.pk, reviewer.pk)

    verification.save()
    return verification
