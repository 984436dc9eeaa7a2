import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.common.exceptions import DemoAlreadyUsed, InvalidGuestToken
from apps.courses.models import resource_model_for
from apps.registrations.models import Enrollment, EnrollmentKind

from .models import DemoGrant

logger = logging.getLogger(__name__)


def ensure_demo_enrollment(user, course):
    """데모 등록이 없으면 생성. 유료 등록이 있으면 그대로 둠"""
    enrollment, created = Enrollment.objects.get_or_create(
        student=user, course=course, defaults={"kind": EnrollmentKind.DEMO}
    )
    if created:
        logger.info("데모 등록 생성: user=%s course=%s", user.pk, course.pk)
    return enrollment


def request_demo(user, course, access_type, now=None):
    """학생의 데모 체험 신청.

    과정/자원 유형별로 한 번만 체험 가능. 유효한 권한이 있으면 그대로 반환하고,
    만료된 권한은 갱신하지 않음.

    Returns:
        tuple: (DemoGrant, created)

    Raises:
        DemoAlreadyUsed: 이미 체험 기간이 만료된 경우.
    """
    now = now or timezone.now()

    with transaction.atomic():
        grant = (
            DemoGrant.objects.select_for_update()
            .filter(user=user, course=course, access_type=access_type)
            .first()
        )
        if grant is not None:
            if grant.is_expired(now):
                raise DemoAlreadyUsed()
            ensure_demo_enrollment(user, course)
            return grant, False

        try:
            with transaction.atomic():
                grant = DemoGrant.objects.create(
                    user=user,
                    course=course,
                    access_type=access_type,
                    granted_at=now,
                    expires_at=now + settings.DEMO_DURATION,
                )
        except IntegrityError:
            # 동시에 들어온 다른 요청이 먼저 생성한 경우
            grant = DemoGrant.objects.get(user=user, course=course, access_type=access_type)
            ensure_demo_enrollment(user, course)
            return grant, False

        ensure_demo_enrollment(user, course)

    logger.info("데모 권한 생성: user=%s course=%s type=%s", user.pk, course.pk, access_type)
    return grant, True


@transaction.atomic
def admin_grant_demo(user, course, access_type, granted_by, now=None):
    """관리자에 의한 데모 권한 부여. 1회 제한과 무관하게 새 24시간 기간으로 덮어씀"""
    now = now or timezone.now()
    grant, created = DemoGrant.objects.update_or_create(
        user=user,
        course=course,
        access_type=access_type,
        defaults={
            "granted_at": now,
            "expires_at": now + settings.DEMO_DURATION,
            "granted_by": granted_by,
        },
    )
    ensure_demo_enrollment(user, course)
    logger.info(
        "관리자 데모 권한 부여: grant=%s user=%s course=%s by=%s", grant.pk, user.pk, course.pk, granted_by.pk
    )
    return grant, created


@transaction.atomic
def revoke_demo(grant_id):
    """데모 권한 삭제. 해당 과정에 남은 데모 권한이 없으면 데모 등록도 삭제

    Raises:
        DemoGrant.DoesNotExist: 권한이 없는 경우.
    """
    grant = DemoGrant.objects.select_for_update().get(pk=grant_id)
    user_id, course_id = grant.user_id, grant.course_id
    grant.delete()

    if not DemoGrant.objects.filter(user_id=user_id, course_id=course_id).exists():
        Enrollment.objects.filter(student_id=user_id, course_id=course_id, kind=EnrollmentKind.DEMO).delete()

    logger.info("데모 권한 삭제: grant=%s user=%s course=%s", grant_id, user_id, course_id)


def expire_demo_enrollments(now=None, user=None):
    """모든 데모 권한이 만료된 과정의 데모 등록을 삭제. 만료된 권한 자체는 체험 이력으로 남김

    Returns:
        int: 삭제된 등록 수
    """
    now = now or timezone.now()
    enrollments = Enrollment.objects.filter(kind=EnrollmentKind.DEMO)
    if user is not None:
        enrollments = enrollments.filter(student=user)

    stale_ids = []
    for enrollment in enrollments.only("id", "student_id", "course_id"):
        grants = DemoGrant.objects.filter(user_id=enrollment.student_id, course_id=enrollment.course_id)
        if grants.exists() and not grants.valid_at(now).exists():
            stale_ids.append(enrollment.id)

    if not stale_ids:
        return 0

    deleted, _ = Enrollment.objects.filter(id__in=stale_ids).delete()
    logger.info("만료된 데모 등록 삭제: %s건", deleted)
    return deleted


def prune_expired_grants(older_than_days, now=None):
    """만료 후 일정 기간이 지난 데모 권한 삭제 (삭제되면 다시 체험 가능)"""
    now = now or timezone.now()
    deleted, _ = DemoGrant.objects.expired_at(now - timedelta(days=older_than_days)).delete()
    if deleted:
        logger.info("오래된 데모 권한 삭제: %s건", deleted)
    return deleted


@transaction.atomic
def pin_grant_resource(grant_id, resource_id):
    """데모 권한에 체험 자원 지정 (superadmin)

    Raises:
        DemoGrant.DoesNotExist: 권한이 없는 경우.
        ValidationError: 자원이 과정에 속하지 않거나 유형이 다른 경우.
    """
    grant = DemoGrant.objects.select_for_update().get(pk=grant_id)
    if resource_id is not None:
        model = resource_model_for(grant.access_type)
        if not model.objects.for_course(grant.course_id).filter(pk=resource_id).exists():
            raise ValidationError({"error": "해당 과정의 같은 유형 자원만 지정할 수 있습니다."})

    grant.resource_id = resource_id
    grant.save(update_fields=["resource_id", "updated_at"])
    logger.info("데모 자원 지정: grant=%s resource=%s", grant.pk, resource_id)
    return grant


def claim_guest_demo(user, course, state, now=None):
    """게스트 체험을 가입한 학생의 데모 권한으로 전환. 체험 기간과 자원은 그대로 유지

    이미 같은 과정/유형의 권한이 있으면 기존 권한을 그대로 반환.

    Returns:
        tuple: (DemoGrant, created)

    Raises:
        InvalidGuestToken: 게스트 체험 기간이 이미 끝난 경우.
    """
    now = now or timezone.now()
    if state.is_expired(now):
        raise InvalidGuestToken("게스트 데모 체험 기간이 만료되어 전환할 수 없습니다.")

    with transaction.atomic():
        try:
            with transaction.atomic():
                grant, created = DemoGrant.objects.get_or_create(
                    user=user,
                    course=course,
                    access_type=state.access_type,
                    defaults={
                        "granted_at": state.granted_at,
                        "expires_at": state.expires_at,
                        "resource_id": state.resource_id,
                    },
                )
        except IntegrityError:
            grant = DemoGrant.objects.get(user=user, course=course, access_type=state.access_type)
            created = False
        ensure_demo_enrollment(user, course)

    if created:
        logger.info("게스트 데모 전환: grant=%s user=%s course=%s", grant.pk, user.pk, course.pk)
    return grant, created
