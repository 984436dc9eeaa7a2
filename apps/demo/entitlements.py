"""수강 권한 판정기.

(사용자 또는 게스트, 과정, 자원 유형)에 대해 재생/입장 가능 여부와
데모 자원, 남은 체험 시간을 계산한다.

판정 순서 (먼저 일치하는 규칙이 결정):
    1. 강사/관리자 등 전체 열람 권한 보유자 -> 전체 허용 (staff)
    2. 유료 수강 등록 -> 전체 허용 (paid)
    3. 유효한 구독 -> 전체 허용 (subscription)
    4. 데모 수강 등록 + 해당 유형의 데모 권한 -> 자원 1개만 허용 (demo)
    5. 비로그인 게스트 -> 자원 1개만 허용 (guest_demo)
    6. 그 외 -> 거부 (게스트는 signup, 학생은 upgrade 안내)

``evaluate`` 는 DB에 접근하지 않는 순수 함수이고, 필요한 데이터는
``load_snapshot`` 이 하나의 트랜잭션 안에서 읽어 온다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import Max
from django.utils import timezone

from apps.common.capabilities import VIEW_ALL_CONTENT, get_capabilities
from apps.courses.models import resource_model_for
from apps.registrations.models import Enrollment, EnrollmentKind
from apps.subscriptions.models import Subscription, SubscriptionStatus

from .models import DemoGrant

logger = logging.getLogger(__name__)


class Tier:
    STAFF = "staff"
    PAID = "paid"
    SUBSCRIPTION = "subscription"
    DEMO = "demo"
    GUEST_DEMO = "guest_demo"
    NONE = "none"


FULL_ACCESS_TIERS = frozenset({Tier.STAFF, Tier.PAID, Tier.SUBSCRIPTION})
DEMO_TIERS = frozenset({Tier.DEMO, Tier.GUEST_DEMO})


class Reason:
    DEMO_EXPIRED = "demo_expired"
    NO_DEMO_GRANT = "no_demo_grant"
    NO_DEMO_RESOURCE = "no_demo_resource"
    NOT_ENTITLED = "not_entitled"
    ERROR = "error"


class Action:
    SIGNUP = "signup"
    UPGRADE = "upgrade"


@dataclass(frozen=True)
class ResourceRef:
    id: int
    created_at: datetime
    is_demo: bool = False


@dataclass(frozen=True)
class DemoWindow:
    """데모 체험 기간. 로그인 사용자의 DemoGrant와 게스트 토큰 모두 이 형태로 전달됨."""

    granted_at: datetime
    expires_at: datetime
    resource_id: Optional[int] = None

    def is_expired(self, now):
        return now >= self.expires_at

    def remaining(self, now):
        return max(self.expires_at - now, timedelta(0))


@dataclass(frozen=True)
class AccessSnapshot:
    is_guest: bool = False
    capabilities: frozenset = frozenset()
    enrollment_kind: Optional[str] = None
    subscription_expires_at: Optional[datetime] = None
    demo_grant: Optional[DemoWindow] = None
    guest_demo: Optional[DemoWindow] = None
    resources: tuple = field(default_factory=tuple)  # 공개된 자원, 오래된 순


@dataclass(frozen=True)
class Entitlement:
    allowed: bool
    tier: str
    access_type: str
    demo_resource_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    remaining: Optional[timedelta] = None
    reason: Optional[str] = None
    action: Optional[str] = None
    demo_available: bool = False

    @property
    def full_access(self):
        return self.allowed and self.tier in FULL_ACCESS_TIERS

    @property
    def is_demo(self):
        return self.tier in DEMO_TIERS

    def can_play(self, resource_id):
        """해당 자원을 재생(입장)할 수 있는지 여부"""
        if not self.allowed:
            return False
        if self.full_access:
            return True
        return self.demo_resource_id is not None and resource_id == self.demo_resource_id

    def as_dict(self):
        # 데모 필드는 데모가 아닐 때도 null로 내려서 클라이언트가 이전 상태를 지울 수 있게 함
        return {
            "allowed": self.allowed,
            "tier": self.tier,
            "access_type": self.access_type,
            "full_access": self.full_access,
            "is_demo": self.is_demo,
            "demo_resource_id": self.demo_resource_id,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "remaining_seconds": int(self.remaining.total_seconds()) if self.remaining is not None else None,
            "reason": self.reason,
            "action": self.action,
            "demo_available": self.demo_available,
        }


def pick_demo_resource(resources, pinned_id=None):
    """데모로 허용할 자원 id 선택.

    우선순위: 지정된 자원(pinned_id) > 과정 데모 자원(is_demo) > 가장 오래된 공개 자원
    지정된 자원이 공개 목록에 없으면 다음 순위로 넘어감.
    """
    if not resources:
        return None

    if pinned_id is not None and any(r.id == pinned_id for r in resources):
        return pinned_id

    for resource in resources:
        if resource.is_demo:
            return resource.id

    return min(resources, key=lambda r: (r.created_at, r.id)).id


def _denied(access_type, reason, action, demo_available=False):
    return Entitlement(
        allowed=False,
        tier=Tier.NONE,
        access_type=access_type,
        reason=reason,
        action=action,
        demo_available=demo_available,
    )


def _demo_decision(tier, window, resources, access_type, now, action):
    if window.is_expired(now):
        return Entitlement(
            allowed=False,
            tier=Tier.NONE,
            access_type=access_type,
            expires_at=window.expires_at,
            remaining=timedelta(0),
            reason=Reason.DEMO_EXPIRED,
            action=action,
        )

    resource_id = pick_demo_resource(resources, window.resource_id)
    if resource_id is None:
        return _denied(access_type, Reason.NO_DEMO_RESOURCE, action)

    return Entitlement(
        allowed=True,
        tier=tier,
        access_type=access_type,
        demo_resource_id=resource_id,
        expires_at=window.expires_at,
        remaining=window.remaining(now),
    )


def evaluate(snapshot, access_type, now):
    """스냅샷에 대해 권한 판정 규칙을 순서대로 적용"""
    if VIEW_ALL_CONTENT in snapshot.capabilities:
        return Entitlement(allowed=True, tier=Tier.STAFF, access_type=access_type)

    if snapshot.is_guest:
        if snapshot.guest_demo is not None:
            return _demo_decision(
                Tier.GUEST_DEMO, snapshot.guest_demo, snapshot.resources, access_type, now, Action.SIGNUP
            )
        # 아직 체험을 시작하지 않은 게스트: 첫 자원을 체험 대상으로 안내
        resource_id = pick_demo_resource(snapshot.resources)
        if resource_id is None:
            return _denied(access_type, Reason.NO_DEMO_RESOURCE, Action.SIGNUP)
        return Entitlement(
            allowed=True,
            tier=Tier.GUEST_DEMO,
            access_type=access_type,
            demo_resource_id=resource_id,
            demo_available=True,
        )

    if snapshot.enrollment_kind == EnrollmentKind.PAID:
        return Entitlement(allowed=True, tier=Tier.PAID, access_type=access_type)

    if snapshot.subscription_expires_at is not None and now < snapshot.subscription_expires_at:
        return Entitlement(allowed=True, tier=Tier.SUBSCRIPTION, access_type=access_type)

    grant = snapshot.demo_grant
    if snapshot.enrollment_kind == EnrollmentKind.DEMO and grant is not None:
        return _demo_decision(Tier.DEMO, grant, snapshot.resources, access_type, now, Action.UPGRADE)

    if grant is not None and grant.is_expired(now):
        return _denied(access_type, Reason.DEMO_EXPIRED, Action.UPGRADE)

    if snapshot.enrollment_kind == EnrollmentKind.DEMO:
        return _denied(access_type, Reason.NO_DEMO_GRANT, Action.UPGRADE, demo_available=grant is None)

    return _denied(access_type, Reason.NOT_ENTITLED, Action.UPGRADE, demo_available=grant is None)


def load_snapshot(user, course_id, access_type, guest_demo=None):
    """판정에 필요한 데이터를 하나의 트랜잭션 안에서 조회

    Args:
        user: 요청 사용자. 비로그인이면 None 또는 AnonymousUser
        course_id: 과정 id
        access_type: AccessType 값
        guest_demo: 게스트 토큰에서 복원한 DemoWindow (게스트만 사용)

    Returns:
        AccessSnapshot
    """
    model = resource_model_for(access_type)

    with transaction.atomic():
        resources = tuple(
            ResourceRef(id=row["id"], created_at=row["created_at"], is_demo=row["is_demo"])
            for row in model.objects.for_course(course_id)
            .published()
            .chronological()
            .values("id", "created_at", "is_demo")
        )

        if user is None or not user.is_authenticated:
            return AccessSnapshot(is_guest=True, guest_demo=guest_demo, resources=resources)

        capabilities = get_capabilities(user)
        if VIEW_ALL_CONTENT in capabilities:
            return AccessSnapshot(capabilities=capabilities, resources=resources)

        enrollment_kind = (
            Enrollment.objects.filter(student=user, course_id=course_id).values_list("kind", flat=True).first()
        )
        subscription_expires_at = Subscription.objects.filter(
            student=user, course_id=course_id, status=SubscriptionStatus.ACTIVE
        ).aggregate(latest=Max("expires_at"))["latest"]
        grant = DemoGrant.objects.filter(user=user, course_id=course_id, access_type=access_type).first()

    return AccessSnapshot(
        capabilities=capabilities,
        enrollment_kind=enrollment_kind,
        subscription_expires_at=subscription_expires_at,
        demo_grant=(
            DemoWindow(granted_at=grant.granted_at, expires_at=grant.expires_at, resource_id=grant.resource_id)
            if grant
            else None
        ),
        resources=resources,
    )


def check_access(user, course_id, access_type, guest_demo=None, now=None):
    """권한 판정 진입점. 조회 중 오류가 나면 거부로 처리하고 기록만 남김"""
    now = now or timezone.now()
    try:
        snapshot = load_snapshot(user, course_id, access_type, guest_demo=guest_demo)
    except DatabaseError:
        logger.exception("권한 판정 데이터 조회 실패 course=%s access_type=%s", course_id, access_type)
        is_guest = user is None or not user.is_authenticated
        return _denied(access_type, Reason.ERROR, Action.SIGNUP if is_guest else Action.UPGRADE)

    return evaluate(snapshot, access_type, now)
