"""역할(role) 문자열을 기능(capability) 집합으로 변환하는 모듈.

뷰마다 ``role == "admin"`` 같은 비교를 흩어 두지 않고, 요청 사용자에 대해
한 번만 기능 집합을 계산한 뒤 권한 클래스와 권한 판정기에서 재사용한다.
"""

from apps.users.models import Role

VIEW_ALL_CONTENT = "content.view_all"
VIEW_UNPUBLISHED = "content.view_unpublished"
AUTHOR_CONTENT = "content.author"
MANAGE_DEMO = "demo.manage"
PIN_DEMO_RESOURCE = "demo.pin_resource"
REVIEW_PAYMENTS = "payments.review"
DELETE_PAYMENTS = "payments.delete"
REQUEST_DEMO = "demo.request"
SUBSCRIBE = "subscriptions.subscribe"

ROLE_CAPABILITIES = {
    Role.STUDENT: frozenset({REQUEST_DEMO, SUBSCRIBE}),
    Role.TEACHER: frozenset({VIEW_ALL_CONTENT, VIEW_UNPUBLISHED, AUTHOR_CONTENT}),
    Role.ADMIN: frozenset(
        {VIEW_ALL_CONTENT, VIEW_UNPUBLISHED, AUTHOR_CONTENT, MANAGE_DEMO, REVIEW_PAYMENTS}
    ),
    Role.SUPERADMIN: frozenset(
        {
            VIEW_ALL_CONTENT,
            VIEW_UNPUBLISHED,
            AUTHOR_CONTENT,
            MANAGE_DEMO,
            PIN_DEMO_RESOURCE,
            REVIEW_PAYMENTS,
            DELETE_PAYMENTS,
        }
    ),
}

_CACHE_ATTR = "_capabilities"


def get_capabilities(user):
    """사용자의 기능 집합을 반환. 비로그인 사용자는 빈 집합.

    계산 결과는 사용자 객체에 저장되어 같은 요청 안에서는 다시 계산하지 않음.
    """
    if user is None or not user.is_authenticated:
        return frozenset()

    cached = getattr(user, _CACHE_ATTR, None)
    if cached is not None:
        return cached

    capabilities = ROLE_CAPABILITIES.get(user.role, frozenset())
    setattr(user, _CACHE_ATTR, capabilities)
    return capabilities


def has_capability(user, capability):
    return capability in get_capabilities(user)
