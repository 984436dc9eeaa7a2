from rest_framework.permissions import BasePermission

from apps.common import capabilities


class HasCapability(BasePermission):
    """요청 사용자가 지정된 기능(capability)을 가진 경우에만 접근을 허용.

    역할 문자열을 직접 비교하지 않고, 요청당 한 번 계산된 기능 집합을 확인.

    Attributes:
        capability (str): 필요한 기능 이름.
        message (str): 권한 거부 시 반환할 메시지.
    """

    capability = None
    message = "이 작업을 수행할 권한이 없습니다."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return capabilities.has_capability(request.user, self.capability)


class CanRequestDemo(HasCapability):
    capability = capabilities.REQUEST_DEMO
    message = "학생만 데모 체험을 신청할 수 있습니다."


class CanSubscribe(HasCapability):
    capability = capabilities.SUBSCRIBE
    message = "학생만 구독을 신청할 수 있습니다."


class CanManageDemo(HasCapability):
    capability = capabilities.MANAGE_DEMO
    message = "관리자만 데모 권한을 관리할 수 있습니다."


class CanPinDemoResource(HasCapability):
    capability = capabilities.PIN_DEMO_RESOURCE
    message = "superadmin만 데모 자원을 지정할 수 있습니다."


class CanReviewPayments(HasCapability):
    capability = capabilities.REVIEW_PAYMENTS
    message = "관리자만 결제 확인을 처리할 수 있습니다."


class CanDeletePayments(HasCapability):
    capability = capabilities.DELETE_PAYMENTS
    message = "superadmin만 결제 확인 요청을 삭제할 수 있습니다."


class CanAuthorContent(HasCapability):
    capability = capabilities.AUTHOR_CONTENT
    message = "강사 또는 관리자만 접근할 수 있습니다."
