"""비로그인 게스트의 데모 체험 토큰.

게스트 체험 상태는 서버에 저장하지 않고 서명된 토큰으로 클라이언트에 전달한다.
토큰에는 과정, 자원 유형, 체험 자원, 체험 기간이 들어 있으며
서버 서명으로 위변조를 막는다. 서명에는 max_age를 두지 않고, 토큰에 담긴
만료 시각(exp)으로 권한 판정기가 만료를 판정한다 (만료된 게스트에게 가입 안내를 주기 위함).
"""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core import signing
from django.utils.dateparse import parse_datetime

from apps.common.exceptions import InvalidGuestToken

from .entitlements import DemoWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuestDemoState:
    course_id: int
    access_type: str
    resource_id: int
    granted_at: object
    expires_at: object

    @property
    def window(self):
        return DemoWindow(granted_at=self.granted_at, expires_at=self.expires_at, resource_id=self.resource_id)

    def is_expired(self, now):
        return self.window.is_expired(now)


def start_guest_demo(course_id, access_type, resource_id, now):
    return GuestDemoState(
        course_id=course_id,
        access_type=access_type,
        resource_id=resource_id,
        granted_at=now,
        expires_at=now + settings.DEMO_DURATION,
    )


def issue_guest_token(state):
    payload = {
        "course": state.course_id,
        "type": state.access_type,
        "res": state.resource_id,
        "iat": state.granted_at.isoformat(),
        "exp": state.expires_at.isoformat(),
    }
    return signing.dumps(payload, salt=settings.GUEST_TOKEN_SALT, compress=True)


def read_guest_token(token, course_id=None, access_type=None):
    """토큰을 검증하고 GuestDemoState로 복원

    course_id, access_type이 주어지면 토큰의 값과 일치해야 함.

    Raises:
        InvalidGuestToken: 서명이 맞지 않거나 형식이 잘못된 경우, 다른 과정의 토큰인 경우
    """
    try:
        payload = signing.loads(token, salt=settings.GUEST_TOKEN_SALT)
        state = GuestDemoState(
            course_id=int(payload["course"]),
            access_type=payload["type"],
            resource_id=int(payload["res"]),
            granted_at=parse_datetime(payload["iat"]),
            expires_at=parse_datetime(payload["exp"]),
        )
    except signing.BadSignature:
        logger.info("게스트 토큰 서명 검증 실패")
        raise InvalidGuestToken()
    except (KeyError, TypeError, ValueError):
        logger.warning("게스트 토큰 형식 오류")
        raise InvalidGuestToken()

    if state.granted_at is None or state.expires_at is None:
        raise InvalidGuestToken()

    if course_id is not None and state.course_id != int(course_id):
        raise InvalidGuestToken("다른 과정의 게스트 데모 토큰입니다.")
    if access_type is not None and state.access_type != access_type:
        raise InvalidGuestToken("다른 유형의 게스트 데모 토큰입니다.")

    return state


GUEST_TOKEN_HEADER = "HTTP_X_GUEST_DEMO_TOKEN"


def guest_window_from_request(request, course_id, access_type):
    """요청의 게스트 토큰(guest_token 파라미터 또는 X-Guest-Demo-Token 헤더)을 DemoWindow로 변환.

    로그인 사용자이거나 토큰이 없으면 None. 다른 과정이나 유형의 토큰도 None.

    Raises:
        InvalidGuestToken: 서명이 맞지 않거나 형식이 잘못된 토큰인 경우
    """
    if request.user and request.user.is_authenticated:
        return None

    token = (
        request.query_params.get("guest_token")
        or (request.data.get("guest_token") if hasattr(request.data, "get") else None)
        or request.META.get(GUEST_TOKEN_HEADER)
    )
    if not token:
        return None

    # 다른 과정/유형의 토큰은 오류가 아니라 게스트 체험 상태가 없는 것으로 처리
    state = read_guest_token(token)
    if state.course_id != int(course_id) or state.access_type != access_type:
        return None
    return state.window
