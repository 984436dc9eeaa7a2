"""녹화 영상 재생 토큰.

재생 직전에 권한을 다시 판정한 뒤 발급하는 짧은 수명(기본 10분)의 서명 토큰.
토큰은 (요청 주체, 영상 key, 과정)에 묶여 있어 다른 영상에 재사용할 수 없다.
"""

import logging

from django.conf import settings
from django.core import signing

from apps.common.exceptions import InvalidPlayToken

logger = logging.getLogger(__name__)


def play_subject(user):
    if user is None or not user.is_authenticated:
        return "guest"
    return f"user:{user.pk}"


def issue_play_token(subject, recording):
    payload = {
        "sub": subject,
        "key": recording.video_key,
        "course": recording.course_id,
        "rec": recording.pk,
    }
    return signing.dumps(payload, salt=settings.PLAY_TOKEN_SALT)


def read_play_token(token):
    """재생 토큰 검증

    Returns:
        dict: sub, key, course, rec

    Raises:
        InvalidPlayToken: 만료되었거나 서명이 맞지 않는 경우
    """
    try:
        payload = signing.loads(token, salt=settings.PLAY_TOKEN_SALT, max_age=settings.PLAY_TOKEN_TTL_SECONDS)
    except signing.SignatureExpired:
        raise InvalidPlayToken("재생 토큰이 만료되었습니다. 다시 요청해주세요.")
    except signing.BadSignature:
        logger.info("재생 토큰 서명 검증 실패")
        raise InvalidPlayToken()

    if not isinstance(payload, dict) or not payload.get("key"):
        raise InvalidPlayToken()
    return payload
