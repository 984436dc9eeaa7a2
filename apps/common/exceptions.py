from rest_framework.exceptions import APIException


class LMSAPIException(APIException):
    """응답 본문을 ``{"error": ...}`` 형태로 통일하는 기본 예외"""

    status_code = 400
    default_detail = "잘못된 요청입니다."
    default_code = "invalid"

    def __init__(self, detail=None):
        if detail is None:
            detail = self.default_detail
        super().__init__({"error": detail})


class DemoAlreadyUsed(LMSAPIException):
    status_code = 409
    default_detail = "이 강의의 데모 체험 기간이 이미 만료되었습니다. 구독 후 이용해주세요."
    default_code = "demo_already_used"


class InvalidGuestToken(LMSAPIException):
    status_code = 400
    default_detail = "유효하지 않은 게스트 데모 토큰입니다."
    default_code = "invalid_guest_token"


class InvalidPlayToken(LMSAPIException):
    status_code = 401
    default_detail = "재생 토큰이 유효하지 않거나 만료되었습니다."
    default_code = "invalid_play_token"


class StreamingNotConfigured(LMSAPIException):
    status_code = 500
    default_detail = "영상 스트리밍이 설정되지 않았습니다."
    default_code = "streaming_not_configured"


class StorageUnavailable(LMSAPIException):
    status_code = 502
    default_detail = "영상 저장소에 접근할 수 없습니다."
    default_code = "storage_unavailable"
