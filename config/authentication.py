import logging

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger(__name__)


class CustomJWTAuthentication(JWTAuthentication):
    """쿠키의 access_token을 먼저 확인하고, 없거나 무효하면 Authorization 헤더로 인증"""

    def authenticate(self, request):
        access_token = request.COOKIES.get("access_token")

        if access_token:
            try:
                validated_token = self.get_validated_token(access_token)
                return self.get_user(validated_token), validated_token
            except (InvalidToken, TokenError):
                logger.debug("쿠키 access_token 검증 실패, 헤더 인증으로 진행")

        return super().authenticate(request)
