from psycopg2.extensions import ISOLATION_LEVEL_REPEATABLE_READ

from .base import *

DEBUG = False

REFRESH_TOKEN_COOKIE_SECURE = True

ALLOWED_HOSTS = os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",")

# 권한 판정 시 수강/구독/데모 조회를 하나의 스냅샷으로 읽기 위함
DATABASES["default"]["OPTIONS"] = {"isolation_level": ISOLATION_LEVEL_REPEATABLE_READ}
DATABASES["default"]["CONN_MAX_AGE"] = 600

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
