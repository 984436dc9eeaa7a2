from .base import *

DEBUG = False

REFRESH_TOKEN_COOKIE_SECURE = False

ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

AWS_STORAGE_BUCKET_NAME = "test-bucket"
AWS_S3_ENDPOINT_URL = "https://storage.example.com"

LOGGING["root"]["level"] = "WARNING"
LOGGING["loggers"]["apps"]["level"] = "WARNING"
