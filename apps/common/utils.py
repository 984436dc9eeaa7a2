import calendar
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)


def get_s3_client():
    """Object Storage용 boto3 클라이언트 생성"""
    return boto3.client(
        "s3",
        endpoint_url=settings.AWS_S3_ENDPOINT_URL,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_S3_REGION_NAME,
    )


def generate_video_signed_url(object_key, expiration=None):
    """
    강의 영상용 Signed URL 생성 함수

    :param object_key: 접근하려는 파일의 경로
    :param expiration: Signed URL 유효 시간 (초 단위, 기본값은 STREAM_URL_TTL_SECONDS)
    :return: Signed URL (유효 시간 동안만 접근 가능)
    :raises ClientError, BotoCoreError: 저장소 오류는 호출한 쪽에서 처리
    """
    if not object_key:
        return None

    if expiration is None:
        expiration = settings.STREAM_URL_TTL_SECONDS

    s3_client = get_s3_client()

    return s3_client.generate_presigned_url(
        "get_object",
        Params={
            "Bucket": settings.AWS_STORAGE_BUCKET_NAME,
            "Key": object_key,
            "ResponseContentType": "video/mp4",
            "ResponseCacheControl": "no-store",
            "ResponseContentDisposition": "inline",
        },
        ExpiresIn=expiration,
        HttpMethod="GET",
    )


def delete_file_from_storage(object_key):
    """Object Storage에서 파일 삭제. 실패해도 DB 작업은 계속 진행"""
    if not object_key:
        return

    object_key = object_key.replace(settings.MEDIA_URL, "").lstrip("/")

    try:
        get_s3_client().delete_object(Bucket=settings.AWS_STORAGE_BUCKET_NAME, Key=object_key)
        logger.info("Deleted from storage: %s", object_key)
    except (BotoCoreError, ClientError):
        logger.exception("Error deleting file from storage: %s", object_key)


def add_months(value, months):
    """value에 months개월을 더함. 해당 월에 같은 일자가 없으면 말일로 맞춤"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
