import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.courses.models import AccessType, LectureRecording, LiveClass

logger = logging.getLogger(__name__)

RESOURCE_SCOPES = ("published", "all")


def course_resource_cache_key(course_id, access_type, scope):
    return f"course_resources:{course_id}:{access_type}:{scope}"


def clear_course_resource_cache(course_id, access_type):
    """과정의 자원 목록 캐시 삭제 (공개 목록, 스태프용 전체 목록 모두)"""
    cache.delete_many([course_resource_cache_key(course_id, access_type, scope) for scope in RESOURCE_SCOPES])
    logger.debug("캐시 삭제됨: course=%s type=%s", course_id, access_type)


# 녹화 영상 추가/수정/삭제 시 캐시 삭제
@receiver(post_save, sender=LectureRecording)
@receiver(post_delete, sender=LectureRecording)
def handle_lecture_recording_change(sender, instance, **kwargs):
    clear_course_resource_cache(instance.course_id, AccessType.LECTURE_RECORDING)


# 라이브 수업 추가/수정/삭제 시 캐시 삭제
@receiver(post_save, sender=LiveClass)
@receiver(post_delete, sender=LiveClass)
def handle_live_class_change(sender, instance, **kwargs):
    clear_course_resource_cache(instance.course_id, AccessType.LIVE_CLASS)
