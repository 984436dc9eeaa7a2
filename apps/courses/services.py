import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from apps.courses.models import resource_model_for
from apps.courses.signals import clear_course_resource_cache

logger = logging.getLogger(__name__)


def set_course_demo(course_id, access_type, resource_id):
    """과정의 데모 자원 지정. 기존 데모 자원은 해제

    Raises:
        ValidationError: 자원이 해당 과정에 없는 경우
    """
    model = resource_model_for(access_type)

    with transaction.atomic():
        resources = model.objects.select_for_update().for_course(course_id)
        if not resources.filter(pk=resource_id).exists():
            raise ValidationError({"error": "해당 과정의 자원이 아닙니다."})

        # 부분 유니크 제약 때문에 기존 데모를 먼저 해제
        resources.filter(is_demo=True).exclude(pk=resource_id).update(is_demo=False)
        resources.filter(pk=resource_id).update(is_demo=True)
        resource = resources.get(pk=resource_id)

    # update()는 시그널을 보내지 않으므로 직접 캐시 삭제
    clear_course_resource_cache(course_id, access_type)
    logger.info("과정 데모 자원 지정: course=%s type=%s resource=%s", course_id, access_type, resource_id)
    return resource
