from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Enrollment


@admin.register(Enrollment)
class EnrollmentAdmin(BaseModelAdmin):
    """유료/데모 등록 관리. 데모 등록은 데모 권한이 모두 만료되면 정리 명령으로 삭제됨"""

    list_display = ("course", "student", "kind", "subscription", "created_at")
    list_filter = ("kind",)
    list_select_related = ("course", "student", "subscription")
    search_fields = ("course__title", "student__email", "student__name")
    raw_id_fields = ("subscription",)
