from django.contrib import admin
from django.core.exceptions import ValidationError

from apps.common.admin import BaseModelAdmin

from .models import Role, User


@admin.register(User)
class UserAdmin(BaseModelAdmin):
    # 표시할 컬럼
    list_display = ("email", "name", "role", "is_staff", "is_active", "is_superuser", "created_at")
    # 검색 기능 설정
    search_fields = ("email", "name")
    # 필터링 조건
    list_filter = ("role", "is_active", "is_staff", "is_superuser")
    exclude = ("password", "groups", "user_permissions", "last_login")

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)

        # superadmin이 아닐 경우 권한 관련 필드를 비활성화
        if request.user.role != Role.SUPERADMIN:
            for field in ("role", "is_superuser", "is_staff"):
                if field in form.base_fields:
                    form.base_fields[field].disabled = True
        return form

    def save_model(self, request, obj, form, change):
        """마지막 superadmin의 역할이 해제되지 않도록 방지"""
        if change and "role" in form.changed_data and obj.role != Role.SUPERADMIN:
            if User.objects.filter(role=Role.SUPERADMIN).exclude(pk=obj.pk).count() == 0:
                raise ValidationError("최소 1명의 superadmin은 있어야 합니다.")

        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        return request.user.role == Role.SUPERADMIN  # superadmin만 삭제 가능
