from django.contrib import admin

from apps.common.capabilities import AUTHOR_CONTENT, has_capability


class BaseModelAdmin(admin.ModelAdmin):
    """스태프이면서 콘텐츠 작성 권한이 있는 사용자만 관리 화면을 사용"""

    readonly_fields = ("created_at", "updated_at")

    def _can_manage(self, request):
        return request.user.is_staff and has_capability(request.user, AUTHOR_CONTENT)

    def has_add_permission(self, request):
        return self._can_manage(request)

    def has_change_permission(self, request, obj=None):
        return self._can_manage(request)

    def has_delete_permission(self, request, obj=None):
        return self._can_manage(request)

    def has_module_permission(self, request):
        return self._can_manage(request)
