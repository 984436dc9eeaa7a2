from django.contrib import admin
from django.utils import timezone

from apps.common.admin import BaseModelAdmin

from .models import DemoGrant


@admin.register(DemoGrant)
class DemoGrantAdmin(BaseModelAdmin):
    list_display = ("user", "course", "access_type", "resource_id", "granted_at", "expires_at", "is_active")
    list_filter = ("access_type",)
    search_fields = ("user__email", "course__title")
    readonly_fields = BaseModelAdmin.readonly_fields + ("granted_by",)

    @admin.display(boolean=True, description="Active")
    def is_active(self, obj):
        return not obj.is_expired(timezone.now())
