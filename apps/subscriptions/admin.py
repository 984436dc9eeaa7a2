from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import PaymentVerification, Subscription, SubscriptionPlan


@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(BaseModelAdmin):
    list_display = ("name", "plan_type", "price", "duration_months", "duration_until_date", "is_active")
    list_filter = ("plan_type", "is_active")
    search_fields = ("name",)


@admin.register(Subscription)
class SubscriptionAdmin(BaseModelAdmin):
    list_display = ("student", "course", "plan", "status", "starts_at", "expires_at")
    list_filter = ("status",)
    search_fields = ("student__email", "course__title")


@admin.register(PaymentVerification)
class PaymentVerificationAdmin(BaseModelAdmin):
    list_display = ("student", "course", "plan", "amount", "status", "verified_by", "verified_at")
    list_filter = ("status",)
    search_fields = ("student__email", "course__title")
    readonly_fields = BaseModelAdmin.readonly_fields + ("verified_by", "verified_at", "subscription")
