from rest_framework import serializers

from .models import PaymentVerification, Subscription, SubscriptionPlan, VerificationStatus


class SubscriptionPlanSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubscriptionPlan
        fields = ["id", "name", "plan_type", "price", "duration_months", "duration_until_date", "features"]


class SubscriptionSerializer(serializers.ModelSerializer):
    """구독 조회 Serializer (요금제, 과정 제목 포함)"""

    plan = SubscriptionPlanSerializer(read_only=True)
    course_title = serializers.CharField(source="course.title", read_only=True)

    class Meta:
        model = Subscription
        fields = ["id", "course", "course_title", "plan", "status", "starts_at", "expires_at", "price"]


class SubscriptionRequestSerializer(serializers.Serializer):
    course_id = serializers.IntegerField(min_value=1)
    plan_id = serializers.IntegerField(min_value=1)


class PaymentVerificationSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source="course.title", read_only=True)
    plan_name = serializers.CharField(source="plan.name", read_only=True)

    class Meta:
        model = PaymentVerification
        fields = [
            "id",
            "student",
            "course",
            "course_title",
            "plan",
            "plan_name",
            "amount",
            "status",
            "notes",
            "verified_by",
            "verified_at",
            "subscription",
            "created_at",
        ]


class PaymentReviewSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[VerificationStatus.APPROVED, VerificationStatus.REJECTED])
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
