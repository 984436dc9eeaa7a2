from rest_framework import serializers

from apps.courses.models import AccessType

from .models import DemoGrant


class DemoGrantSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source="course.title", read_only=True)
    is_expired = serializers.SerializerMethodField()
    remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = DemoGrant
        fields = [
            "id",
            "user",
            "course",
            "course_title",
            "access_type",
            "resource_id",
            "granted_at",
            "expires_at",
            "is_expired",
            "remaining_seconds",
        ]

    def _now(self):
        return self.context["now"]

    def get_is_expired(self, obj):
        return obj.is_expired(self._now())

    def get_remaining_seconds(self, obj):
        return max(int((obj.expires_at - self._now()).total_seconds()), 0)


class DemoRequestSerializer(serializers.Serializer):
    course_id = serializers.IntegerField(min_value=1)
    access_type = serializers.ChoiceField(choices=AccessType.choices)


class AdminDemoGrantSerializer(DemoRequestSerializer):
    user_id = serializers.IntegerField(min_value=1)


class DemoResourcePinSerializer(serializers.Serializer):
    resource_id = serializers.IntegerField(min_value=1, allow_null=True)


class GuestDemoRequestSerializer(DemoRequestSerializer):
    token = serializers.CharField(required=False, allow_blank=True)


class GuestDemoClaimSerializer(serializers.Serializer):
    token = serializers.CharField()
