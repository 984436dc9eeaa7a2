from rest_framework import serializers

from apps.common.capabilities import get_capabilities

from .models import User


class UserSerializer(serializers.ModelSerializer):
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "email", "name", "role", "is_active", "capabilities")

    def get_capabilities(self, obj):
        """세션 동안 프론트엔드가 사용할 기능 목록 (정렬하여 반환)"""
        return sorted(get_capabilities(obj))


class UserNameSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "name", "email")
