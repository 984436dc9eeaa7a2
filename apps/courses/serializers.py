from rest_framework import serializers

from apps.courses.models import Course, LectureRecording, LiveClass


class CourseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ["id", "title", "description", "price", "is_published"]


class LectureRecordingSerializer(serializers.ModelSerializer):
    """녹화 영상 목록 Serializer. 영상 key는 노출하지 않고 재생 토큰으로만 접근"""

    class Meta:
        model = LectureRecording
        fields = ["id", "title", "description", "duration_seconds", "is_demo", "is_published", "created_at"]


class LiveClassSerializer(serializers.ModelSerializer):
    class Meta:
        model = LiveClass
        fields = [
            "id",
            "title",
            "scheduled_at",
            "duration_minutes",
            "meeting_url",
            "is_demo",
            "is_published",
            "created_at",
        ]


class SetDemoRecordingSerializer(serializers.Serializer):
    recording_id = serializers.IntegerField(min_value=1)


class PlayTokenRequestSerializer(serializers.Serializer):
    recording_id = serializers.IntegerField(min_value=1)
    guest_token = serializers.CharField(required=False, allow_blank=True)
