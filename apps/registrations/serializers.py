from rest_framework import serializers

from .models import Enrollment


class EnrollmentDetailSerializer(serializers.ModelSerializer):
    """수강 중인 과정 조회를 위한 직렬화 클래스.

    Course의 title 정보를 추가로 포함하여 직렬화.

    Attributes:
        title: 연결된 과정의 제목 (읽기 전용).
    """

    title = serializers.CharField(source="course.title", read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "course", "title", "kind", "created_at"]
