from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Enrollment
from .serializers import EnrollmentDetailSerializer


class EnrollmentInProgressView(APIView):
    """수강 중인 과정 조회 API.

    로그인한 학생의 유료/데모 등록을 모두 반환.
    """

    @extend_schema(
        summary="수강 중인 과정 조회",
        description="현재 등록된(유료 또는 데모) 과정을 조회합니다.",
        responses={
            200: EnrollmentDetailSerializer(many=True),
            403: OpenApiExample("오류 예시", value={"detail": "학생만 조회할 수 있습니다."}),
        },
        tags=["Enrollment"],
    )
    def get(self, request):
        """현재 수강 중인 과정 목록을 조회.

        Args:
            request (Request): 요청 객체.

        Returns:
            Response: 직렬화된 등록 목록 또는 오류 메시지를 포함한 응답.
        """
        if not request.user.is_student:
            return Response({"detail": "학생만 조회할 수 있습니다."}, status=status.HTTP_403_FORBIDDEN)

        enrollments = Enrollment.objects.filter(student=request.user).select_related("course").order_by("-created_at")
        serializer = EnrollmentDetailSerializer(enrollments, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)
