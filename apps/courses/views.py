import logging

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.capabilities import VIEW_UNPUBLISHED, has_capability
from apps.common.exceptions import StorageUnavailable, StreamingNotConfigured
from apps.common.permissions import CanAuthorContent, CanPinDemoResource
from apps.common.utils import generate_video_signed_url
from apps.courses.models import AccessType, Course, LectureRecording, LiveClass
from apps.courses.serializers import (
    CourseSerializer,
    LectureRecordingSerializer,
    LiveClassSerializer,
    PlayTokenRequestSerializer,
    SetDemoRecordingSerializer,
)
from apps.courses.services import set_course_demo
from apps.courses.signals import course_resource_cache_key
from apps.courses.tokens import issue_play_token, play_subject, read_play_token
from apps.demo.entitlements import Tier, check_access
from apps.demo.guest import guest_window_from_request, issue_guest_token, start_guest_demo

logger = logging.getLogger(__name__)

COURSE_NOT_FOUND = {"error": "과정을 찾을 수 없습니다."}


class CourseListView(APIView):
    """공개된 과정 목록 조회"""

    permission_classes = (AllowAny,)

    @extend_schema(summary="과정 목록 조회", responses={200: CourseSerializer(many=True)}, tags=["Course"])
    def get(self, request):
        courses = Course.objects.filter(is_published=True).order_by("-created_at")
        return Response(CourseSerializer(courses, many=True).data, status=status.HTTP_200_OK)


class TeachingCourseListView(APIView):
    """강사에게 배정된 과정 목록 조회"""

    permission_classes = [CanAuthorContent]

    @extend_schema(summary="담당 과정 목록 조회", responses={200: CourseSerializer(many=True)}, tags=["Course"])
    def get(self, request):
        courses = Course.objects.filter(teachers__teacher=request.user).order_by("-created_at")
        return Response(CourseSerializer(courses, many=True).data, status=status.HTTP_200_OK)


class CourseResourceListView(APIView):
    """과정의 자원(녹화 영상, 라이브 수업) 목록 조회 공통 뷰.

    목록 자체는 캐시하고, 잠금 여부는 요청마다 권한 판정기로 계산.
    """

    permission_classes = (AllowAny,)
    access_type = None
    model = None
    serializer_class = None
    # 목록 응답 자체가 자원을 내주는 경우 (라이브 수업의 meeting_url)
    exposes_resource = False

    def get_items(self, course_id, include_unpublished):
        scope = "all" if include_unpublished else "published"
        cache_key = course_resource_cache_key(course_id, self.access_type, scope)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            return cached_data

        resources = self.model.objects.for_course(course_id)
        if not include_unpublished:
            resources = resources.published()
        data = self.serializer_class(resources.chronological(), many=True).data

        cache.set(cache_key, data, timeout=settings.COURSE_RESOURCE_CACHE_TIMEOUT)
        return data

    def lock_item(self, item):
        """잠긴 항목에서 숨길 필드 처리"""
        return item

    def get(self, request, course_id):
        if not Course.objects.filter(id=course_id).exists():
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        guest_window = guest_window_from_request(request, course_id, self.access_type)
        entitlement = check_access(request.user, course_id, self.access_type, guest_demo=guest_window)
        include_unpublished = has_capability(request.user, VIEW_UNPUBLISHED)

        # 체험 기간이 시작되지 않은 게스트에게는 자원을 내주지 않음
        window_pending = entitlement.tier == Tier.GUEST_DEMO and entitlement.expires_at is None
        hide_all = window_pending and self.exposes_resource

        items = []
        for item in self.get_items(course_id, include_unpublished):
            item = dict(item)
            item["locked"] = hide_all or not entitlement.can_play(item["id"])
            items.append(self.lock_item(item) if item["locked"] else item)

        response = Response(
            {"course_id": course_id, "entitlement": entitlement.as_dict(), "items": items},
            status=status.HTTP_200_OK,
        )
        response["Cache-Control"] = "no-store"
        return response


class CourseRecordingListView(CourseResourceListView):
    access_type = AccessType.LECTURE_RECORDING
    model = LectureRecording
    serializer_class = LectureRecordingSerializer

    @extend_schema(
        summary="과정 녹화 영상 목록 조회",
        description="각 항목에 locked 여부가 포함됩니다. 스태프는 비공개 영상도 조회합니다.",
        parameters=[OpenApiParameter("guest_token", str, required=False)],
        responses={200: LectureRecordingSerializer(many=True), 404: OpenApiResponse(description="과정 없음")},
        tags=["Course"],
    )
    def get(self, request, course_id):
        return super().get(request, course_id)


class CourseLiveClassListView(CourseResourceListView):
    access_type = AccessType.LIVE_CLASS
    model = LiveClass
    serializer_class = LiveClassSerializer
    exposes_resource = True

    def lock_item(self, item):
        item["meeting_url"] = None
        return item

    @extend_schema(
        summary="과정 라이브 수업 목록 조회",
        description="잠긴 수업은 meeting_url이 null로 내려갑니다.",
        parameters=[OpenApiParameter("guest_token", str, required=False)],
        responses={200: LiveClassSerializer(many=True), 404: OpenApiResponse(description="과정 없음")},
        tags=["Course"],
    )
    def get(self, request, course_id):
        return super().get(request, course_id)


class SetDemoRecordingView(APIView):
    """과정의 데모 녹화 영상 지정 (superadmin)"""

    permission_classes = [CanPinDemoResource]

    @extend_schema(
        summary="데모 녹화 영상 지정",
        request=SetDemoRecordingSerializer,
        responses={200: LectureRecordingSerializer, 400: OpenApiResponse(description="해당 과정의 영상이 아님")},
        tags=["Course"],
    )
    def post(self, request, course_id):
        serializer = SetDemoRecordingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if not Course.objects.filter(id=course_id).exists():
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        recording = set_course_demo(
            course_id, AccessType.LECTURE_RECORDING, serializer.validated_data["recording_id"]
        )
        return Response(LectureRecordingSerializer(recording).data, status=status.HTTP_200_OK)


class RecordingAccessTokenView(APIView):
    """녹화 영상 재생 토큰 발급.

    권한을 다시 판정하고 재생 가능한 경우에만 10분짜리 재생 토큰을 발급.
    체험을 시작하지 않은 게스트는 이 영상으로 게스트 데모를 시작하고 게스트 토큰도 함께 받음.
    """

    permission_classes = (AllowAny,)

    @extend_schema(
        summary="재생 토큰 발급",
        request=PlayTokenRequestSerializer,
        responses={
            200: OpenApiResponse(description="token, expires_in, guest_token(게스트 데모 시작 시)"),
            403: OpenApiResponse(description="재생 권한 없음 (entitlement 포함)"),
            404: OpenApiResponse(description="영상 없음"),
        },
        tags=["Playback"],
    )
    def post(self, request):
        serializer = PlayTokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recordings = LectureRecording.objects.select_related("course")
        if not has_capability(request.user, VIEW_UNPUBLISHED):
            recordings = recordings.filter(is_published=True)
        try:
            recording = recordings.get(id=data["recording_id"])
        except LectureRecording.DoesNotExist:
            return Response({"error": "영상을 찾을 수 없습니다."}, status=status.HTTP_404_NOT_FOUND)

        if not recording.video_key:
            return Response({"error": "재생할 영상 파일이 없습니다."}, status=status.HTTP_404_NOT_FOUND)

        now = timezone.now()
        access_type = AccessType.LECTURE_RECORDING
        guest_window = guest_window_from_request(request, recording.course_id, access_type)
        entitlement = check_access(request.user, recording.course_id, access_type, guest_demo=guest_window, now=now)

        new_guest_token = None
        if entitlement.tier == Tier.GUEST_DEMO and entitlement.expires_at is None and entitlement.can_play(
            recording.id
        ):
            state = start_guest_demo(recording.course_id, access_type, recording.id, now)
            new_guest_token = issue_guest_token(state)
            entitlement = check_access(
                request.user, recording.course_id, access_type, guest_demo=state.window, now=now
            )
            logger.info("재생 요청으로 게스트 데모 시작: course=%s recording=%s", recording.course_id, recording.id)

        if not entitlement.can_play(recording.id):
            return Response(
                {"error": "이 영상을 재생할 권한이 없습니다.", "entitlement": entitlement.as_dict()},
                status=status.HTTP_403_FORBIDDEN,
            )

        body = {
            "token": issue_play_token(play_subject(request.user), recording),
            "expires_in": settings.PLAY_TOKEN_TTL_SECONDS,
            "entitlement": entitlement.as_dict(),
        }
        if new_guest_token:
            body["guest_token"] = new_guest_token

        response = Response(body, status=status.HTTP_200_OK)
        response["Cache-Control"] = "no-store"
        return response


class RecordingStreamView(APIView):
    """재생 토큰으로 Object Storage Signed URL 발급 (30분)"""

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(
        summary="영상 스트리밍 URL 발급",
        parameters=[OpenApiParameter("token", str, required=True)],
        responses={
            200: OpenApiResponse(description="url, expires_in"),
            401: OpenApiResponse(description="재생 토큰이 없거나 만료됨"),
            502: OpenApiResponse(description="저장소 오류"),
        },
        tags=["Playback"],
    )
    def get(self, request):
        token = request.query_params.get("token")
        if not token:
            return Response({"error": "재생 토큰이 필요합니다."}, status=status.HTTP_401_UNAUTHORIZED)

        payload = read_play_token(token)

        if not settings.AWS_STORAGE_BUCKET_NAME:
            raise StreamingNotConfigured()

        try:
            url = generate_video_signed_url(payload["key"])
        except (BotoCoreError, ClientError):
            logger.exception("Signed URL 생성 실패: course=%s recording=%s", payload.get("course"), payload.get("rec"))
            raise StorageUnavailable()

        response = Response(
            {"url": url, "expires_in": settings.STREAM_URL_TTL_SECONDS}, status=status.HTTP_200_OK
        )
        response["Cache-Control"] = "no-store"
        return response
