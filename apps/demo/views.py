import logging

from django.contrib.auth import get_user_model
from django.utils import timezone
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import CanManageDemo, CanPinDemoResource, CanRequestDemo
from apps.courses.models import AccessType, Course
from apps.users.models import Role

from .entitlements import check_access
from .guest import guest_window_from_request, issue_guest_token, read_guest_token, start_guest_demo
from .models import DemoGrant
from .serializers import (
    AdminDemoGrantSerializer,
    DemoGrantSerializer,
    DemoRequestSerializer,
    DemoResourcePinSerializer,
    GuestDemoClaimSerializer,
    GuestDemoRequestSerializer,
)
from .services import (
    admin_grant_demo,
    claim_guest_demo,
    expire_demo_enrollments,
    pin_grant_resource,
    request_demo,
    revoke_demo,
)

logger = logging.getLogger(__name__)
User = get_user_model()

COURSE_NOT_FOUND = {"error": "과정을 찾을 수 없습니다."}
GRANT_NOT_FOUND = {"error": "데모 권한을 찾을 수 없습니다."}


def _no_store(response):
    response["Cache-Control"] = "no-store"
    return response


class DemoAccessView(APIView):
    """내 데모 체험 조회 및 신청 API.

    GET 요청: 유효한 데모 권한과 만료된 권한 목록. 모든 권한이 만료된 과정의 데모 등록은 정리됨.
    POST 요청: 24시간 데모 체험 신청 (과정/유형별 1회).
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [CanRequestDemo()]
        return super().get_permissions()

    @extend_schema(
        summary="내 데모 체험 조회",
        parameters=[
            OpenApiParameter("course_id", int, required=False),
            OpenApiParameter("access_type", str, required=False, enum=AccessType.values),
        ],
        responses={200: DemoGrantSerializer(many=True)},
        tags=["Demo"],
    )
    def get(self, request):
        now = timezone.now()
        expire_demo_enrollments(now=now, user=request.user)

        grants = DemoGrant.objects.filter(user=request.user).select_related("course").order_by("-granted_at")
        course_id = request.query_params.get("course_id")
        if course_id:
            grants = grants.filter(course_id=course_id)
        access_type = request.query_params.get("access_type")
        if access_type:
            grants = grants.filter(access_type=access_type)

        context = {"now": now}
        valid = [grant for grant in grants if not grant.is_expired(now)]
        expired = [grant for grant in grants if grant.is_expired(now)]
        return _no_store(
            Response(
                {
                    "has_access": bool(valid),
                    "demo_access": DemoGrantSerializer(valid, many=True, context=context).data,
                    "expired": DemoGrantSerializer(expired, many=True, context=context).data,
                },
                status=status.HTTP_200_OK,
            )
        )

    @extend_schema(
        summary="데모 체험 신청",
        request=DemoRequestSerializer,
        responses={
            200: DemoGrantSerializer,
            201: DemoGrantSerializer,
            409: OpenApiExample("오류 예시", value={"error": "이 강의의 데모 체험 기간이 이미 만료되었습니다."}),
        },
        tags=["Demo"],
    )
    def post(self, request):
        serializer = DemoRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            course = Course.objects.get(id=serializer.validated_data["course_id"], is_published=True)
        except Course.DoesNotExist:
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        now = timezone.now()
        grant, created = request_demo(request.user, course, serializer.validated_data["access_type"], now=now)
        return _no_store(
            Response(
                {
                    "message": "데모 체험이 시작되었습니다." if created else "이미 데모 체험 중입니다.",
                    "demo_access": DemoGrantSerializer(grant, context={"now": now}).data,
                },
                status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
            )
        )


class DemoAccessRevokeView(APIView):
    """데모 권한 삭제 API (관리자)"""

    permission_classes = [CanManageDemo]

    @extend_schema(summary="데모 권한 삭제", responses={204: None}, tags=["Demo Admin"])
    def delete(self, request, grant_id):
        try:
            revoke_demo(grant_id)
        except DemoGrant.DoesNotExist:
            return Response(GRANT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminDemoListView(APIView):
    """데모 권한 목록 API (관리자)"""

    permission_classes = [CanManageDemo]

    @extend_schema(
        summary="데모 권한 목록",
        parameters=[
            OpenApiParameter("course_id", int, required=False),
            OpenApiParameter("active", bool, required=False),
        ],
        responses={200: DemoGrantSerializer(many=True)},
        tags=["Demo Admin"],
    )
    def get(self, request):
        now = timezone.now()
        grants = DemoGrant.objects.select_related("course", "user").order_by("-granted_at")
        course_id = request.query_params.get("course_id")
        if course_id:
            grants = grants.filter(course_id=course_id)
        if request.query_params.get("active") == "true":
            grants = grants.valid_at(now)
        return Response(DemoGrantSerializer(grants, many=True, context={"now": now}).data, status=status.HTTP_200_OK)


class AdminDemoGrantView(APIView):
    """관리자 데모 권한 부여 API. 이미 사용한 체험도 새 기간으로 다시 부여"""

    permission_classes = [CanManageDemo]

    @extend_schema(
        summary="데모 권한 부여",
        request=AdminDemoGrantSerializer,
        responses={200: DemoGrantSerializer, 201: DemoGrantSerializer},
        tags=["Demo Admin"],
    )
    def post(self, request):
        serializer = AdminDemoGrantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            user = User.objects.get(id=data["user_id"], role=Role.STUDENT)
        except User.DoesNotExist:
            return Response({"error": "학생을 찾을 수 없습니다."}, status=status.HTTP_404_NOT_FOUND)

        try:
            course = Course.objects.get(id=data["course_id"])
        except Course.DoesNotExist:
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        now = timezone.now()
        grant, created = admin_grant_demo(user, course, data["access_type"], request.user, now=now)
        return Response(
            DemoGrantSerializer(grant, context={"now": now}).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class AdminDemoResourceView(APIView):
    """데모 권한의 체험 자원 지정 API (superadmin). null이면 지정 해제"""

    permission_classes = [CanPinDemoResource]

    @extend_schema(
        summary="데모 체험 자원 지정",
        request=DemoResourcePinSerializer,
        responses={200: DemoGrantSerializer},
        tags=["Demo Admin"],
    )
    def patch(self, request, grant_id):
        serializer = DemoResourcePinSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            grant = pin_grant_resource(grant_id, serializer.validated_data["resource_id"])
        except DemoGrant.DoesNotExist:
            return Response(GRANT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        return Response(DemoGrantSerializer(grant, context={"now": timezone.now()}).data, status=status.HTTP_200_OK)


class GuestDemoView(APIView):
    """비로그인 게스트 데모 체험 API.

    토큰이 없으면 과정의 첫 자원으로 24시간 체험을 시작하고 서명된 토큰을 발급.
    토큰이 있으면 검증 후 현재 체험 상태를 반환.
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(
        summary="게스트 데모 체험",
        request=GuestDemoRequestSerializer,
        responses={
            200: OpenApiExample("체험 중", value={"token": "...", "entitlement": {"allowed": True}}),
            201: OpenApiExample("체험 시작", value={"token": "...", "entitlement": {"allowed": True}}),
            400: OpenApiExample("오류 예시", value={"error": "유효하지 않은 게스트 데모 토큰입니다."}),
        },
        tags=["Demo"],
    )
    def post(self, request):
        serializer = GuestDemoRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not Course.objects.filter(id=data["course_id"], is_published=True).exists():
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        now = timezone.now()
        token = data.get("token")
        if token:
            state = read_guest_token(token, course_id=data["course_id"], access_type=data["access_type"])
            entitlement = check_access(None, data["course_id"], data["access_type"], guest_demo=state.window, now=now)
            return _no_store(
                Response({"token": token, "entitlement": entitlement.as_dict()}, status=status.HTTP_200_OK)
            )

        entitlement = check_access(None, data["course_id"], data["access_type"], now=now)
        if not entitlement.allowed:
            return Response({"entitlement": entitlement.as_dict()}, status=status.HTTP_404_NOT_FOUND)

        state = start_guest_demo(data["course_id"], data["access_type"], entitlement.demo_resource_id, now)
        entitlement = check_access(None, data["course_id"], data["access_type"], guest_demo=state.window, now=now)
        logger.info("게스트 데모 시작: course=%s type=%s", state.course_id, state.access_type)
        return _no_store(
            Response(
                {"token": issue_guest_token(state), "entitlement": entitlement.as_dict()},
                status=status.HTTP_201_CREATED,
            )
        )


class GuestDemoClaimView(APIView):
    """가입 후 게스트 데모 체험을 학생 데모 권한으로 전환하는 API"""

    permission_classes = [CanRequestDemo]

    @extend_schema(
        summary="게스트 데모 전환",
        request=GuestDemoClaimSerializer,
        responses={200: DemoGrantSerializer, 201: DemoGrantSerializer},
        tags=["Demo"],
    )
    def post(self, request):
        serializer = GuestDemoClaimSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        state = read_guest_token(serializer.validated_data["token"])

        try:
            course = Course.objects.get(id=state.course_id)
        except Course.DoesNotExist:
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        now = timezone.now()
        grant, created = claim_guest_demo(request.user, course, state, now=now)
        return Response(
            DemoGrantSerializer(grant, context={"now": now}).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class CourseEntitlementView(APIView):
    """과정 수강 권한 조회 API. 로그인하지 않은 경우 게스트 토큰 기준으로 판정"""

    permission_classes = (AllowAny,)

    @extend_schema(
        summary="수강 권한 조회",
        parameters=[
            OpenApiParameter("access_type", str, required=False, enum=AccessType.values),
            OpenApiParameter("guest_token", str, required=False),
        ],
        responses={
            200: OpenApiExample(
                "데모 체험 중",
                value={
                    "allowed": True,
                    "tier": "demo",
                    "access_type": "lecture_recording",
                    "demo_resource_id": 3,
                    "remaining_seconds": 82800,
                },
            )
        },
        tags=["Demo"],
    )
    def get(self, request, course_id):
        access_type = request.query_params.get("access_type", AccessType.LECTURE_RECORDING)
        if access_type not in AccessType.values:
            return Response({"error": "유효하지 않은 access_type입니다."}, status=status.HTTP_400_BAD_REQUEST)

        if not Course.objects.filter(id=course_id).exists():
            return Response(COURSE_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        guest_window = guest_window_from_request(request, course_id, access_type)
        entitlement = check_access(request.user, course_id, access_type, guest_demo=guest_window)
        return _no_store(Response(entitlement.as_dict(), status=status.HTTP_200_OK))
