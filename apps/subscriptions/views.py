from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import CanDeletePayments, CanReviewPayments, CanSubscribe
from apps.courses.models import Course

from .models import PaymentVerification, Subscription, SubscriptionPlan, SubscriptionStatus
from .serializers import (
    PaymentReviewSerializer,
    PaymentVerificationSerializer,
    SubscriptionPlanSerializer,
    SubscriptionRequestSerializer,
    SubscriptionSerializer,
)
from .services import request_subscription, review_payment


class SubscriptionPlanListView(APIView):
    """활성 요금제 목록 조회 API (가격 오름차순)"""

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(summary="요금제 목록 조회", responses={200: SubscriptionPlanSerializer(many=True)}, tags=["Subscription"])
    def get(self, request):
        plans = SubscriptionPlan.objects.filter(is_active=True).order_by("price")
        plan_type = request.query_params.get("plan_type")
        if plan_type:
            plans = plans.filter(plan_type=plan_type)
        return Response({"plans": SubscriptionPlanSerializer(plans, many=True).data}, status=status.HTTP_200_OK)


class UserSubscriptionView(APIView):
    """내 구독 조회 및 구독 신청 API.

    GET 요청: 로그인한 사용자의 구독 목록 (기본은 active만).
    POST 요청: 구독 신청. 관리자 결제 확인 후 구독이 활성화됨.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [CanSubscribe()]
        return super().get_permissions()

    @extend_schema(
        summary="내 구독 조회",
        parameters=[
            OpenApiParameter("course_id", int, required=False),
            OpenApiParameter("include_expired", bool, required=False),
        ],
        responses={200: SubscriptionSerializer(many=True)},
        tags=["Subscription"],
    )
    def get(self, request):
        subscriptions = (
            Subscription.objects.filter(student=request.user).select_related("plan", "course").order_by("-created_at")
        )

        course_id = request.query_params.get("course_id")
        if course_id:
            subscriptions = subscriptions.filter(course_id=course_id)

        if request.query_params.get("include_expired") != "true":
            subscriptions = subscriptions.filter(status=SubscriptionStatus.ACTIVE)

        serializer = SubscriptionSerializer(subscriptions, many=True)
        return Response({"subscriptions": serializer.data}, status=status.HTTP_200_OK)

    @extend_schema(
        summary="구독 신청",
        request=SubscriptionRequestSerializer,
        responses={
            201: PaymentVerificationSerializer,
            400: OpenApiExample("오류 예시", value={"error": "이미 이 과정에 대한 활성 구독이 있습니다."}),
            404: OpenApiExample("오류 예시", value={"error": "과정을 찾을 수 없습니다."}),
        },
        tags=["Subscription"],
    )
    def post(self, request):
        serializer = SubscriptionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            plan = SubscriptionPlan.objects.get(id=serializer.validated_data["plan_id"], is_active=True)
        except SubscriptionPlan.DoesNotExist:
            return Response({"error": "유효하지 않은 요금제입니다."}, status=status.HTTP_400_BAD_REQUEST)

        try:
            course = Course.objects.get(id=serializer.validated_data["course_id"])
        except Course.DoesNotExist:
            return Response({"error": "과정을 찾을 수 없습니다."}, status=status.HTTP_404_NOT_FOUND)

        verification = request_subscription(request.user, course, plan)
        return Response(
            {
                "message": "결제 확인 요청이 접수되었습니다. 관리자 승인 후 구독이 활성화됩니다.",
                "payment_verification": PaymentVerificationSerializer(verification).data,
            },
            status=status.HTTP_201_CREATED,
        )


class PaymentVerificationListView(APIView):
    """결제 확인 요청 목록 API (관리자)"""

    permission_classes = [CanReviewPayments]

    @extend_schema(
        summary="결제 확인 요청 목록",
        parameters=[OpenApiParameter("status", str, required=False)],
        responses={200: PaymentVerificationSerializer(many=True)},
        tags=["Payment"],
    )
    def get(self, request):
        verifications = PaymentVerification.objects.select_related("course", "plan").order_by("-created_at")
        status_filter = request.query_params.get("status")
        if status_filter:
            verifications = verifications.filter(status=status_filter)
        return Response(PaymentVerificationSerializer(verifications, many=True).data, status=status.HTTP_200_OK)


class PaymentVerificationDetailView(APIView):
    """결제 확인 처리(PATCH, 관리자) 및 삭제(DELETE, superadmin) API"""

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [CanDeletePayments()]
        return [CanReviewPayments()]

    @extend_schema(
        summary="결제 확인 처리",
        description="approved 시 구독을 생성하고 학생을 유료 등록으로 전환합니다.",
        request=PaymentReviewSerializer,
        responses={
            200: PaymentVerificationSerializer,
            400: OpenApiExample("오류 예시", value={"error": "이미 처리된 결제 확인 요청입니다."}),
            404: OpenApiExample("오류 예시", value={"error": "결제 확인 요청을 찾을 수 없습니다."}),
        },
        tags=["Payment"],
    )
    def patch(self, request, verification_id):
        serializer = PaymentReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            verification = review_payment(
                verification_id,
                request.user,
                serializer.validated_data["status"],
                serializer.validated_data.get("notes", ""),
            )
        except PaymentVerification.DoesNotExist:
            return Response({"error": "결제 확인 요청을 찾을 수 없습니다."}, status=status.HTTP_404_NOT_FOUND)

        return Response(
            {
                "message": f"결제 확인이 {verification.status} 처리되었습니다.",
                "payment_verification": PaymentVerificationSerializer(verification).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(summary="결제 확인 요청 삭제", responses={204: None}, tags=["Payment"])
    def delete(self, request, verification_id):
        deleted, _ = PaymentVerification.objects.filter(pk=verification_id).delete()
        if not deleted:
            return Response({"error": "결제 확인 요청을 찾을 수 없습니다."}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
