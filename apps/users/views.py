from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import UserSerializer


class MyinfoView(APIView):
    """
    내 정보 조회 API

    역할에 따른 기능 목록(capabilities)을 함께 내려주어
    프론트엔드가 화면마다 역할 문자열을 비교하지 않도록 함
    """

    @extend_schema(summary="내 정보 조회", responses={200: UserSerializer}, tags=["User"])
    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)
