from django.urls import path

from .views import EnrollmentInProgressView

urlpatterns = [
    # 수강 중인 과정 조회
    path("enrollments/", EnrollmentInProgressView.as_view(), name="enrollment-in-progress"),
]
