from django.urls import path

from apps.courses import views

urlpatterns = [
    path("courses/", views.CourseListView.as_view(), name="course-list"),
    path("courses/teaching/", views.TeachingCourseListView.as_view(), name="course-teaching"),
    path("courses/<int:course_id>/recordings/", views.CourseRecordingListView.as_view(), name="course-recordings"),
    path(
        "courses/<int:course_id>/recordings/set-demo/",
        views.SetDemoRecordingView.as_view(),
        name="course-recordings-set-demo",
    ),
    path("courses/<int:course_id>/live-classes/", views.CourseLiveClassListView.as_view(), name="course-live-classes"),
    path(
        "lecture-recordings/access-token/",
        views.RecordingAccessTokenView.as_view(),
        name="lecture-recording-access-token",
    ),
    path("lecture-recordings/stream/", views.RecordingStreamView.as_view(), name="lecture-recording-stream"),
]
