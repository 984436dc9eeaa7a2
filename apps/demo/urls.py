from django.urls import path

from . import views

urlpatterns = [
    path("demo-access/", views.DemoAccessView.as_view(), name="demo-access"),
    path("demo-access/<int:grant_id>/", views.DemoAccessRevokeView.as_view(), name="demo-access-revoke"),
    path("demo-access/guest/", views.GuestDemoView.as_view(), name="guest-demo"),
    path("demo-access/guest/claim/", views.GuestDemoClaimView.as_view(), name="guest-demo-claim"),
    path("admin/demo/", views.AdminDemoListView.as_view(), name="admin-demo-list"),
    path("admin/demo/grant/", views.AdminDemoGrantView.as_view(), name="admin-demo-grant"),
    path("admin/demo/<int:grant_id>/resource/", views.AdminDemoResourceView.as_view(), name="admin-demo-resource"),
    path("courses/<int:course_id>/entitlement/", views.CourseEntitlementView.as_view(), name="course-entitlement"),
]
