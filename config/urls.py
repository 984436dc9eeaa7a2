from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/users/", include("apps.users.urls")),
    path("api/", include("apps.courses.urls")),
    path("api/", include("apps.registrations.urls")),
    path("api/", include("apps.subscriptions.urls")),
    path("api/", include("apps.demo.urls")),
]
