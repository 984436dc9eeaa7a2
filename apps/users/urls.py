from django.urls import path

from .views import MyinfoView

urlpatterns = [
    path("me/", MyinfoView.as_view(), name="myinfo"),
]
