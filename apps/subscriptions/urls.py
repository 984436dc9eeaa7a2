from django.urls import path

from . import views

urlpatterns = [
    path("subscription-plans/", views.SubscriptionPlanListView.as_view(), name="subscription-plans"),
    path("user-subscriptions/", views.UserSubscriptionView.as_view(), name="user-subscriptions"),
    path("payment-verifications/", views.PaymentVerificationListView.as_view(), name="payment-verifications"),
    path(
        "payment-verifications/<int:verification_id>/",
        views.PaymentVerificationDetailView.as_view(),
        name="payment-verification-detail",
    ),
]
