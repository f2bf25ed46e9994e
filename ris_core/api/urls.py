# ris_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from ris_core.iam.api.auth import LoginView, LogoutView, RefreshView
from ris_core.radiology.api.views import RadiologyOrderViewSet

router = DefaultRouter()

router.register(r"radiology/orders", RadiologyOrderViewSet, basename="radiology-orders")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
