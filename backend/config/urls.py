# backend/config/urls.py
"""
URL configuration for the prompt template service.
"""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("api/", include("apps.core.urls")),
    path("api/", include("apps.prompts.urls")),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
]
