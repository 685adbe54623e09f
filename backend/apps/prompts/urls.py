# apps/prompts/urls.py

"""
Prompt template URLs
"""
from django.urls import path

from . import views

app_name = "prompts"

urlpatterns = [
    path("templates/", views.template_collection, name="template-collection"),
    path(
        "templates/<str:template_id>/history/",
        views.template_history,
        name="template-history",
    ),
    path("templates/<str:template_id>/", views.template_detail, name="template-detail"),
    path(
        "bitbucket/template/<str:template_id>/history",
        views.template_history,
        name="bitbucket-template-history",
    ),
    path("bitbucket/structure/", views.repository_structure, name="repository-structure"),
    path("bitbucket/webhooks/", views.webhook, name="webhook"),
]
