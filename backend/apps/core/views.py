# backend/apps/core/views.py
"""
Core application views including health checks
"""
import logging
import time

from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from apps.infrastructure.container import create_template_store, get_service_info

logger = logging.getLogger(__name__)

LATENCY_WARNING_MS = 1000


@extend_schema(
    tags=["Health"],
    summary="Repository health check",
    description="Read the template index from the remote repository and measure latency.",
    responses={
        200: OpenApiTypes.OBJECT,
        503: OpenApiTypes.OBJECT,
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
@never_cache
def repository_health_check(request):
    """
    Repository health check endpoint for load balancers and monitoring.

    Returns:
        200: Index is readable
        503: Remote repository is unreachable or the index is malformed

    Response format:
        {"status": "healthy", "latency_ms": 120, "templates": 4}
        {"status": "unhealthy", "error": "read metadata.json@main failed: HTTP 500"}
    """
    start_time = time.time()
    service_info = get_service_info()

    try:
        templates = create_template_store().list()

        latency_ms = round((time.time() - start_time) * 1000, 2)

        if latency_ms > LATENCY_WARNING_MS:
            logger.warning(
                f"Repository health check latency is high: {latency_ms}ms",
                extra={
                    "latency_ms": latency_ms,
                    "threshold_ms": LATENCY_WARNING_MS,
                },
            )

        return JsonResponse(
            {
                "status": "healthy",
                "latency_ms": latency_ms,
                "templates": len(templates),
                "repository": service_info["repository"],
            },
            status=200,
        )

    except Exception as e:
        latency_ms = round((time.time() - start_time) * 1000, 2)

        logger.error(
            f"Repository health check failed: {str(e)}",
            extra={
                "latency_ms": latency_ms,
                "error": str(e),
            },
            exc_info=True,
        )

        return JsonResponse(
            {
                "status": "unhealthy",
                "error": str(e),
                "latency_ms": latency_ms,
            },
            status=503,
        )


def api_root(request):
    """API root endpoint showing available endpoints"""
    return JsonResponse(
        {
            "message": "Prompt Template Store API",
            "version": "1.0",
            "endpoints": {
                "health": "/api/health/repository",
                "templates": "/api/templates/",
                "structure": "/api/bitbucket/structure/",
                "webhooks": "/api/bitbucket/webhooks/",
                "schema": "/api/schema/",
            },
        }
    )
