# apps/prompts/views.py
"""
Prompt template API views

Thin routing layer over the template store. Each view builds the store from
the container, calls one operation and maps domain errors to HTTP status.
"""
import functools
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ParseError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.domain.models import (
    ConflictError,
    DomainException,
    HostError,
    NotFoundError,
    ValidationError as DomainValidationError,
)
from apps.domain.services.template_store import structure_to_dict
from apps.infrastructure.container import create_template_store, create_webhook_translator

from .serializers import (
    DeleteRequestSerializer,
    HistoryEntrySerializer,
    TemplateSerializer,
    TemplateWriteSerializer,
)

logger = logging.getLogger(__name__)

ACTOR_HEADER = OpenApiParameter(
    name="X-User",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.HEADER,
    required=False,
    description="User recorded as author of the change",
)


def _actor(request):
    """Acting user from the X-User header, None if absent"""
    return request.headers.get("X-User") or None


def _error_response(error: DomainException) -> Response:
    if isinstance(error, DomainValidationError):
        body = {"success": False, "error": str(error)}
        if error.field:
            body["field"] = error.field
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(error, NotFoundError):
        return Response(
            {"success": False, "error": str(error)}, status=status.HTTP_404_NOT_FOUND
        )
    if isinstance(error, ConflictError):
        return Response(
            {"success": False, "error": str(error)}, status=status.HTTP_409_CONFLICT
        )
    if isinstance(error, HostError):
        return Response(
            {"success": False, "error": str(error)}, status=status.HTTP_502_BAD_GATEWAY
        )
    return Response(
        {"success": False, "error": str(error)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def domain_errors(view):
    """Translate domain exceptions raised by a view into error responses"""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except DomainException as e:
            logger.warning(f"{view.__name__} failed: {type(e).__name__}: {e}")
            return _error_response(e)
        except Exception as e:
            logger.error(f"Error in {view.__name__}: {e}", exc_info=True)
            return Response(
                {"success": False, "error": "Internal server error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    return wrapper


# ============================================================
# TEMPLATES
# ============================================================


@extend_schema(
    methods=["GET"],
    tags=["Templates"],
    summary="List templates",
    parameters=[
        OpenApiParameter(
            name="include",
            type=OpenApiTypes.STR,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Pass 'content' to join each template with its content file",
        )
    ],
    responses={200: TemplateSerializer(many=True)},
)
@extend_schema(
    methods=["POST"],
    tags=["Templates"],
    summary="Create template",
    parameters=[ACTOR_HEADER],
    request=TemplateWriteSerializer,
    responses={201: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
)
@api_view(["GET", "POST"])
@permission_classes([AllowAny])
@domain_errors
def template_collection(request):
    """List templates or create a new one"""
    store = create_template_store()

    if request.method == "GET":
        if request.GET.get("include") == "content":
            templates = [t.to_dict() for t in store.list_with_content()]
        else:
            templates = [h.to_dict() for h in store.list()]
        return Response(templates)

    serializer = TemplateWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    created = store.create(serializer.validated_data, actor=_actor(request))
    return Response(
        {"success": True, "template": created.to_dict()}, status=status.HTTP_201_CREATED
    )


@extend_schema(
    methods=["GET"],
    tags=["Templates"],
    summary="Get template",
    responses={200: TemplateSerializer, 404: OpenApiTypes.OBJECT},
)
@extend_schema(
    methods=["PUT"],
    tags=["Templates"],
    summary="Update template",
    parameters=[ACTOR_HEADER],
    request=TemplateWriteSerializer,
    responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
)
@extend_schema(
    methods=["DELETE"],
    tags=["Templates"],
    summary="Delete template",
    description=(
        "Deletes directly, or opens a pull request when deletes require "
        "approval. The response status field tells which happened."
    ),
    parameters=[ACTOR_HEADER],
    request=DeleteRequestSerializer,
    responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
)
@api_view(["GET", "PUT", "DELETE"])
@permission_classes([AllowAny])
@domain_errors
def template_detail(request, template_id):
    """Get, update or delete one template"""
    store = create_template_store()

    if request.method == "GET":
        return Response(store.get(template_id).to_dict())

    if request.method == "PUT":
        serializer = TemplateWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        updated = store.update(template_id, serializer.validated_data, actor=_actor(request))
        return Response({"success": True, "template": updated.to_dict()})

    serializer = DeleteRequestSerializer(data=request.data or {})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    comment = serializer.validated_data.get("requestComment") or ""

    outcome = store.delete(template_id, comment=comment, actor=_actor(request))
    return Response(outcome.to_dict())


@extend_schema(
    tags=["Templates"],
    summary="Template version history",
    description="Always 200; a lookup failure yields a single placeholder entry.",
    responses={200: HistoryEntrySerializer(many=True)},
)
@api_view(["GET"])
@permission_classes([AllowAny])
@domain_errors
def template_history(request, template_id):
    """Version history of a template's content file"""
    result = create_template_store().history_or_placeholder(template_id)

    body = {"success": True, "history": [entry.to_dict() for entry in result.entries]}
    if result.note:
        body["note"] = result.note
    return Response(body)


# ============================================================
# REPOSITORY
# ============================================================


@extend_schema(
    tags=["Repository"],
    summary="Departments and app codes",
    responses={200: OpenApiTypes.OBJECT, 502: OpenApiTypes.OBJECT},
)
@api_view(["GET"])
@permission_classes([AllowAny])
@domain_errors
def repository_structure(request):
    """Departments and (department, app code) pairs present in the index"""
    structure = create_template_store().repository_structure()
    return Response({"success": True, **structure_to_dict(structure)})


@extend_schema(
    tags=["Repository"],
    summary="Bitbucket webhook receiver",
    description=(
        "Finalizes or abandons approval-gated deletes when their pull request "
        "is merged or declined. Always acknowledges with 200."
    ),
    parameters=[
        OpenApiParameter(
            name="X-Event-Key",
            type=OpenApiTypes.STR,
            location=OpenApiParameter.HEADER,
            required=True,
        )
    ],
    request=OpenApiTypes.OBJECT,
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(["POST"])
@permission_classes([AllowAny])
def webhook(request):
    """Receive pull request events from Bitbucket"""
    event_type = request.headers.get("X-Event-Key", "")

    try:
        payload = request.data
    except ParseError as e:
        logger.warning(f"Unreadable webhook body for {event_type!r}: {e}")
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    try:
        result = create_webhook_translator().handle(event_type, payload)
        logger.info(
            f"Webhook {event_type!r} -> {result.action}"
            + (f" ({result.template_id})" if result.template_id else "")
        )
    except Exception as e:
        logger.error(f"Webhook {event_type!r} could not be dispatched: {e}", exc_info=True)

    return Response({"success": True})
