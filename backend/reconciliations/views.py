"""
Reconciliations app views.

Thin ViewSet over ``ReconciliationService`` and the shared case
workflow (assign is additive for this type).
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from cases.views import CancelActionMixin, CaseWorkflowViewSetMixin, MeetingActionsMixin

from .models import Reconciliation
from .serializers import (
    ReconciliationCompleteSerializer,
    ReconciliationCreateSerializer,
    ReconciliationDetailSerializer,
    ReconciliationListSerializer,
    ShaykhNotesSerializer,
)
from .services import ReconciliationService


@extend_schema(tags=["Reconciliations"])
class ReconciliationViewSet(
    MeetingActionsMixin,
    CancelActionMixin,
    CaseWorkflowViewSetMixin,
    viewsets.ViewSet,
):
    """Family reconciliation cases."""

    model = Reconciliation
    list_serializer_class = ReconciliationListSerializer
    detail_serializer_class = ReconciliationDetailSerializer

    @extend_schema(
        summary="Open a reconciliation case",
        request=ReconciliationCreateSerializer,
        responses={
            201: ReconciliationDetailSerializer,
            400: OpenApiResponse(description="Missing husband, wife or issue description."),
            403: OpenApiResponse(description="Shaykhs cannot submit requests."),
        },
    )
    def create(self, request: Request) -> Response:
        serializer = ReconciliationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reconciliation = ReconciliationService.create_reconciliation(
            serializer.validated_data, request.user,
        )
        return self._detail(reconciliation, status.HTTP_201_CREATED)

    @action(detail=True, methods=["put"], url_path="notes")
    @extend_schema(
        summary="Replace shaykh notes",
        request=ShaykhNotesSerializer,
        responses={
            200: ReconciliationDetailSerializer,
            400: OpenApiResponse(description="Notes are required."),
            403: OpenApiResponse(description="Admin or assignee only."),
        },
    )
    def notes(self, request: Request, pk=None) -> Response:
        reconciliation = self._get_case(pk)
        serializer = ShaykhNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reconciliation = ReconciliationService.update_shaykh_notes(
            reconciliation, serializer.validated_data["notes"], request.user,
        )
        return self._detail(reconciliation)

    @action(detail=True, methods=["post"], url_path="complete")
    @extend_schema(
        summary="Close with an outcome",
        request=ReconciliationCompleteSerializer,
        responses={
            200: ReconciliationDetailSerializer,
            400: OpenApiResponse(description="Outcome must be resolved or unresolved."),
            403: OpenApiResponse(description="Admin or assignee only."),
            409: OpenApiResponse(description="Case already closed."),
        },
    )
    def complete(self, request: Request, pk=None) -> Response:
        reconciliation = self._get_case(pk)
        serializer = ReconciliationCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reconciliation = ReconciliationService.complete_reconciliation(
            reconciliation,
            serializer.validated_data["outcome"],
            serializer.validated_data["outcome_details"],
            request.user,
        )
        return self._detail(reconciliation)
