"""
Fatwas app views.

Thin ViewSet: validate with a serializer, delegate to
``FatwaService`` / ``CaseWorkflowService``, serialize the result.
Shared case endpoints (list, retrieve, mine, assigned, assign,
feedback, admin-notes) come from ``CaseWorkflowViewSetMixin``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from cases.services import CaseWorkflowService
from cases.views import CaseWorkflowViewSetMixin

from .models import Fatwa
from .serializers import (
    FatwaAnswerSerializer,
    FatwaCreateSerializer,
    FatwaDetailSerializer,
    FatwaListSerializer,
    FatwaRejectSerializer,
    FatwaReviewSerializer,
    PublicFatwaSerializer,
)
from .services import FatwaQueryService, FatwaService


@extend_schema(tags=["Fatwas"])
class FatwaViewSet(CaseWorkflowViewSetMixin, viewsets.ViewSet):
    """
    Fatwa requests.

    ``public`` and ``retrieve`` are open to anonymous callers; retrieve
    only returns non-public fatwas to the owner, the assignee or an
    admin.
    """

    model = Fatwa
    list_serializer_class = FatwaListSerializer
    detail_serializer_class = FatwaDetailSerializer

    def get_permissions(self):
        if self.action in ("public", "retrieve"):
            return [AllowAny()]
        return [IsAuthenticated()]

    def _get_case(self, pk) -> Fatwa:
        return FatwaQueryService.get_fatwa(pk, self.request.user)

    @extend_schema(
        summary="Submit a fatwa request",
        request=FatwaCreateSerializer,
        responses={
            201: FatwaDetailSerializer,
            400: OpenApiResponse(description="Missing title or question."),
            403: OpenApiResponse(description="Shaykhs cannot submit requests."),
        },
    )
    def create(self, request: Request) -> Response:
        serializer = FatwaCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fatwa = FatwaService.create_fatwa(serializer.validated_data, request.user)
        return self._detail(fatwa, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Delete a fatwa (admin)",
        responses={
            204: OpenApiResponse(description="Deleted."),
            403: OpenApiResponse(description="Admin only."),
        },
    )
    def destroy(self, request: Request, pk=None) -> Response:
        fatwa = self._get_case(pk)
        FatwaService.delete_fatwa(fatwa, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="public")
    @extend_schema(
        summary="Published fatwas",
        parameters=[OpenApiParameter("search", str, description="Matches title, question or answer.")],
        responses={200: PublicFatwaSerializer(many=True)},
    )
    def public(self, request: Request) -> Response:
        qs = FatwaQueryService.get_public_fatwas(request.query_params.get("search"))
        return Response(PublicFatwaSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="unassign")
    @extend_schema(
        summary="Remove the assigned shaykh (admin)",
        request=None,
        responses={
            200: FatwaDetailSerializer,
            409: OpenApiResponse(description="Fatwa already approved or rejected."),
        },
    )
    def unassign(self, request: Request, pk=None) -> Response:
        fatwa = CaseWorkflowService.unassign(self._get_case(pk), request.user)
        return self._detail(fatwa)

    @action(detail=True, methods=["post"], url_path="answer")
    @extend_schema(
        summary="Answer a fatwa",
        request=FatwaAnswerSerializer,
        responses={
            200: FatwaDetailSerializer,
            400: OpenApiResponse(description="Empty answer."),
            403: OpenApiResponse(description="Not the sole assignee of an assigned fatwa."),
            409: OpenApiResponse(description="Fatwa already approved or rejected."),
        },
    )
    def answer(self, request: Request, pk=None) -> Response:
        fatwa = self._get_case(pk)
        serializer = FatwaAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fatwa = FatwaService.answer_fatwa(fatwa, serializer.validated_data["answer"], request.user)
        return self._detail(fatwa)

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve an answered fatwa (admin)",
        request=FatwaReviewSerializer,
        responses={
            200: FatwaDetailSerializer,
            409: OpenApiResponse(description="Fatwa is not answered."),
        },
    )
    def approve(self, request: Request, pk=None) -> Response:
        fatwa = self._get_case(pk)
        serializer = FatwaReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fatwa = FatwaService.review_fatwa(
            fatwa,
            approve=True,
            comment=serializer.validated_data["comment"],
            requesting_user=request.user,
        )
        return self._detail(fatwa)

    @action(detail=True, methods=["post"], url_path="unapprove")
    @extend_schema(
        summary="Send an answered fatwa back for revision (admin)",
        request=FatwaReviewSerializer,
        responses={
            200: FatwaDetailSerializer,
            400: OpenApiResponse(description="Comment is required."),
            409: OpenApiResponse(description="Fatwa is not answered."),
        },
    )
    def unapprove(self, request: Request, pk=None) -> Response:
        fatwa = self._get_case(pk)
        serializer = FatwaReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fatwa = FatwaService.review_fatwa(
            fatwa,
            approve=False,
            comment=serializer.validated_data["comment"],
            requesting_user=request.user,
        )
        return self._detail(fatwa)

    @action(detail=True, methods=["post"], url_path="reject")
    @extend_schema(
        summary="Reject a fatwa request (admin)",
        request=FatwaRejectSerializer,
        responses={
            200: FatwaDetailSerializer,
            409: OpenApiResponse(description="Fatwa already approved or rejected."),
        },
    )
    def reject(self, request: Request, pk=None) -> Response:
        fatwa = self._get_case(pk)
        serializer = FatwaRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fatwa = FatwaService.reject_fatwa(fatwa, serializer.validated_data["reason"], request.user)
        return self._detail(fatwa)
