"""
Marriages app views.

Thin ViewSet over ``MarriageService`` / ``MarriageCertificateService``
and the shared case workflow.  Meeting and cancellation endpoints come
from the ``cases.views`` mixins.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.request import Request
from rest_framework.response import Response

from cases.services import CaseQueryService, CaseWorkflowService
from cases.views import CancelActionMixin, CaseWorkflowViewSetMixin, MeetingActionsMixin

from .models import Marriage
from .serializers import (
    CertificateCreateSerializer,
    CertificateInfoSerializer,
    CompleteSerializer,
    GenerateCertificateSerializer,
    MarriageDetailSerializer,
    MarriageListSerializer,
    ReservationCreateSerializer,
    UploadCertificateSerializer,
)
from .services import MarriageCertificateService, MarriageService


@extend_schema(tags=["Marriages"])
class MarriageViewSet(
    MeetingActionsMixin,
    CancelActionMixin,
    CaseWorkflowViewSetMixin,
    viewsets.ViewSet,
):
    """Marriage reservations and certificate requests."""

    model = Marriage
    list_serializer_class = MarriageListSerializer
    detail_serializer_class = MarriageDetailSerializer

    def _detail(self, case, code: int = status.HTTP_200_OK) -> Response:
        case = (
            CaseQueryService.base_queryset(Marriage)
            .select_related("preferred_shaykh")
            .prefetch_related("witnesses")
            .get(pk=case.pk)
        )
        serializer = self.detail_serializer_class(case, context={"request": self.request})
        return Response(serializer.data, status=code)

    # ── Creation ─────────────────────────────────────────────────────

    @action(detail=False, methods=["post"], url_path="reservation")
    @extend_schema(
        summary="Request a marriage reservation",
        request=ReservationCreateSerializer,
        responses={
            201: MarriageDetailSerializer,
            400: OpenApiResponse(description="Missing partner or date fields."),
            403: OpenApiResponse(description="Shaykhs cannot submit requests."),
        },
    )
    def reservation(self, request: Request) -> Response:
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        marriage = MarriageService.create_reservation(serializer.validated_data, request.user)
        return self._detail(marriage, status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="certificate")
    @extend_schema(
        summary="Request a marriage certificate",
        request=CertificateCreateSerializer,
        responses={
            201: MarriageDetailSerializer,
            400: OpenApiResponse(description="Missing partner or marriage fields."),
            403: OpenApiResponse(description="Shaykhs cannot submit requests."),
        },
    )
    def certificate_request(self, request: Request) -> Response:
        serializer = CertificateCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        marriage = MarriageService.create_certificate(serializer.validated_data, request.user)
        return self._detail(marriage, status.HTTP_201_CREATED)

    # ── Completion ───────────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="complete")
    @extend_schema(
        summary="Mark a marriage case completed",
        request=CompleteSerializer,
        responses={
            200: MarriageDetailSerializer,
            403: OpenApiResponse(description="Admin or assignee only."),
            409: OpenApiResponse(description="Case already completed or cancelled."),
        },
    )
    def complete(self, request: Request, pk=None) -> Response:
        marriage = self._get_case(pk)
        serializer = CompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        marriage = CaseWorkflowService.complete(
            marriage, request.user, message=serializer.validated_data["message"],
        )
        return self._detail(marriage)

    # ── Certificates ─────────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="generate-certificate")
    @extend_schema(
        summary="Generate the certificate",
        request=GenerateCertificateSerializer,
        responses={
            200: MarriageDetailSerializer,
            400: OpenApiResponse(description="Not a certificate request."),
            403: OpenApiResponse(description="Admin or assignee only."),
        },
    )
    def generate_certificate(self, request: Request, pk=None) -> Response:
        marriage = self._get_case(pk)
        serializer = GenerateCertificateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        marriage = MarriageCertificateService.generate_certificate(
            marriage, serializer.validated_data["certificate_number"], request.user,
        )
        return self._detail(marriage)

    @action(
        detail=True,
        methods=["post"],
        url_path="upload-certificate",
        parser_classes=[MultiPartParser, FormParser],
    )
    @extend_schema(
        summary="Upload the certificate file",
        request={"multipart/form-data": UploadCertificateSerializer},
        responses={
            200: MarriageDetailSerializer,
            400: OpenApiResponse(description="Not a certificate request or no file."),
            403: OpenApiResponse(description="Admin or assignee only."),
            502: OpenApiResponse(description="Object storage failure."),
        },
    )
    def upload_certificate(self, request: Request, pk=None) -> Response:
        marriage = self._get_case(pk)
        serializer = UploadCertificateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        marriage = MarriageCertificateService.upload_certificate(
            marriage,
            serializer.validated_data["file"],
            request.user,
            certificate_number=serializer.validated_data["certificate_number"],
        )
        return self._detail(marriage)

    @action(detail=True, methods=["get"], url_path="certificate-url")
    @extend_schema(
        summary="Certificate reference",
        responses={
            200: CertificateInfoSerializer,
            404: OpenApiResponse(description="No certificate generated yet."),
        },
    )
    def certificate_url(self, request: Request, pk=None) -> Response:
        marriage = self._get_case(pk)
        info = MarriageCertificateService.certificate_info(marriage)
        return Response(CertificateInfoSerializer(info).data, status=status.HTTP_200_OK)
