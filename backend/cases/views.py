"""
Cases app views.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

``CaseWorkflowViewSetMixin`` carries the endpoints every case type
shares (list, retrieve, mine, assigned, assign, feedback, admin notes).
``MeetingActionsMixin`` and ``CancelActionMixin`` add the meeting and
cancellation endpoints to the types that support them.  Per-type
ViewSets set ``model`` and the response serializers, and add their own
@action methods.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .models import Case
from .serializers import (
    AdminNotesSerializer,
    AssignSerializer,
    CancelSerializer,
    CaseDetailSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    FeedbackCreateSerializer,
    FeedbackSerializer,
    MeetingCreateSerializer,
    MeetingSerializer,
    MeetingUpdateSerializer,
)
from .services import CaseQueryService, CaseWorkflowService


class CaseWorkflowViewSetMixin:
    """
    Shared endpoints for every case type.

    Subclasses must define ``model``, ``list_serializer_class`` and
    ``detail_serializer_class``.  Fine-grained permission checks (role,
    ownership, assignment) are enforced inside the service layer,
    not in the view.
    """

    permission_classes = [IsAuthenticated]

    model: type[Case] = Case
    list_serializer_class = CaseListSerializer
    detail_serializer_class = CaseDetailSerializer

    # ── Helpers ──────────────────────────────────────────────────────

    def _get_case(self, pk) -> Case:
        return CaseQueryService.get_case_detail(self.model, self.request.user, pk)

    def _detail(self, case: Case, code: int = status.HTTP_200_OK) -> Response:
        case = CaseQueryService.base_queryset(self.model).get(pk=case.pk)
        serializer = self.detail_serializer_class(case, context={"request": self.request})
        return Response(serializer.data, status=code)

    def _list(self, qs) -> Response:
        serializer = self.list_serializer_class(qs, many=True, context={"request": self.request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    # ── Read endpoints ───────────────────────────────────────────────

    @extend_schema(
        summary="List visible cases",
        description="Admin: all. Shaykh: assigned to them. User: their own.",
        parameters=[CaseFilterSerializer],
        responses={200: OpenApiResponse(description="Filtered list of cases.")},
    )
    def list(self, request: Request) -> Response:
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseQueryService.get_visible_queryset(
            self.model, request.user, filter_serializer.validated_data,
        )
        return self._list(qs)

    @extend_schema(
        summary="Retrieve a case",
        responses={
            200: OpenApiResponse(description="Full case detail."),
            404: OpenApiResponse(description="Not found or not visible to the caller."),
        },
    )
    def retrieve(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = self.detail_serializer_class(case, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="mine")
    @extend_schema(summary="Cases I requested")
    def mine(self, request: Request) -> Response:
        return self._list(CaseQueryService.get_own_cases(self.model, request.user))

    @action(detail=False, methods=["get"], url_path="assigned")
    @extend_schema(
        summary="Cases assigned to me (shaykh)",
        responses={403: OpenApiResponse(description="Not a shaykh.")},
    )
    def assigned(self, request: Request) -> Response:
        return self._list(CaseQueryService.get_assigned_cases(self.model, request.user))

    # ── Workflow endpoints ───────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign shaykh(s) (admin)",
        request=AssignSerializer,
        responses={
            200: OpenApiResponse(description="Case with updated assignees."),
            400: OpenApiResponse(description="Unknown or non-shaykh user id."),
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="Case is closed."),
        },
    )
    def assign(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseWorkflowService.assign(case, serializer.validated_data["shaykh_ids"], request.user)
        return self._detail(case)

    @action(detail=True, methods=["post"], url_path="feedback")
    @extend_schema(
        summary="Add feedback",
        request=FeedbackCreateSerializer,
        responses={
            201: FeedbackSerializer,
            400: OpenApiResponse(description="Empty comment."),
            403: OpenApiResponse(description="Not the owner, an assignee or an admin."),
        },
    )
    def feedback(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = FeedbackCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = CaseWorkflowService.add_feedback(case, serializer.validated_data["comment"], request.user)
        return Response(FeedbackSerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="admin-notes")
    @extend_schema(summary="Replace admin notes (admin)", request=AdminNotesSerializer)
    def admin_notes(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = AdminNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseWorkflowService.update_admin_notes(
            case, serializer.validated_data["admin_notes"], request.user,
        )
        return self._detail(case)


class MeetingActionsMixin:
    """Meeting endpoints for case types that hold meetings."""

    @action(detail=True, methods=["post"], url_path="meetings")
    @extend_schema(
        summary="Schedule a meeting",
        request=MeetingCreateSerializer,
        responses={
            201: MeetingSerializer,
            400: OpenApiResponse(description="Missing fields or meetings not allowed."),
            403: OpenApiResponse(description="Admin or assignee only."),
            409: OpenApiResponse(description="Case is closed."),
        },
    )
    def meetings(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = MeetingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        meeting = CaseWorkflowService.schedule_meeting(case, serializer.validated_data, request.user)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path=r"meetings/(?P<meeting_pk>[^/.]+)")
    @extend_schema(
        summary="Update a meeting",
        request=MeetingUpdateSerializer,
        responses={
            200: MeetingSerializer,
            404: OpenApiResponse(description="Meeting not found on this case."),
        },
    )
    def update_meeting(self, request: Request, pk=None, meeting_pk=None) -> Response:
        case = self._get_case(pk)
        serializer = MeetingUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        meeting = CaseWorkflowService.update_meeting(
            case, meeting_pk, serializer.validated_data, request.user,
        )
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_200_OK)


class CancelActionMixin:
    """Cancellation endpoint for case types that can be cancelled."""

    @action(detail=True, methods=["post"], url_path="cancel")
    @extend_schema(
        summary="Cancel a case",
        request=CancelSerializer,
        responses={
            200: OpenApiResponse(description="Case cancelled."),
            403: OpenApiResponse(description="Owner or admin only."),
            409: OpenApiResponse(description="Case already terminal or cancelled."),
        },
    )
    def cancel(self, request: Request, pk=None) -> Response:
        case = self._get_case(pk)
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseWorkflowService.cancel(case, serializer.validated_data["reason"], request.user)
        return self._detail(case)

