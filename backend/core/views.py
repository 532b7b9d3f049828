"""
HTTP entry points of the core app: admin dashboard, cross-type search
and the public constants catalogue.

Aggregation and scoping live in ``core.services``; the views here only
read the request, hand it to the matching service and serialise what
comes back.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    OpenApiResponse,
    extend_schema,
)

from .serializers import (
    DashboardStatsSerializer,
    GlobalSearchResponseSerializer,
    SearchQuerySerializer,
    SystemConstantsSerializer,
)
from .services import (
    DashboardAggregationService,
    GlobalSearchService,
    SystemConstantsService,
)


class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    Return the admin dashboard: totals per case type, upcoming
    meetings, shaykh workload, the recent activity feed, the service
    distribution and the last three months of requests.

    **Authentication**: Required, admin only.

    **Response** (``200 OK``):
        Serialised by ``DashboardStatsSerializer``.

    **Error Responses**:
        - ``401 Unauthorized``: Missing or invalid credentials.
        - ``403 Forbidden``: Caller is not an admin.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard statistics",
        description="Return aggregated statistics across all case types. Admin only.",
        responses={
            200: OpenApiResponse(response=DashboardStatsSerializer, description="Dashboard stats."),
            403: OpenApiResponse(description="Caller is not an admin."),
        },
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        data = service.get_stats()
        serializer = DashboardStatsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)


class GlobalSearchView(APIView):
    """
    **GET /api/core/search/?q=<term>[&category=<cat>][&limit=<n>]**

    Case-insensitive match against titles, questions and party names of
    fatwas, marriages and reconciliations.  Only cases the caller may
    see are returned, grouped by category.

    ``q`` needs at least two characters; ``category`` narrows the search
    to one group; ``limit`` caps each group (1 to 50, default 10).
    Invalid parameters answer ``400``.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Global search",
        description="Search the caller's visible fatwas, marriages and reconciliations.",
        parameters=[SearchQuerySerializer],
        responses={
            200: OpenApiResponse(response=GlobalSearchResponseSerializer, description="Grouped matches."),
            400: OpenApiResponse(description="Query string failed validation."),
        },
        tags=["Search"],
    )
    def get(self, request: Request) -> Response:
        params = SearchQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        service = GlobalSearchService(
            query=params.validated_data["q"],
            user=request.user,
            category=params.validated_data.get("category"),
            limit=params.validated_data["limit"],
        )
        serializer = GlobalSearchResponseSerializer(service.search())
        return Response(serializer.data, status=status.HTTP_200_OK)


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return all choice enumerations and the statuses of each case
    workflow so the frontend can build dropdowns and labels without
    hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description="Return all system-wide choice enumerations and per-type workflow statuses.",
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)
