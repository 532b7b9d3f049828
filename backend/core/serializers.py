"""
Core app serializers.

Output schemas for the dashboard, global search and constants endpoints,
plus ``SearchQuerySerializer`` which validates the search query string.

Architectural note
------------------
These serializers never import models from other apps.  They work
exclusively with plain Python dicts / lists produced by the service
layer, keeping the core app decoupled from the ``fatwas``,
``marriages``, ``reconciliations`` and ``accounts`` models.
"""

from __future__ import annotations

from rest_framework import serializers

from .services import GlobalSearchService


# ════════════════════════════════════════════════════════════════════
#  Dashboard Statistics
# ════════════════════════════════════════════════════════════════════

class DashboardTotalsSerializer(serializers.Serializer):
    """Scalar totals shown in the dashboard header cards."""

    total_fatwas = serializers.IntegerField()
    answered_fatwas = serializers.IntegerField(
        help_text="Fatwas in status 'answered' or 'approved'.",
    )
    pending_fatwas = serializers.IntegerField(
        help_text="Fatwas in status 'pending' or 'assigned'.",
    )
    total_marriages = serializers.IntegerField()
    certificate_requests = serializers.IntegerField()
    reservation_requests = serializers.IntegerField()
    pending_marriages = serializers.IntegerField(
        help_text="Marriage cases still waiting for an assignment.",
    )
    total_reconciliations = serializers.IntegerField()
    total_shaykhs = serializers.IntegerField()


class UpcomingMeetingSerializer(serializers.Serializer):
    """
    One scheduled meeting.

    Example::

        {
            "id": 7,
            "case_id": 31,
            "case_type": "reconciliation",
            "type": "Family Reconciliation Meeting",
            "client": "Ahmed Family",
            "date": "2026-11-02",
            "time": "14:00:00",
            "location": "Community Centre"
        }
    """

    id = serializers.IntegerField()
    case_id = serializers.IntegerField()
    case_type = serializers.CharField()
    type = serializers.CharField(help_text="Human-readable meeting label.")
    client = serializers.CharField(help_text="Party names of the case.")
    date = serializers.DateField()
    time = serializers.TimeField()
    location = serializers.CharField()


class ShaykhWorkloadSerializer(serializers.Serializer):
    """Active assignment counts of one shaykh."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.EmailField()
    phone_number = serializers.CharField()
    location = serializers.CharField()
    experience = serializers.IntegerField(allow_null=True)
    education = serializers.CharField()
    assigned_fatwas = serializers.IntegerField()
    assigned_marriages = serializers.IntegerField()
    assigned_reconciliations = serializers.IntegerField()
    assigned_cases = serializers.IntegerField(
        help_text="Sum of the per-type counts.",
    )


class RecentActivitySerializer(serializers.Serializer):
    """An activity feed entry; ``type`` is a case type or ``system``."""

    id = serializers.CharField()
    date = serializers.DateTimeField()
    message = serializers.CharField()
    type = serializers.CharField()
    user_id = serializers.IntegerField(allow_null=True)


class DistributionItemSerializer(serializers.Serializer):
    name = serializers.CharField()
    value = serializers.IntegerField(help_text="Rounded percentage (0–100).")


class MonthlyStatSerializer(serializers.Serializer):
    name = serializers.CharField(help_text="Abbreviated month name, e.g. 'Jan'.")
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    marriage_queries = serializers.IntegerField()
    nikahs = serializers.IntegerField()
    family_counseling = serializers.IntegerField()


class DashboardStatsSerializer(serializers.Serializer):
    """Top-level dashboard response."""

    stats = DashboardTotalsSerializer()
    upcoming_meetings = UpcomingMeetingSerializer(many=True)
    shaykh_workload = ShaykhWorkloadSerializer(many=True)
    recent_activities = RecentActivitySerializer(many=True)
    activity_distribution = DistributionItemSerializer(many=True)
    monthly_stats = MonthlyStatSerializer(many=True)


# ════════════════════════════════════════════════════════════════════
#  Global Search
# ════════════════════════════════════════════════════════════════════

class SearchQuerySerializer(serializers.Serializer):
    """Query-string parameters accepted by the global search endpoint."""

    q = serializers.CharField(min_length=GlobalSearchService.MIN_QUERY_LENGTH)
    category = serializers.ChoiceField(choices=GlobalSearchService.CATEGORIES, required=False)
    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=GlobalSearchService.MAX_LIMIT,
        default=GlobalSearchService.DEFAULT_LIMIT,
    )


class SearchResultSerializer(serializers.Serializer):
    """A single case match, shared by every search category."""

    id = serializers.IntegerField()
    case_type = serializers.CharField()
    title = serializers.CharField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class GlobalSearchResponseSerializer(serializers.Serializer):
    """
    Top-level global search response.

    Example::

        {
            "query": "inheritance",
            "total_results": 2,
            "fatwas": [...],
            "marriages": [],
            "reconciliations": [...]
        }
    """

    query = serializers.CharField(help_text="The search term that was used.")
    total_results = serializers.IntegerField(
        help_text="Total number of results across all categories.",
    )
    fatwas = SearchResultSerializer(many=True)
    marriages = SearchResultSerializer(many=True)
    reconciliations = SearchResultSerializer(many=True)


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single value/label pair for a choice enum.

    Example::

        {"value": "pending", "label": "Pending"}
    """

    value = serializers.CharField()
    label = serializers.CharField()


class SystemConstantsSerializer(serializers.Serializer):
    """All choice enumerations the frontend needs."""

    case_types = ChoiceItemSerializer(many=True)
    case_statuses = ChoiceItemSerializer(many=True)
    case_priorities = ChoiceItemSerializer(many=True)
    meeting_statuses = ChoiceItemSerializer(many=True)
    party_roles = ChoiceItemSerializer(many=True)
    user_roles = ChoiceItemSerializer(many=True)
    fatwa_urgencies = ChoiceItemSerializer(many=True)
    fatwa_privacies = ChoiceItemSerializer(many=True)
    marriage_types = ChoiceItemSerializer(many=True)
    reconciliation_outcomes = ChoiceItemSerializer(many=True)
    workflow_statuses = serializers.DictField(
        child=serializers.ListField(child=serializers.DictField(child=serializers.CharField())),
        help_text="Statuses each case type can take, keyed by case type.",
    )
