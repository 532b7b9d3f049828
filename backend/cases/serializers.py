"""
Cases app serializers.

Request and response serializers for the parts of a case shared by all
types: assignment, meetings, feedback, status history, parties and the
common detail shape.  Per-type apps subclass ``CaseDetailSerializer``
and add their own fields.  **No business logic** lives here.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import (
    Case,
    CaseParty,
    CasePriority,
    CaseStatus,
    CaseStatusLog,
    Feedback,
    Meeting,
    MeetingStatus,
)


# ═══════════════════════════════════════════════════════════════════
#  Sub-entity serializers
# ═══════════════════════════════════════════════════════════════════


class MeetingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Meeting
        fields = [
            "id",
            "date",
            "time",
            "location",
            "notes",
            "status",
            "completed_notes",
            "scheduled_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MeetingCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.TimeField()
    location = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class MeetingUpdateSerializer(serializers.Serializer):
    """Partial update: only the keys sent by the client are applied."""

    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False)
    location = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=MeetingStatus.choices, required=False)
    completed_notes = serializers.CharField(required=False, allow_blank=True)


class FeedbackSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = Feedback
        fields = ["id", "comment", "author", "created_at"]
        read_only_fields = fields


class FeedbackCreateSerializer(serializers.Serializer):
    comment = serializers.CharField(allow_blank=True)


class CaseStatusLogSerializer(serializers.ModelSerializer):
    changed_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = CaseStatusLog
        fields = ["id", "from_status", "to_status", "changed_by", "message", "created_at"]
        read_only_fields = fields


class CasePartySerializer(serializers.ModelSerializer):
    class Meta:
        model = CaseParty
        fields = [
            "first_name",
            "last_name",
            "phone",
            "email",
            "address",
            "date_of_birth",
        ]


# ═══════════════════════════════════════════════════════════════════
#  Workflow request serializers
# ═══════════════════════════════════════════════════════════════════


class AssignSerializer(serializers.Serializer):
    """
    Accepts either ``shaykh_id`` (single) or ``shaykh_ids`` (list).
    Both forms are normalised to ``shaykh_ids``.
    """

    shaykh_id = serializers.IntegerField(required=False)
    shaykh_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        allow_empty=False,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        ids = list(attrs.get("shaykh_ids") or [])
        if attrs.get("shaykh_id") is not None:
            ids.append(attrs["shaykh_id"])
        if not ids:
            raise serializers.ValidationError(
                {"shaykh_ids": "Provide 'shaykh_id' or a non-empty 'shaykh_ids' list."}
            )
        return {"shaykh_ids": ids}


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AdminNotesSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(allow_blank=True)


class CaseFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CaseStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=CasePriority.choices, required=False)


# ═══════════════════════════════════════════════════════════════════
#  Case response serializers
# ═══════════════════════════════════════════════════════════════════


class CaseListSerializer(serializers.ModelSerializer):
    """Compact representation shared by every case type list."""

    owner = UserSummarySerializer(read_only=True)
    assignees = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "case_type",
            "status",
            "priority",
            "owner",
            "assignees",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assignees(self, obj: Case) -> list[dict]:
        return UserSummarySerializer(
            [a.shaykh for a in obj.assignments.all()], many=True,
        ).data


class CaseDetailSerializer(CaseListSerializer):
    """Full case shell: meetings, feedback and status history."""

    meetings = MeetingSerializer(many=True, read_only=True)
    feedback = FeedbackSerializer(source="feedback_entries", many=True, read_only=True)
    status_logs = CaseStatusLogSerializer(many=True, read_only=True)
    admin_notes = serializers.SerializerMethodField()

    class Meta(CaseListSerializer.Meta):
        fields = CaseListSerializer.Meta.fields + [
            "meetings",
            "feedback",
            "status_logs",
            "admin_notes",
            "cancellation_reason",
        ]
        read_only_fields = fields

    def get_admin_notes(self, obj: Case) -> str | None:
        """Admin notes are only shown to admins."""
        from core.domain.access import is_admin

        request = self.context.get("request")
        if request is not None and is_admin(request.user):
            return obj.admin_notes
        return None

    @staticmethod
    def party_data(obj: Case, role: str) -> dict | None:
        for party in obj.parties.all():
            if party.role == role:
                return CasePartySerializer(party).data
        return None
