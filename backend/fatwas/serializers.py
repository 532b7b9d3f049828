"""
Fatwas app serializers.

Request serializers validate the create / answer / review / reject
payloads.  Response serializers extend the shared case shapes from
``cases.serializers``.  **No business logic** lives here.
"""

from __future__ import annotations

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from cases.serializers import CaseDetailSerializer, CaseListSerializer

from .models import Fatwa, FatwaPrivacy, FatwaUrgency


class FatwaCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    question = serializers.CharField()
    category = serializers.CharField(max_length=50, required=False, default="other")
    urgency = serializers.ChoiceField(
        choices=FatwaUrgency.choices, required=False, default=FatwaUrgency.NOT_URGENT,
    )
    privacy = serializers.ChoiceField(
        choices=FatwaPrivacy.choices, required=False, default=FatwaPrivacy.NOT_CONFIDENTIAL,
    )

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title is required.")
        return value

    def validate_question(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Question is required.")
        return value


class FatwaAnswerSerializer(serializers.Serializer):
    answer = serializers.CharField(allow_blank=True)


class FatwaReviewSerializer(serializers.Serializer):
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class FatwaRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


_FATWA_FIELDS = [
    "title",
    "question",
    "answer",
    "category",
    "urgency",
    "privacy",
]


class FatwaListSerializer(CaseListSerializer):
    class Meta(CaseListSerializer.Meta):
        model = Fatwa
        fields = CaseListSerializer.Meta.fields + _FATWA_FIELDS
        read_only_fields = fields


class FatwaDetailSerializer(CaseDetailSerializer):
    answered_by = UserSummarySerializer(read_only=True)
    approved_by = UserSummarySerializer(read_only=True)

    class Meta(CaseDetailSerializer.Meta):
        model = Fatwa
        fields = CaseDetailSerializer.Meta.fields + _FATWA_FIELDS + [
            "answered_by",
            "answered_at",
            "approved_by",
            "approved_at",
        ]
        read_only_fields = fields


class PublicFatwaSerializer(serializers.ModelSerializer):
    """Published fatwa: no requester, feedback or workflow internals."""

    answered_by = serializers.SerializerMethodField()

    class Meta:
        model = Fatwa
        fields = [
            "id",
            "title",
            "question",
            "answer",
            "category",
            "answered_by",
            "answered_at",
            "approved_at",
        ]
        read_only_fields = fields

    def get_answered_by(self, obj: Fatwa) -> str | None:
        if obj.answered_by is None:
            return None
        return obj.answered_by.get_full_name() or obj.answered_by.username
