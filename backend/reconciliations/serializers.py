"""
Reconciliations app serializers.
"""

from __future__ import annotations

from rest_framework import serializers

from cases.models import PartyRole
from cases.serializers import CaseDetailSerializer, CaseListSerializer

from .models import Reconciliation


class SpouseSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()


class ReconciliationCreateSerializer(serializers.Serializer):
    husband = SpouseSerializer()
    wife = SpouseSerializer()
    issue_description = serializers.CharField()
    additional_information = serializers.CharField(required=False, allow_blank=True)


class ShaykhNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


class ReconciliationCompleteSerializer(serializers.Serializer):
    outcome = serializers.CharField()
    outcome_details = serializers.CharField(required=False, allow_blank=True, default="")


class ReconciliationListSerializer(CaseListSerializer):
    class Meta(CaseListSerializer.Meta):
        model = Reconciliation
        fields = CaseListSerializer.Meta.fields + ["outcome"]
        read_only_fields = fields


class ReconciliationDetailSerializer(CaseDetailSerializer):
    husband = serializers.SerializerMethodField()
    wife = serializers.SerializerMethodField()

    class Meta(CaseDetailSerializer.Meta):
        model = Reconciliation
        fields = CaseDetailSerializer.Meta.fields + [
            "husband",
            "wife",
            "issue_description",
            "additional_information",
            "outcome",
            "outcome_details",
            "shaykh_notes",
        ]
        read_only_fields = fields

    def get_husband(self, obj: Reconciliation) -> dict | None:
        return self.party_data(obj, PartyRole.HUSBAND)

    def get_wife(self, obj: Reconciliation) -> dict | None:
        return self.party_data(obj, PartyRole.WIFE)
