"""
Marriages app serializers.

Reservations and certificate requests need different partner data,
so each flavour has its own partner serializer with its own required
fields.  **No business logic** lives here.
"""

from __future__ import annotations

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from cases.models import PartyRole
from cases.serializers import CaseDetailSerializer, CaseListSerializer

from .models import Marriage, MarriageWitness


# ═══════════════════════════════════════════════════════════════════
#  Request serializers
# ═══════════════════════════════════════════════════════════════════


class ReservationPartnerSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()
    address = serializers.CharField(max_length=255)
    date_of_birth = serializers.DateField(required=False, allow_null=True)


class CertificatePartnerSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    date_of_birth = serializers.DateField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)


class WitnessSerializer(serializers.ModelSerializer):
    class Meta:
        model = MarriageWitness
        fields = ["name", "contact"]


class ReservationCreateSerializer(serializers.Serializer):
    partner_one = ReservationPartnerSerializer()
    partner_two = ReservationPartnerSerializer()
    preferred_date = serializers.DateField()
    preferred_time = serializers.TimeField(required=False, allow_null=True)
    preferred_location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    preferred_shaykh_id = serializers.IntegerField(required=False, allow_null=True)
    register_as_australian = serializers.BooleanField(required=False, default=False)
    additional_information = serializers.CharField(required=False, allow_blank=True)


class CertificateCreateSerializer(serializers.Serializer):
    partner_one = CertificatePartnerSerializer()
    partner_two = CertificatePartnerSerializer()
    marriage_date = serializers.DateField()
    marriage_place = serializers.CharField(max_length=255)
    witnesses = WitnessSerializer(many=True, required=False)
    register_as_australian = serializers.BooleanField(required=False, default=False)
    additional_information = serializers.CharField(required=False, allow_blank=True)


class CompleteSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default="")


class GenerateCertificateSerializer(serializers.Serializer):
    certificate_number = serializers.CharField(max_length=100)


class UploadCertificateSerializer(serializers.Serializer):
    file = serializers.FileField()
    certificate_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class CertificateInfoSerializer(serializers.Serializer):
    certificate_number = serializers.CharField()
    certificate_issued_date = serializers.DateTimeField(allow_null=True)
    certificate_url = serializers.CharField(allow_null=True)


# ═══════════════════════════════════════════════════════════════════
#  Response serializers
# ═══════════════════════════════════════════════════════════════════


class MarriageListSerializer(CaseListSerializer):
    class Meta(CaseListSerializer.Meta):
        model = Marriage
        fields = CaseListSerializer.Meta.fields + [
            "marriage_type",
            "preferred_date",
            "marriage_date",
        ]
        read_only_fields = fields


class MarriageDetailSerializer(CaseDetailSerializer):
    partner_one = serializers.SerializerMethodField()
    partner_two = serializers.SerializerMethodField()
    witnesses = WitnessSerializer(many=True, read_only=True)
    preferred_shaykh = UserSummarySerializer(read_only=True)

    class Meta(CaseDetailSerializer.Meta):
        model = Marriage
        fields = CaseDetailSerializer.Meta.fields + [
            "marriage_type",
            "partner_one",
            "partner_two",
            "preferred_date",
            "preferred_time",
            "preferred_location",
            "preferred_shaykh",
            "register_as_australian",
            "marriage_date",
            "marriage_place",
            "witnesses",
            "certificate_generated",
            "certificate_number",
            "certificate_issued_date",
            "certificate_file_url",
            "additional_information",
        ]
        read_only_fields = fields

    def get_partner_one(self, obj: Marriage) -> dict | None:
        return self.party_data(obj, PartyRole.PARTNER_ONE)

    def get_partner_two(self, obj: Marriage) -> dict | None:
        return self.party_data(obj, PartyRole.PARTNER_TWO)
