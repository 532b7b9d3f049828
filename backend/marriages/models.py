"""
Marriages app models.

A ``Marriage`` case is either a **reservation** (booking a shaykh to
conduct the ceremony: meetings are scheduled, then completed) or a
**certificate** request (an admin or the assigned shaykh generates and
uploads the certificate).  Both partners are stored as ``CaseParty``
rows with roles ``partner_one`` / ``partner_two``.
"""

from django.conf import settings
from django.db import models

from cases.models import Case, CaseType


class MarriageType(models.TextChoices):
    RESERVATION = "reservation", "Reservation"
    CERTIFICATE = "certificate", "Certificate"


class Marriage(Case):
    """A marriage reservation or certificate request."""

    CASE_TYPE = CaseType.MARRIAGE

    marriage_type = models.CharField(
        max_length=15,
        choices=MarriageType.choices,
        db_index=True,
        verbose_name="Service Type",
    )

    # ── Reservation ──────────────────────────────────────────────────
    preferred_date = models.DateField(
        null=True,
        blank=True,
        verbose_name="Preferred Date",
    )
    preferred_time = models.TimeField(
        null=True,
        blank=True,
        verbose_name="Preferred Time",
    )
    preferred_location = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Preferred Location",
    )
    preferred_shaykh = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="preferred_for_marriages",
        verbose_name="Preferred Shaykh",
        help_text="A preference only; assignment is done by an admin.",
    )
    register_as_australian = models.BooleanField(
        default=False,
        verbose_name="Register as Australian Marriage",
    )

    # ── Certificate ──────────────────────────────────────────────────
    marriage_date = models.DateField(
        null=True,
        blank=True,
        verbose_name="Marriage Date",
    )
    marriage_place = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Marriage Place",
    )
    certificate_generated = models.BooleanField(
        default=False,
        verbose_name="Certificate Generated",
    )
    certificate_number = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name="Certificate Number",
    )
    certificate_issued_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Certificate Issued Date",
    )
    certificate_file = models.CharField(
        max_length=512,
        blank=True,
        default="",
        verbose_name="Certificate Storage Key",
    )
    certificate_file_url = models.CharField(
        max_length=1024,
        blank=True,
        default="",
        verbose_name="Certificate URL",
    )

    additional_information = models.TextField(
        blank=True,
        default="",
        verbose_name="Additional Information",
    )

    class Meta:
        verbose_name = "Marriage"
        verbose_name_plural = "Marriages"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Marriage {self.get_marriage_type_display()} #{self.pk} ({self.status})"

    @property
    def is_reservation(self) -> bool:
        return self.marriage_type == MarriageType.RESERVATION

    @property
    def is_certificate_request(self) -> bool:
        return self.marriage_type == MarriageType.CERTIFICATE

    def meetings_allowed(self) -> bool:
        """Only reservations hold meetings."""
        return self.is_reservation


class MarriageWitness(models.Model):
    """A witness listed on a certificate request."""

    marriage = models.ForeignKey(
        Marriage,
        on_delete=models.CASCADE,
        related_name="witnesses",
        verbose_name="Marriage",
    )
    name = models.CharField(max_length=255, verbose_name="Name")
    contact = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Contact",
    )

    class Meta:
        verbose_name = "Marriage Witness"
        verbose_name_plural = "Marriage Witnesses"
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} (Marriage #{self.marriage_id})"
