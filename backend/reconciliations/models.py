"""
Reconciliations app models.

A ``Reconciliation`` case brings a husband and wife together with one
or more shaykhs through scheduled meetings until the case is resolved
or found unresolved.  Husband and wife are ``CaseParty`` rows.
"""

from django.db import models

from cases.models import Case, CaseType


class ReconciliationOutcome(models.TextChoices):
    IN_PROGRESS = "in-progress", "In Progress"
    RESOLVED = "resolved", "Resolved"
    UNRESOLVED = "unresolved", "Unresolved"


class Reconciliation(Case):
    """A family reconciliation case.  Any number of shaykhs may be assigned."""

    CASE_TYPE = CaseType.RECONCILIATION

    issue_description = models.TextField(verbose_name="Issue Description")
    additional_information = models.TextField(
        blank=True,
        default="",
        verbose_name="Additional Information",
    )
    outcome = models.CharField(
        max_length=15,
        choices=ReconciliationOutcome.choices,
        default=ReconciliationOutcome.IN_PROGRESS,
        verbose_name="Outcome",
    )
    outcome_details = models.TextField(
        blank=True,
        default="",
        verbose_name="Outcome Details",
    )
    shaykh_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Shaykh Notes",
    )

    class Meta:
        verbose_name = "Reconciliation"
        verbose_name_plural = "Reconciliations"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Reconciliation #{self.pk} ({self.status})"
