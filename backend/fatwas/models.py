"""
Fatwas app models.

A ``Fatwa`` is a religious question submitted by a user, answered by an
assigned shaykh and reviewed by an admin before it becomes public.
Lifecycle, assignment, feedback and the status audit trail come from
``cases.Case``.
"""

from django.conf import settings
from django.db import models

from cases.models import Case, CaseStatus, CaseType


class FatwaUrgency(models.TextChoices):
    URGENT = "urgent", "Urgent"
    NOT_URGENT = "not-urgent", "Not Urgent"


class FatwaPrivacy(models.TextChoices):
    CONFIDENTIAL = "confidential", "Confidential"
    NOT_CONFIDENTIAL = "not-confidential", "Not Confidential"


class Fatwa(Case):
    """A fatwa request.  Approved, non-confidential fatwas are public."""

    CASE_TYPE = CaseType.FATWA

    title = models.CharField(
        max_length=200,
        verbose_name="Title",
    )
    question = models.TextField(verbose_name="Question")
    answer = models.TextField(
        blank=True,
        default="",
        verbose_name="Answer",
    )
    answered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="answered_fatwas",
        verbose_name="Answered By",
    )
    answered_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Answered At",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_fatwas",
        verbose_name="Approved By",
    )
    approved_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Approved At",
    )
    category = models.CharField(
        max_length=50,
        default="other",
        verbose_name="Category",
    )
    urgency = models.CharField(
        max_length=15,
        choices=FatwaUrgency.choices,
        default=FatwaUrgency.NOT_URGENT,
        verbose_name="Urgency",
    )
    privacy = models.CharField(
        max_length=20,
        choices=FatwaPrivacy.choices,
        default=FatwaPrivacy.NOT_CONFIDENTIAL,
        verbose_name="Privacy",
    )

    class Meta:
        verbose_name = "Fatwa"
        verbose_name_plural = "Fatwas"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Fatwa #{self.pk}: {self.title}"

    @property
    def is_public(self) -> bool:
        return (
            self.status == CaseStatus.APPROVED
            and self.privacy != FatwaPrivacy.CONFIDENTIAL
        )
