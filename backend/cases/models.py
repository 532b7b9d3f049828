"""
Cases app models.

``Case`` is the aggregate root shared by every request type handled by
the service: fatwa requests, marriage reservations / certificates and
family reconciliations.  Each type lives in its own app and extends
``Case`` through multi-table inheritance, adding only its type-specific
fields.

The aggregate owns its sub-entities explicitly:

* ``CaseAssignment`` — the shaykhs responsible for the case (a set; the
  per-type capacity is enforced by ``cases.workflow``).
* ``Meeting``        — append-only list of scheduled meetings.
* ``Feedback``       — append-only comment log.
* ``CaseStatusLog``  — immutable audit trail of every status change.
* ``CaseParty``      — named people on the case (marriage partners,
  husband and wife).
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class CaseType(models.TextChoices):
    FATWA = "fatwa", "Fatwa"
    MARRIAGE = "marriage", "Marriage"
    RECONCILIATION = "reconciliation", "Reconciliation"


class CaseStatus(models.TextChoices):
    """
    Union of the status vocabularies of all case types.  The legal
    subset for each type is declared by its ``WorkflowDefinition``.
    """

    # ── Shared lifecycle ─────────────────────────────────────────────
    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    IN_PROGRESS = "in-progress", "In Progress"
    CANCELLED = "cancelled", "Cancelled"

    # ── Fatwa ────────────────────────────────────────────────────────
    ANSWERED = "answered", "Answered"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"

    # ── Marriage ─────────────────────────────────────────────────────
    COMPLETED = "completed", "Completed"

    # ── Reconciliation ───────────────────────────────────────────────
    RESOLVED = "resolved", "Resolved"
    UNRESOLVED = "unresolved", "Unresolved"


class CasePriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class MeetingStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    RESCHEDULED = "rescheduled", "Rescheduled"


class PartyRole(models.TextChoices):
    PARTNER_ONE = "partner_one", "Partner One"
    PARTNER_TWO = "partner_two", "Partner Two"
    HUSBAND = "husband", "Husband"
    WIFE = "wife", "Wife"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Case(TimeStampedModel):
    """
    Aggregate root for every request handled by the service.

    * ``owner`` is the requesting user and never changes after creation.
      Accounts that still own cases cannot be deleted.
    * ``status`` always holds a value legal for ``case_type``; it only
      changes through ``cases.services.CaseWorkflowService`` (or the
      per-type services built on it), which append a
      ``CaseStatusLog`` row on every change.
    """

    case_type = models.CharField(
        max_length=20,
        choices=CaseType.choices,
        editable=False,
        db_index=True,
        verbose_name="Case Type",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_cases",
        verbose_name="Requested By",
    )
    status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        default=CaseStatus.PENDING,
        db_index=True,
        verbose_name="Current Status",
    )
    assignees = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="CaseAssignment",
        through_fields=("case", "shaykh"),
        related_name="assigned_cases",
        blank=True,
        verbose_name="Assigned Shaykhs",
    )
    priority = models.CharField(
        max_length=10,
        choices=CasePriority.choices,
        default=CasePriority.MEDIUM,
        verbose_name="Priority",
    )
    admin_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Admin Notes",
    )
    cancellation_reason = models.TextField(
        blank=True,
        default="",
        verbose_name="Cancellation Reason",
    )

    # Overridden by each concrete case model.
    CASE_TYPE: str = ""

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["case_type", "status"], name="case_type_status_idx"),
        ]

    def __str__(self):
        return f"{self.get_case_type_display()} #{self.pk} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.case_type and self.CASE_TYPE:
            self.case_type = self.CASE_TYPE
        super().save(*args, **kwargs)

    @property
    def assignee_ids(self) -> frozenset[int]:
        # Served from ``prefetch_related("assignments")`` when present.
        return frozenset(a.shaykh_id for a in self.assignments.all())

    def meetings_allowed(self) -> bool:
        """Whether this particular case accepts meetings."""
        return True

    def as_concrete(self) -> "Case":
        """Return the type-specific subclass instance for this row."""
        if type(self) is not Case:
            return self
        return getattr(self, self.case_type)

    def workflow_context(self):
        from .workflow import CaseContext

        return CaseContext(
            case_type=self.case_type,
            status=self.status,
            owner_id=self.owner_id,
            assignee_ids=self.assignee_ids,
        )


class CaseAssignment(TimeStampedModel):
    """A shaykh responsible for a case."""

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="Case",
    )
    shaykh = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="case_assignments",
        verbose_name="Shaykh",
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="case_assignments_made",
        verbose_name="Assigned By",
    )

    class Meta:
        verbose_name = "Case Assignment"
        verbose_name_plural = "Case Assignments"
        ordering = ["created_at", "id"]
        unique_together = [("case", "shaykh")]

    def __str__(self):
        return f"Shaykh {self.shaykh_id} on Case #{self.case_id}"


class Meeting(TimeStampedModel):
    """
    A meeting scheduled on a case.  Meetings are never deleted; only
    their status and notes change.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="Case",
    )
    date = models.DateField(verbose_name="Date")
    time = models.TimeField(verbose_name="Time")
    location = models.CharField(
        max_length=255,
        verbose_name="Location",
    )
    notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Notes",
    )
    status = models.CharField(
        max_length=15,
        choices=MeetingStatus.choices,
        default=MeetingStatus.SCHEDULED,
        db_index=True,
        verbose_name="Status",
    )
    completed_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Completion Notes",
    )
    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_meetings",
        verbose_name="Scheduled By",
    )

    class Meta:
        verbose_name = "Meeting"
        verbose_name_plural = "Meetings"
        ordering = ["date", "time", "id"]

    def __str__(self):
        return f"Meeting on Case #{self.case_id} at {self.date} {self.time} ({self.status})"


class Feedback(TimeStampedModel):
    """Append-only comment attached to a case."""

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="feedback_entries",
        verbose_name="Case",
    )
    comment = models.TextField(verbose_name="Comment")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="case_feedback",
        verbose_name="Author",
    )

    class Meta:
        verbose_name = "Feedback"
        verbose_name_plural = "Feedback"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Feedback by {self.author_id} on Case #{self.case_id}"


class CaseStatusLog(TimeStampedModel):
    """
    Immutable audit trail of every status transition for a case.

    Stores the previous/new status, who made the change, and an optional
    message (e.g. the unapproval comment or the cancellation reason).
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Case",
    )
    from_status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        verbose_name="Previous Status",
    )
    to_status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        verbose_name="New Status",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="case_status_changes",
        verbose_name="Changed By",
    )
    message = models.TextField(
        blank=True,
        default="",
        verbose_name="Message",
    )

    class Meta:
        verbose_name = "Case Status Log"
        verbose_name_plural = "Case Status Logs"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return (
            f"Case #{self.case_id}: "
            f"{self.from_status} → {self.to_status}"
        )


class CaseParty(TimeStampedModel):
    """
    A named person on a case who is not necessarily a registered user:
    the two partners of a marriage request, or the husband and wife of
    a reconciliation case.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="parties",
        verbose_name="Case",
    )
    role = models.CharField(
        max_length=15,
        choices=PartyRole.choices,
        verbose_name="Role",
    )
    first_name = models.CharField(max_length=150, verbose_name="First Name")
    last_name = models.CharField(max_length=150, verbose_name="Last Name")
    phone = models.CharField(
        max_length=30,
        blank=True,
        default="",
        verbose_name="Phone",
    )
    email = models.EmailField(
        blank=True,
        default="",
        verbose_name="Email",
    )
    address = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Address",
    )
    date_of_birth = models.DateField(
        null=True,
        blank=True,
        verbose_name="Date of Birth",
    )

    class Meta:
        verbose_name = "Case Party"
        verbose_name_plural = "Case Parties"
        unique_together = [("case", "role")]
        ordering = ["id"]

    def __str__(self):
        return f"{self.get_role_display()} {self.first_name} {self.last_name} on Case #{self.case_id}"
