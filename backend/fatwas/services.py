"""
Fatwas Service Layer.

Fatwa-only operations layered on the shared case workflow:

- ``FatwaService.create_fatwa``   — a user (or admin) submits a question.
- ``FatwaService.answer_fatwa``   — the sole assignee (or an admin)
  records the answer; ``assigned → answered``.
- ``FatwaService.review_fatwa``   — admin approves (``answered →
  approved``) or unapproves with a mandatory comment (``answered →
  assigned``, comment appended as feedback).
- ``FatwaService.reject_fatwa``   — admin dead-ends the request.
- ``FatwaService.delete_fatwa``   — admin hard delete.
- ``FatwaQueryService``           — public (approved) listing and the
  public-aware detail lookup.

Assignment, unassignment and feedback are the shared
``CaseWorkflowService`` operations.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from cases.models import CaseStatus, Feedback
from cases.services import CaseQueryService, CaseWorkflowService
from cases.workflow import Action, Principal, definition_for, require, require_work_permission
from core.domain.access import ROLE_ADMIN, ROLE_USER, require_role
from core.domain.exceptions import DomainError, NotFound

from .models import Fatwa, FatwaPrivacy

logger = logging.getLogger(__name__)


class FatwaQueryService:
    """Read paths that differ from the generic case lookup."""

    @staticmethod
    def get_public_fatwas(search: str | None = None) -> QuerySet[Fatwa]:
        """Approved, non-confidential fatwas, newest first.  No auth."""
        qs = (
            Fatwa.objects.select_related("answered_by")
            .filter(status=CaseStatus.APPROVED)
            .exclude(privacy=FatwaPrivacy.CONFIDENTIAL)
        )
        if search:
            qs = qs.filter(
                Q(title__icontains=search)
                | Q(question__icontains=search)
                | Q(answer__icontains=search)
            )
        return qs.order_by("-approved_at", "-created_at")

    @staticmethod
    def get_fatwa(pk: Any, requesting_user: Any) -> Fatwa:
        """
        Return one fatwa.

        Public fatwas are returned to anyone (including anonymous
        callers); every other fatwa follows the case visibility rules.

        Raises
        ------
        NotFound
            If it does not exist or the caller may not see it.
        """
        try:
            fatwa = CaseQueryService.base_queryset(Fatwa).get(pk=pk)
        except (Fatwa.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Fatwa with id {pk} not found.")
        if fatwa.is_public:
            return fatwa
        if not getattr(requesting_user, "is_authenticated", False):
            raise NotFound(f"Fatwa with id {pk} not found.")
        return CaseQueryService.get_case_detail(Fatwa, requesting_user, pk)


class FatwaService:
    """Fatwa lifecycle operations."""

    @staticmethod
    @transaction.atomic
    def create_fatwa(validated_data: dict[str, Any], requesting_user: Any) -> Fatwa:
        """
        Submit a new fatwa request in ``pending``.

        Raises
        ------
        PermissionDenied
            If the requester is a shaykh.
        """
        require_role(
            requesting_user, ROLE_USER, ROLE_ADMIN,
            message="Only users can submit fatwa requests.",
        )
        fatwa = Fatwa.objects.create(owner=requesting_user, **validated_data)
        logger.info("Fatwa #%s created by user %s", fatwa.pk, requesting_user.pk)
        return fatwa

    @staticmethod
    @transaction.atomic
    def answer_fatwa(fatwa: Fatwa, answer: str, requesting_user: Any) -> Fatwa:
        """
        Record the answer and move the fatwa to ``answered``.

        A shaykh may answer only while they are the sole assignee and
        the fatwa is ``assigned``; admins may answer any open fatwa.

        Raises
        ------
        PermissionDenied
            Otherwise.
        DomainError
            If ``answer`` is blank.
        InvalidTransition
            If the fatwa is approved or rejected.
        """
        fatwa = CaseWorkflowService.lock(fatwa)
        definition = definition_for(fatwa.case_type)
        require_work_permission(Principal.from_user(requesting_user), fatwa.workflow_context())

        answer = (answer or "").strip()
        if not answer:
            raise DomainError("An answer is required.")
        definition.check_status(Action.RECORD_WORK, fatwa.status, target=CaseStatus.ANSWERED)

        fatwa.answer = answer
        fatwa.answered_by = requesting_user
        fatwa.answered_at = timezone.now()
        return CaseWorkflowService.transition(
            fatwa, CaseStatus.ANSWERED, requesting_user,
            extra_fields=["answer", "answered_by", "answered_at"],
        )

    @staticmethod
    @transaction.atomic
    def review_fatwa(
        fatwa: Fatwa,
        *,
        approve: bool,
        comment: str,
        requesting_user: Any,
    ) -> Fatwa:
        """
        Approve or unapprove an answered fatwa (admin only).

        Parameters
        ----------
        approve : bool
            ``True`` → ``approved`` (an optional comment is kept as
            feedback).  ``False`` → back to ``assigned`` so the shaykh
            can revise; the comment is mandatory.

        Raises
        ------
        PermissionDenied
            If the requester is not an admin.
        DomainError
            If unapproving without a comment.
        InvalidTransition
            If the fatwa is not ``answered``.
        """
        fatwa = CaseWorkflowService.lock(fatwa)
        definition = definition_for(fatwa.case_type)
        require(
            Principal.from_user(requesting_user), Action.REVIEW, fatwa.workflow_context(),
            message="Only admins can review fatwas.",
        )

        comment = (comment or "").strip()
        if not approve and not comment:
            raise DomainError("A comment is required when unapproving a fatwa.")
        target = CaseStatus.APPROVED if approve else CaseStatus.ASSIGNED
        definition.check_status(
            Action.REVIEW, fatwa.status, target=target,
            reason="only answered fatwas can be reviewed",
        )

        if comment:
            Feedback.objects.create(case=fatwa, comment=comment, author=requesting_user)

        extra_fields: list[str] = []
        if approve:
            fatwa.approved_by = requesting_user
            fatwa.approved_at = timezone.now()
            extra_fields = ["approved_by", "approved_at"]
        return CaseWorkflowService.transition(
            fatwa, target, requesting_user,
            message=comment, extra_fields=extra_fields,
        )

    @staticmethod
    @transaction.atomic
    def reject_fatwa(fatwa: Fatwa, reason: str, requesting_user: Any) -> Fatwa:
        """Reject an open fatwa (admin only).  ``rejected`` is final."""
        fatwa = CaseWorkflowService.lock(fatwa)
        definition = definition_for(fatwa.case_type)
        require(
            Principal.from_user(requesting_user), Action.REJECT, fatwa.workflow_context(),
            message="Only admins can reject fatwas.",
        )
        definition.check_status(Action.REJECT, fatwa.status, target=CaseStatus.REJECTED)

        reason = (reason or "").strip()
        if reason:
            Feedback.objects.create(case=fatwa, comment=reason, author=requesting_user)
        return CaseWorkflowService.transition(
            fatwa, CaseStatus.REJECTED, requesting_user, message=reason,
        )

    @staticmethod
    @transaction.atomic
    def delete_fatwa(fatwa: Fatwa, requesting_user: Any) -> None:
        """Hard-delete a fatwa with all its owned records (admin only)."""
        fatwa = CaseWorkflowService.lock(fatwa)
        require(
            Principal.from_user(requesting_user), Action.DELETE, fatwa.workflow_context(),
            message="Only admins can delete fatwas.",
        )
        pk = fatwa.pk
        fatwa.delete()
        logger.info("Fatwa #%s deleted by admin %s", pk, requesting_user.pk)
