"""
Cases app Service Layer.

This module is the **single source of truth** for the lifecycle logic
shared by every case type.  The per-type apps (``fatwas``,
``marriages``, ``reconciliations``) add creation and type-only
operations on top of it; views stay thin and delegate here.

Architecture
------------
- ``CaseQueryService``     — role-scoped visibility, "mine", the
                             assignment resolver and workload tallies.
- ``CaseWorkflowService``  — assign / unassign / meetings / feedback /
                             notes / complete / cancel, plus the
                             ``transition`` gateway used by every
                             status change.

Every mutating method follows the same order inside one
``transaction.atomic`` block:

    1. Re-read and lock the case row (``select_for_update``).
    2. Authorization via ``cases.workflow.require``.
    3. Input validation.
    4. Status precondition via ``WorkflowDefinition.check_status``.
    5. Mutate, append audit rows, log, schedule e-mails (on commit).

Nothing is written before step 5, so a failed check leaves the case
unchanged.  ``cancel`` checks the closed-status precondition before
authorization so that every role sees the same conflict.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, QuerySet

from core.domain.access import ROLE_ADMIN, ROLE_SHAYKH, apply_role_scope, require_role
from core.domain.exceptions import DomainError, NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update

from .models import (
    Case,
    CaseAssignment,
    CaseStatus,
    CaseStatusLog,
    CaseType,
    Feedback,
    Meeting,
    MeetingStatus,
)
from .workflow import (
    WORKFLOWS,
    Action,
    Principal,
    can,
    definition_for,
    require,
)

User = get_user_model()

logger = logging.getLogger(__name__)

#: Role → visibility filter for case lists.
CASE_SCOPE = {
    ROLE_ADMIN:  lambda qs, u: qs,
    ROLE_SHAYKH: lambda qs, u: qs.filter(assignments__shaykh=u),
    "user":      lambda qs, u: qs.filter(owner=u),
}

#: Fields a meeting update may touch.
MEETING_PATCH_FIELDS = ("status", "notes", "completed_notes", "date", "time", "location")


# ═══════════════════════════════════════════════════════════════════
#  Case Query Service
# ═══════════════════════════════════════════════════════════════════


class CaseQueryService:
    """
    Read paths: role-scoped lists, detail lookup, the shaykh
    assignment resolver and the admin workload tally.
    """

    @staticmethod
    def base_queryset(model: type[Case]) -> QuerySet:
        return model.objects.select_related("owner").prefetch_related(
            "assignments__shaykh",
            "meetings",
            "feedback_entries__author",
            "parties",
        )

    @staticmethod
    def get_visible_queryset(
        model: type[Case],
        requesting_user: Any,
        filters: dict[str, Any] | None = None,
    ) -> QuerySet:
        """
        Cases of ``model`` the user may list.

        - **admin**: every case.
        - **shaykh**: cases they are assigned to.
        - **user**: cases they requested.

        Supported ``filters`` keys: ``status``, ``priority``.
        """
        qs = apply_role_scope(
            CaseQueryService.base_queryset(model),
            requesting_user,
            scope_config=CASE_SCOPE,
        )
        filters = filters or {}
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("priority"):
            qs = qs.filter(priority=filters["priority"])
        return qs.distinct()

    @staticmethod
    def get_case_detail(model: type[Case], requesting_user: Any, pk: Any) -> Case:
        """
        Return one case the user is involved in.

        Raises
        ------
        NotFound
            If the case does not exist or the user is neither the
            owner, an assignee nor an admin.
        """
        try:
            case = CaseQueryService.base_queryset(model).get(pk=pk)
        except (model.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"{model.__name__} with id {pk} not found.")

        if not can(Principal.from_user(requesting_user), Action.VIEW, case.workflow_context()):
            raise NotFound(f"{model.__name__} with id {pk} not found.")
        return case

    @staticmethod
    def get_own_cases(model: type[Case], requesting_user: Any) -> QuerySet:
        return CaseQueryService.base_queryset(model).filter(owner=requesting_user)

    @staticmethod
    def get_assigned_cases(model: type[Case], requesting_user: Any) -> QuerySet:
        """
        Cases of ``model`` assigned to the requesting shaykh, restricted
        to the type's "still actionable or recently concluded" statuses.
        """
        require_role(
            requesting_user, ROLE_SHAYKH, ROLE_ADMIN,
            message="Only shaykhs have case assignments.",
        )
        definition = definition_for(model.CASE_TYPE)
        return (
            CaseQueryService.base_queryset(model)
            .filter(
                assignments__shaykh=requesting_user,
                status__in=definition.assignee_visible_statuses,
            )
            .distinct()
        )

    @staticmethod
    def get_shaykh_workload() -> list[dict[str, Any]]:
        """
        Active assignments per shaykh, by case type.

        Only assignments on cases that are neither terminal nor
        cancelled count.  Assignments held by accounts that no longer
        have the shaykh role contribute nothing; deleted accounts have
        no assignments left.
        """
        active_filter = None
        for case_type, definition in WORKFLOWS.items():
            clause = {"case__case_type": case_type, "case__status__in": definition.active_statuses}
            active_filter = Q(**clause) if active_filter is None else active_filter | Q(**clause)

        counts: dict[int, dict[str, int]] = defaultdict(lambda: {t: 0 for t in CaseType.values})
        rows = (
            CaseAssignment.objects.filter(active_filter, shaykh__role=ROLE_SHAYKH)
            .values_list("shaykh_id", "case__case_type")
        )
        for shaykh_id, case_type in rows:
            counts[shaykh_id][case_type] += 1

        workload = []
        for shaykh in User.objects.filter(role=ROLE_SHAYKH, is_active=True).order_by("first_name", "last_name"):
            per_type = counts.get(shaykh.pk, {t: 0 for t in CaseType.values})
            workload.append({
                "id": shaykh.pk,
                "name": shaykh.get_full_name() or shaykh.username,
                "email": shaykh.email,
                "phone_number": shaykh.phone_number,
                "location": shaykh.address,
                "experience": shaykh.years_of_experience,
                "education": shaykh.educational_institution,
                "assigned_fatwas": per_type[CaseType.FATWA],
                "assigned_marriages": per_type[CaseType.MARRIAGE],
                "assigned_reconciliations": per_type[CaseType.RECONCILIATION],
                "assigned_cases": sum(per_type.values()),
            })
        return workload


# ═══════════════════════════════════════════════════════════════════
#  Case Workflow Service
# ═══════════════════════════════════════════════════════════════════


class CaseWorkflowService:
    """
    Shared lifecycle operations.  Every method accepts a concrete case
    instance (``Fatwa``, ``Marriage`` or ``Reconciliation``), re-reads
    it under a row lock and returns the refreshed instance.
    """

    @staticmethod
    def lock(case: Case) -> Case:
        """Re-read ``case`` with a row lock.  Must run inside ``atomic``."""
        return lock_for_update(
            type(case),
            case.pk,
            related=("owner",),
            not_found_message=f"{type(case).__name__} with id {case.pk} not found.",
        )

    @staticmethod
    def transition(
        case: Case,
        target_status: str,
        requesting_user: Any,
        message: str = "",
        extra_fields: Iterable[str] = (),
    ) -> Case:
        """
        **The single gateway for status changes.**

        Writes ``status`` (plus ``extra_fields``) and appends a
        ``CaseStatusLog`` row.  Callers have already checked
        authorization and the status precondition on a locked row.
        When the status does not change only ``extra_fields`` are saved.
        """
        previous = case.status
        update_fields = {"updated_at", *extra_fields}
        if previous != target_status:
            case.status = target_status
            update_fields.add("status")
        case.save(update_fields=list(update_fields))

        if previous != target_status:
            CaseStatusLog.objects.create(
                case=case,
                from_status=previous,
                to_status=target_status,
                changed_by=requesting_user,
                message=message,
            )
            NotificationService.send(
                recipients=case.owner.email,
                event_type="case_status_changed",
                context={"case_type": case.case_type, "case_id": case.pk, "status": target_status},
            )
            logger.info(
                "%s #%s: %s → %s by user %s",
                case.case_type, case.pk, previous, target_status,
                getattr(requesting_user, "pk", None),
            )
        return case

    # ── Assignment ───────────────────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def assign(case: Case, shaykh_ids: Iterable[int], requesting_user: Any) -> Case:
        """
        Assign shaykh(s) to ``case`` (admin only).

        Fatwa and Marriage replace their single assignee; Reconciliation
        takes the de-duplicated union of existing and new assignees.
        Status becomes ``assigned`` unless work is already in progress.

        Raises
        ------
        PermissionDenied
            If the requester is not an admin.
        DomainError
            If no id is given, an id does not resolve to an active
            shaykh, or the result exceeds the type's capacity.
        InvalidTransition
            If the case is closed.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        context = case.workflow_context()
        require(Principal.from_user(requesting_user), Action.ASSIGN, context)

        requested = list(dict.fromkeys(int(pk) for pk in shaykh_ids))
        if not requested:
            raise DomainError("At least one shaykh must be specified.")
        shaykhs = {
            u.pk: u
            for u in User.objects.filter(pk__in=requested, role=ROLE_SHAYKH, is_active=True)
        }
        invalid = [pk for pk in requested if pk not in shaykhs]
        if invalid:
            raise DomainError(
                f"The following user id(s) are not active shaykhs: {', '.join(map(str, invalid))}."
            )

        target = definition.assignment_target(case.status)
        definition.check_status(Action.ASSIGN, case.status, target=target)

        existing = [a.shaykh_id for a in case.assignments.all()]
        merged = definition.merge_assignees(existing, requested)

        CaseAssignment.objects.filter(case=case).exclude(shaykh_id__in=merged).delete()
        added = [pk for pk in merged if pk not in existing]
        CaseAssignment.objects.bulk_create([
            CaseAssignment(case=case, shaykh_id=pk, assigned_by=requesting_user)
            for pk in added
        ])

        CaseWorkflowService.transition(
            case, target, requesting_user,
            message=f"Assigned shaykh(s): {', '.join(map(str, merged))}",
        )

        for pk in added:
            NotificationService.send(
                recipients=shaykhs[pk].email,
                event_type="case_assigned",
                context={"case_type": case.case_type, "case_id": case.pk},
            )
        logger.info(
            "%s #%s assignees now %s (added %s) by admin %s",
            case.case_type, case.pk, merged, added, requesting_user.pk,
        )
        return case

    @staticmethod
    @transaction.atomic
    def unassign(case: Case, requesting_user: Any) -> Case:
        """Clear every assignee and return the case to ``pending`` (admin only)."""
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        require(Principal.from_user(requesting_user), Action.UNASSIGN, case.workflow_context())
        definition.check_status(Action.UNASSIGN, case.status, target=CaseStatus.PENDING)

        removed, _ = CaseAssignment.objects.filter(case=case).delete()
        CaseWorkflowService.transition(
            case, CaseStatus.PENDING, requesting_user, message="Unassigned.",
        )
        logger.info("%s #%s unassigned (%d removed) by admin %s",
                    case.case_type, case.pk, removed, requesting_user.pk)
        return case

    # ── Meetings ─────────────────────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def schedule_meeting(case: Case, data: dict[str, Any], requesting_user: Any) -> Meeting:
        """
        Append a ``scheduled`` meeting.  The first meeting on a pending
        or assigned case moves it to ``in-progress``.

        Raises
        ------
        PermissionDenied
            Unless the requester is an admin or a current assignee.
        DomainError
            If the case type (or this particular case) does not take
            meetings, or date/time/location are missing.
        InvalidTransition
            If the case is closed.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        require(Principal.from_user(requesting_user), Action.SCHEDULE_MEETING, case.workflow_context())

        if not definition.supports_meetings or not case.meetings_allowed():
            raise DomainError("Meetings cannot be scheduled for this case.")
        missing = [f for f in ("date", "time", "location") if not data.get(f)]
        if missing:
            raise DomainError(f"Missing required meeting field(s): {', '.join(missing)}.")

        target = definition.meeting_target(case.status)
        definition.check_status(Action.SCHEDULE_MEETING, case.status, target=target)

        meeting = Meeting.objects.create(
            case=case,
            date=data["date"],
            time=data["time"],
            location=data["location"],
            notes=data.get("notes", ""),
            scheduled_by=requesting_user,
        )
        CaseWorkflowService.transition(
            case, target, requesting_user, message="First meeting scheduled.",
        )
        NotificationService.send(
            recipients=case.owner.email,
            event_type="meeting_scheduled",
            context={
                "case_type": case.case_type,
                "case_id": case.pk,
                "date": meeting.date,
                "time": meeting.time,
                "location": meeting.location,
            },
        )
        logger.info("Meeting %s scheduled on %s #%s by user %s",
                    meeting.pk, case.case_type, case.pk, requesting_user.pk)
        return meeting

    @staticmethod
    @transaction.atomic
    def update_meeting(
        case: Case,
        meeting_id: Any,
        patch: dict[str, Any],
        requesting_user: Any,
    ) -> Meeting:
        """
        Partially update one meeting of ``case``.  Only keys present in
        ``patch`` (and listed in ``MEETING_PATCH_FIELDS``) change.

        Raises
        ------
        NotFound
            If the meeting does not belong to the case.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        require(Principal.from_user(requesting_user), Action.UPDATE_MEETING, case.workflow_context())
        definition.check_status(Action.UPDATE_MEETING, case.status)

        try:
            meeting = Meeting.objects.select_for_update().get(pk=meeting_id, case=case)
        except (Meeting.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Meeting with id {meeting_id} not found on this case.")

        changed = [f for f in MEETING_PATCH_FIELDS if f in patch]
        for field in changed:
            setattr(meeting, field, patch[field])
        if changed:
            meeting.save(update_fields=[*changed, "updated_at"])
        logger.info("Meeting %s on %s #%s updated fields %s by user %s",
                    meeting.pk, case.case_type, case.pk, changed, requesting_user.pk)
        return meeting

    # ── Feedback & notes ─────────────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def add_feedback(case: Case, comment: str, requesting_user: Any) -> Feedback:
        """
        Append a feedback entry.  Never changes the status.

        Raises
        ------
        PermissionDenied
            Unless the requester is the owner, an assignee or an admin.
        DomainError
            If ``comment`` is blank.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        require(Principal.from_user(requesting_user), Action.ADD_FEEDBACK, case.workflow_context())

        comment = (comment or "").strip()
        if not comment:
            raise DomainError("A feedback comment is required.")
        definition.check_status(Action.ADD_FEEDBACK, case.status)

        feedback = Feedback.objects.create(case=case, comment=comment, author=requesting_user)
        case.save(update_fields=["updated_at"])
        logger.info("Feedback %s added to %s #%s by user %s",
                    feedback.pk, case.case_type, case.pk, requesting_user.pk)
        return feedback

    @staticmethod
    @transaction.atomic
    def update_admin_notes(case: Case, notes: str, requesting_user: Any) -> Case:
        """Replace the admin-only notes of a case."""
        case = CaseWorkflowService.lock(case)
        require_role(requesting_user, ROLE_ADMIN, message="Only admins can edit admin notes.")
        case.admin_notes = notes or ""
        case.save(update_fields=["admin_notes", "updated_at"])
        logger.info("Admin notes updated on %s #%s by admin %s",
                    case.case_type, case.pk, requesting_user.pk)
        return case

    # ── Completion & cancellation ────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def complete(
        case: Case,
        requesting_user: Any,
        *,
        outcome: str | None = None,
        changes: dict[str, Any] | None = None,
        message: str = "",
    ) -> Case:
        """
        Mark ``case`` complete.

        Marriage moves to ``completed``.  Reconciliation requires
        ``outcome`` ∈ {resolved, unresolved} and moves to that status.
        ``changes`` holds extra type-specific field values written in
        the same save (e.g. ``outcome``/``outcome_details``).

        Raises
        ------
        PermissionDenied
            Unless the requester is an admin or a current assignee.
        DomainError
            If the outcome is required and invalid.
        InvalidTransition
            If the case is not active.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        require(Principal.from_user(requesting_user), Action.COMPLETE, case.workflow_context())

        target = definition.completion_target(outcome)
        definition.check_status(Action.COMPLETE, case.status, target=target)

        changes = changes or {}
        for field, value in changes.items():
            setattr(case, field, value)
        return CaseWorkflowService.transition(
            case, target, requesting_user,
            message=message, extra_fields=changes.keys(),
        )

    @staticmethod
    @transaction.atomic
    def cancel(case: Case, reason: str, requesting_user: Any) -> Case:
        """
        Cancel an active case (owner or admin) and record the reason.  Meetings
        still scheduled on it are cancelled too.

        Raises
        ------
        InvalidTransition
            If the case is already terminal or cancelled, for every
            role including admin.
        PermissionDenied
            Unless the requester is the owner or an admin.
        """
        case = CaseWorkflowService.lock(case)
        definition = definition_for(case.case_type)
        definition.check_cancellable(case.status)
        require(Principal.from_user(requesting_user), Action.CANCEL, case.workflow_context())

        case.cancellation_reason = (reason or "").strip()
        case = CaseWorkflowService.transition(
            case, CaseStatus.CANCELLED, requesting_user,
            message=case.cancellation_reason,
            extra_fields=["cancellation_reason"],
        )
        case.meetings.filter(status=MeetingStatus.SCHEDULED).update(status=MeetingStatus.CANCELLED)
        return case
