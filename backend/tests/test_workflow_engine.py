"""
Unit tests for ``cases.workflow``: capability checks, status
preconditions and the assignment / completion helpers.  No database
access.
"""

import pytest

from cases.models import CaseStatus as S
from cases.models import CaseType
from cases.workflow import (
    FATWA_WORKFLOW,
    MARRIAGE_WORKFLOW,
    RECONCILIATION_WORKFLOW,
    Action,
    CaseContext,
    Principal,
    can,
    definition_for,
    require,
    require_work_permission,
)
from core.domain.exceptions import DomainError, InvalidTransition, PermissionDenied

ADMIN = Principal(id=1, role="admin")
OWNER = Principal(id=2, role="user")
SHAYKH = Principal(id=3, role="shaykh")
OTHER_SHAYKH = Principal(id=4, role="shaykh")
STRANGER = Principal(id=5, role="user")
ANONYMOUS = Principal(id=None, role=None)


def ctx(case_type=CaseType.FATWA, status=S.ASSIGNED, assignees=(3,)):
    return CaseContext(
        case_type=case_type,
        status=status,
        owner_id=OWNER.id,
        assignee_ids=frozenset(assignees),
    )


class TestCapabilities:
    def test_view_open_to_every_involved_party(self):
        context = ctx()
        assert can(ADMIN, Action.VIEW, context)
        assert can(OWNER, Action.VIEW, context)
        assert can(SHAYKH, Action.VIEW, context)

    def test_view_refused_to_uninvolved(self):
        context = ctx()
        assert not can(OTHER_SHAYKH, Action.VIEW, context)
        assert not can(STRANGER, Action.VIEW, context)
        assert not can(ANONYMOUS, Action.VIEW, context)

    def test_assign_is_admin_only(self):
        context = ctx(CaseType.MARRIAGE)
        assert can(ADMIN, Action.ASSIGN, context)
        assert not can(OWNER, Action.ASSIGN, context)
        assert not can(SHAYKH, Action.ASSIGN, context)

    def test_cancel_open_to_admin_and_owner(self):
        context = ctx(CaseType.RECONCILIATION)
        assert can(ADMIN, Action.CANCEL, context)
        assert can(OWNER, Action.CANCEL, context)
        assert not can(SHAYKH, Action.CANCEL, context)

    def test_unsupported_action_is_refused_even_for_admin(self):
        assert not can(ADMIN, Action.CANCEL, ctx(CaseType.FATWA))
        assert not can(ADMIN, Action.REVIEW, ctx(CaseType.MARRIAGE))
        assert not can(ADMIN, Action.MANAGE_CERTIFICATE, ctx(CaseType.RECONCILIATION))

    def test_assignment_requires_shaykh_role(self):
        # Principal id 3 listed as assignee but no longer a shaykh.
        demoted = Principal(id=3, role="user")
        assert not can(demoted, Action.COMPLETE, ctx(CaseType.MARRIAGE))

    def test_require_raises_permission_denied_with_message(self):
        with pytest.raises(PermissionDenied, match="nope"):
            require(STRANGER, Action.ADD_FEEDBACK, ctx(), message="nope")


class TestRecordWork:
    def test_admin_may_always_record_work(self):
        require_work_permission(ADMIN, ctx(status=S.PENDING, assignees=()))

    def test_sole_assignee_on_assigned_case(self):
        require_work_permission(SHAYKH, ctx(status=S.ASSIGNED))

    def test_assignee_refused_after_answer(self):
        with pytest.raises(PermissionDenied):
            require_work_permission(SHAYKH, ctx(status=S.ANSWERED))

    def test_shared_assignment_refused(self):
        with pytest.raises(PermissionDenied):
            require_work_permission(SHAYKH, ctx(status=S.ASSIGNED, assignees=(3, 4)))

    def test_owner_refused(self):
        with pytest.raises(PermissionDenied):
            require_work_permission(OWNER, ctx(status=S.ASSIGNED))


class TestStatusChecks:
    def test_review_only_from_answered(self):
        FATWA_WORKFLOW.check_status(Action.REVIEW, S.ANSWERED)
        for status in (S.PENDING, S.ASSIGNED, S.APPROVED, S.REJECTED):
            with pytest.raises(InvalidTransition):
                FATWA_WORKFLOW.check_status(Action.REVIEW, status)

    def test_unsupported_action_raises_invalid_transition(self):
        with pytest.raises(InvalidTransition, match="not supported"):
            FATWA_WORKFLOW.check_status(Action.SCHEDULE_MEETING, S.PENDING)

    def test_cancel_closed_case(self):
        with pytest.raises(InvalidTransition, match="already cancelled"):
            MARRIAGE_WORKFLOW.check_cancellable(S.CANCELLED)
        with pytest.raises(InvalidTransition, match="cannot be cancelled"):
            MARRIAGE_WORKFLOW.check_cancellable(S.COMPLETED)
        with pytest.raises(InvalidTransition):
            RECONCILIATION_WORKFLOW.check_cancellable(S.RESOLVED)

    def test_cancel_open_case(self):
        for status in (S.PENDING, S.ASSIGNED, S.IN_PROGRESS):
            RECONCILIATION_WORKFLOW.check_cancellable(status)

    def test_fatwa_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransition):
            FATWA_WORKFLOW.check_cancellable(S.PENDING)

    def test_active_statuses_exclude_closed(self):
        assert MARRIAGE_WORKFLOW.active_statuses == {S.PENDING, S.ASSIGNED, S.IN_PROGRESS}
        assert FATWA_WORKFLOW.active_statuses == {S.PENDING, S.ASSIGNED, S.ANSWERED}


class TestTargets:
    def test_assignment_keeps_in_progress(self):
        assert MARRIAGE_WORKFLOW.assignment_target(S.PENDING) == S.ASSIGNED
        assert MARRIAGE_WORKFLOW.assignment_target(S.IN_PROGRESS) == S.IN_PROGRESS

    def test_first_meeting_starts_the_work(self):
        assert RECONCILIATION_WORKFLOW.meeting_target(S.ASSIGNED) == S.IN_PROGRESS
        assert RECONCILIATION_WORKFLOW.meeting_target(S.IN_PROGRESS) == S.IN_PROGRESS

    def test_marriage_completion_has_no_outcome(self):
        assert MARRIAGE_WORKFLOW.completion_target(None) == S.COMPLETED

    def test_reconciliation_completion_requires_outcome(self):
        assert RECONCILIATION_WORKFLOW.completion_target(S.RESOLVED) == S.RESOLVED
        assert RECONCILIATION_WORKFLOW.completion_target(S.UNRESOLVED) == S.UNRESOLVED
        with pytest.raises(DomainError):
            RECONCILIATION_WORKFLOW.completion_target(None)
        with pytest.raises(DomainError):
            RECONCILIATION_WORKFLOW.completion_target(S.COMPLETED)


class TestAssigneeMerge:
    def test_additive_union_keeps_existing_first(self):
        assert RECONCILIATION_WORKFLOW.merge_assignees([3, 4], [4, 6, 6]) == [3, 4, 6]

    def test_replacing_types_replace(self):
        assert MARRIAGE_WORKFLOW.merge_assignees([3], [4]) == [4]

    def test_capacity_enforced(self):
        with pytest.raises(DomainError, match="at most 1"):
            FATWA_WORKFLOW.merge_assignees([], [3, 4])

    def test_empty_request_rejected(self):
        with pytest.raises(DomainError):
            RECONCILIATION_WORKFLOW.merge_assignees([3], [])


def test_definition_for_unknown_type():
    with pytest.raises(DomainError):
        definition_for("divorce")
