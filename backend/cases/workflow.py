"""
cases.workflow — Pure status/authorization engine for every case type.

Nothing in this module touches the database.  Services build a
``CaseContext`` snapshot from a locked row and a ``Principal`` from the
request user, then ask the engine:

* ``can(principal, action, context)`` — does the principal's
  relationship to the case (admin / owner / assignee) permit the action?
* ``WorkflowDefinition.check_status(action, status)`` — is the action
  legal from the current status?

Fatwa, Marriage and Reconciliation share one lifecycle shape and differ
only in the data of their ``WorkflowDefinition``:

    ┌─────────┐ assign ┌──────────┐ meeting ┌─────────────┐ complete ┌──────────┐
    │ pending │───────▶│ assigned │────────▶│ in-progress │─────────▶│ terminal │
    └─────────┘        └──────────┘         └─────────────┘          └──────────┘
         │                   │                     │
         └───────────────────┴─────── cancel ──────┴──────▶ cancelled

Fatwa replaces meetings/completion with answer → answered → review
(approved, or back to assigned on unapprove); rejected is a dead end.

Anything not explicitly allowed fails closed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

from core.domain.access import ROLE_ADMIN, ROLE_SHAYKH, get_user_role_name
from core.domain.exceptions import DomainError, InvalidTransition, PermissionDenied

from .models import CaseStatus, CaseType

S = CaseStatus


class Action(str, Enum):
    VIEW = "view"
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    RECORD_WORK = "record_work"
    REVIEW = "review"
    REJECT = "reject"
    SCHEDULE_MEETING = "schedule_meeting"
    UPDATE_MEETING = "update_meeting"
    ADD_FEEDBACK = "add_feedback"
    ADD_NOTES = "add_notes"
    COMPLETE = "complete"
    CANCEL = "cancel"
    DELETE = "delete"
    MANAGE_CERTIFICATE = "manage_certificate"


class Relationship(str, Enum):
    ADMIN = "admin"
    OWNER = "owner"
    ASSIGNEE = "assignee"


_ADMIN = frozenset({Relationship.ADMIN})
_ADMIN_ASSIGNEE = frozenset({Relationship.ADMIN, Relationship.ASSIGNEE})
_ADMIN_OWNER = frozenset({Relationship.ADMIN, Relationship.OWNER})
_ANYONE_INVOLVED = frozenset(Relationship)

# Action → relationships allowed to perform it.  Evaluated once per operation.
CAPABILITIES: dict[Action, frozenset[Relationship]] = {
    Action.VIEW:               _ANYONE_INVOLVED,
    Action.ASSIGN:             _ADMIN,
    Action.UNASSIGN:           _ADMIN,
    Action.RECORD_WORK:        _ADMIN_ASSIGNEE,
    Action.REVIEW:             _ADMIN,
    Action.REJECT:             _ADMIN,
    Action.SCHEDULE_MEETING:   _ADMIN_ASSIGNEE,
    Action.UPDATE_MEETING:     _ADMIN_ASSIGNEE,
    Action.ADD_FEEDBACK:       _ANYONE_INVOLVED,
    Action.ADD_NOTES:          _ADMIN_ASSIGNEE,
    Action.COMPLETE:           _ADMIN_ASSIGNEE,
    Action.CANCEL:             _ADMIN_OWNER,
    Action.DELETE:             _ADMIN,
    Action.MANAGE_CERTIFICATE: _ADMIN_ASSIGNEE,
}


# ── Snapshots ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Principal:
    """The authenticated actor: an id and one of user / shaykh / admin."""

    id: int | None
    role: str | None

    @classmethod
    def from_user(cls, user) -> Principal:
        return cls(id=getattr(user, "pk", None), role=get_user_role_name(user))

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_shaykh(self) -> bool:
        return self.role == ROLE_SHAYKH


@dataclass(frozen=True)
class CaseContext:
    """What the engine needs to know about a case."""

    case_type: str
    status: str
    owner_id: int | None
    assignee_ids: frozenset[int] = field(default_factory=frozenset)


# ── Definitions ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Per-type transition table.

    Attributes
    ----------
    transitions
        ``Action → statuses the action may start from``.  An action
        absent from the mapping is not supported by the type at all.
    max_assignees
        Assignee capacity; ``None`` means unbounded.
    additive_assignment
        ``True``: ``assign`` unions new shaykhs into the existing set.
        ``False``: ``assign`` replaces the set.
    assignee_visible_statuses
        Statuses in which an assigned case appears in the shaykh's
        "my assignments" list.
    outcomes
        Legal completion outcomes; empty when completion has no outcome.
    """

    case_type: str
    statuses: frozenset[str]
    terminal: frozenset[str]
    transitions: Mapping[Action, frozenset[str]]
    max_assignees: int | None = 1
    additive_assignment: bool = False
    supports_meetings: bool = False
    assignee_visible_statuses: frozenset[str] = frozenset()
    outcomes: frozenset[str] = frozenset()
    completed_status: str | None = None

    # ── Status predicates ────────────────────────────────────────────

    def supports(self, action: Action) -> bool:
        return action in self.transitions

    def sources_for(self, action: Action) -> frozenset[str]:
        return self.transitions.get(action, frozenset())

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal

    def is_closed(self, status: str) -> bool:
        """Terminal or cancelled: no further forward progress."""
        return status in self.terminal or status == S.CANCELLED

    @property
    def active_statuses(self) -> frozenset[str]:
        return frozenset(s for s in self.statuses if not self.is_closed(s))

    def check_status(
        self,
        action: Action,
        current: str,
        *,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        """
        Raise ``InvalidTransition`` unless ``action`` may start from
        ``current``.
        """
        if not self.supports(action):
            raise InvalidTransition(
                f"'{action.value}' is not supported for {self.case_type} cases."
            )
        if current not in self.sources_for(action):
            raise InvalidTransition(
                current=current,
                target=target or action.value,
                reason=reason or (
                    "allowed from: "
                    + ", ".join(sorted(self.sources_for(action)))
                ),
            )

    def check_cancellable(self, current: str) -> None:
        """
        Cancellation precondition, checked before authorization so that
        a closed case reports a conflict to every role.
        """
        if not self.supports(Action.CANCEL):
            raise InvalidTransition(
                f"'{Action.CANCEL.value}' is not supported for {self.case_type} cases."
            )
        if current == S.CANCELLED:
            raise InvalidTransition(
                current=current,
                target=S.CANCELLED,
                reason="The case is already cancelled.",
            )
        if self.is_terminal(current):
            raise InvalidTransition(
                current=current,
                target=S.CANCELLED,
                reason=f"A {current} case cannot be cancelled.",
            )
        self.check_status(Action.CANCEL, current, target=S.CANCELLED)

    # ── Derived targets ──────────────────────────────────────────────

    def assignment_target(self, current: str) -> str:
        """Status after a successful assignment."""
        if current == S.IN_PROGRESS:
            return current
        return S.ASSIGNED

    def meeting_target(self, current: str) -> str:
        """Status after scheduling a meeting (first meeting starts the work)."""
        if current in (S.PENDING, S.ASSIGNED):
            return S.IN_PROGRESS
        return current

    def completion_target(self, outcome: str | None) -> str:
        """
        Validate ``outcome`` and return the status completion moves to.

        Raises
        ------
        DomainError
            If the type requires an outcome and ``outcome`` is not one
            of ``outcomes``.
        """
        if self.outcomes:
            if outcome not in self.outcomes:
                raise DomainError(
                    "outcome must be one of: " + ", ".join(sorted(self.outcomes)) + "."
                )
            return outcome
        return self.completed_status

    def merge_assignees(
        self,
        existing: Iterable[int],
        requested: Iterable[int],
    ) -> list[int]:
        """
        Compute the assignee list after ``assign``.

        Additive types return the de-duplicated union (existing order
        first); replacing types return ``requested``.  The result must
        fit ``max_assignees``.
        """
        requested = list(dict.fromkeys(requested))
        if not requested:
            raise DomainError("At least one shaykh must be specified.")

        if self.additive_assignment:
            merged = list(dict.fromkeys([*existing, *requested]))
        else:
            merged = requested

        if self.max_assignees is not None and len(merged) > self.max_assignees:
            raise DomainError(
                f"A {self.case_type} case can have at most "
                f"{self.max_assignees} assigned shaykh(s)."
            )
        return merged


def _all(*statuses: str) -> frozenset[str]:
    return frozenset(statuses)


FATWA_WORKFLOW = WorkflowDefinition(
    case_type=CaseType.FATWA,
    statuses=_all(S.PENDING, S.ASSIGNED, S.ANSWERED, S.APPROVED, S.REJECTED),
    terminal=_all(S.APPROVED, S.REJECTED),
    max_assignees=1,
    additive_assignment=False,
    assignee_visible_statuses=_all(S.ASSIGNED, S.ANSWERED, S.APPROVED),
    transitions={
        Action.VIEW:         _all(S.PENDING, S.ASSIGNED, S.ANSWERED, S.APPROVED, S.REJECTED),
        Action.ASSIGN:       _all(S.PENDING, S.ASSIGNED, S.ANSWERED),
        Action.UNASSIGN:     _all(S.PENDING, S.ASSIGNED, S.ANSWERED),
        Action.RECORD_WORK:  _all(S.PENDING, S.ASSIGNED, S.ANSWERED),
        Action.REVIEW:       _all(S.ANSWERED),
        Action.REJECT:       _all(S.PENDING, S.ASSIGNED, S.ANSWERED),
        Action.ADD_FEEDBACK: _all(S.PENDING, S.ASSIGNED, S.ANSWERED, S.APPROVED, S.REJECTED),
        Action.DELETE:       _all(S.PENDING, S.ASSIGNED, S.ANSWERED, S.APPROVED, S.REJECTED),
    },
)

MARRIAGE_WORKFLOW = WorkflowDefinition(
    case_type=CaseType.MARRIAGE,
    statuses=_all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED),
    terminal=_all(S.COMPLETED),
    max_assignees=1,
    additive_assignment=False,
    supports_meetings=True,
    assignee_visible_statuses=_all(S.ASSIGNED, S.IN_PROGRESS),
    completed_status=S.COMPLETED,
    transitions={
        Action.VIEW:               _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED),
        Action.ASSIGN:             _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.SCHEDULE_MEETING:   _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.UPDATE_MEETING:     _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED),
        Action.ADD_FEEDBACK:       _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED),
        Action.ADD_NOTES:          _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED),
        Action.COMPLETE:           _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.CANCEL:             _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.MANAGE_CERTIFICATE: _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED),
    },
)

RECONCILIATION_WORKFLOW = WorkflowDefinition(
    case_type=CaseType.RECONCILIATION,
    statuses=_all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED, S.CANCELLED),
    terminal=_all(S.RESOLVED, S.UNRESOLVED),
    max_assignees=None,
    additive_assignment=True,
    supports_meetings=True,
    assignee_visible_statuses=_all(S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED),
    outcomes=_all(S.RESOLVED, S.UNRESOLVED),
    transitions={
        Action.VIEW:             _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED, S.CANCELLED),
        Action.ASSIGN:           _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.SCHEDULE_MEETING: _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.UPDATE_MEETING:   _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED),
        Action.ADD_FEEDBACK:     _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED, S.CANCELLED),
        Action.ADD_NOTES:        _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS, S.RESOLVED, S.UNRESOLVED),
        Action.COMPLETE:         _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
        Action.CANCEL:           _all(S.PENDING, S.ASSIGNED, S.IN_PROGRESS),
    },
)

WORKFLOWS: dict[str, WorkflowDefinition] = {
    CaseType.FATWA: FATWA_WORKFLOW,
    CaseType.MARRIAGE: MARRIAGE_WORKFLOW,
    CaseType.RECONCILIATION: RECONCILIATION_WORKFLOW,
}


def definition_for(case_type: str) -> WorkflowDefinition:
    try:
        return WORKFLOWS[case_type]
    except KeyError:
        raise DomainError(f"Unknown case type '{case_type}'.")


# ── Capability checks ────────────────────────────────────────────────


def relationships(principal: Principal, context: CaseContext) -> frozenset[Relationship]:
    """
    The principal's relationships to the case.  Assignment only counts
    while the principal still holds the shaykh role.
    """
    found = set()
    if principal.is_admin:
        found.add(Relationship.ADMIN)
    if principal.id is not None and principal.id == context.owner_id:
        found.add(Relationship.OWNER)
    if principal.is_shaykh and principal.id in context.assignee_ids:
        found.add(Relationship.ASSIGNEE)
    return frozenset(found)


def can(principal: Principal, action: Action, context: CaseContext) -> bool:
    """Whether ``principal`` may perform ``action`` on the case."""
    if not definition_for(context.case_type).supports(action):
        return False
    return bool(relationships(principal, context) & CAPABILITIES[action])


def require(
    principal: Principal,
    action: Action,
    context: CaseContext,
    message: str | None = None,
) -> None:
    """Raise ``PermissionDenied`` unless ``can(principal, action, context)``."""
    if not can(principal, action, context):
        raise PermissionDenied(
            message
            or f"You are not allowed to {action.value.replace('_', ' ')} this {context.case_type} case."
        )


def require_work_permission(principal: Principal, context: CaseContext) -> None:
    """
    Recording work (answering a fatwa) is open to admins, and to a
    shaykh only when they are the sole assignee of a case that is
    currently ``assigned``.  Every other combination is refused.
    """
    if principal.is_admin:
        return
    if (
        Relationship.ASSIGNEE in relationships(principal, context)
        and len(context.assignee_ids) == 1
        and context.status == S.ASSIGNED
    ):
        return
    raise PermissionDenied(
        "Only an admin, or the shaykh assigned to this case while it is "
        "awaiting an answer, may record work on it."
    )
