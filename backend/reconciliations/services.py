"""
Reconciliations Service Layer.

- ``ReconciliationService.create_reconciliation`` — user opens a case
  with husband and wife details.
- ``ReconciliationService.update_shaykh_notes``   — admin or assignee
  replaces the working notes.
- ``ReconciliationService.complete_reconciliation`` — closes the case
  as ``resolved`` or ``unresolved``.

Assignment is additive for this type: repeated ``assign`` calls union
the shaykh sets (see ``cases.workflow.RECONCILIATION_WORKFLOW``).
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction

from cases.models import CaseParty, PartyRole
from cases.services import CaseWorkflowService
from cases.workflow import Action, Principal, definition_for, require
from core.domain.access import ROLE_ADMIN, ROLE_USER, require_role
from core.domain.exceptions import DomainError

from .models import Reconciliation

logger = logging.getLogger(__name__)

SPOUSE_FIELDS = ("first_name", "last_name", "phone", "email")


class ReconciliationService:

    @staticmethod
    @transaction.atomic
    def create_reconciliation(validated_data: dict[str, Any], requesting_user: Any) -> Reconciliation:
        """Open a ``pending`` reconciliation case (users and admins)."""
        require_role(
            requesting_user, ROLE_USER, ROLE_ADMIN,
            message="Only users can request reconciliation.",
        )
        data = dict(validated_data)
        husband = data.pop("husband")
        wife = data.pop("wife")

        reconciliation = Reconciliation.objects.create(owner=requesting_user, **data)
        CaseParty.objects.bulk_create([
            CaseParty(case=reconciliation, role=role, **{f: person[f] for f in SPOUSE_FIELDS})
            for role, person in ((PartyRole.HUSBAND, husband), (PartyRole.WIFE, wife))
        ])
        logger.info("Reconciliation #%s created by user %s", reconciliation.pk, requesting_user.pk)
        return reconciliation

    @staticmethod
    @transaction.atomic
    def update_shaykh_notes(
        reconciliation: Reconciliation,
        notes: str,
        requesting_user: Any,
    ) -> Reconciliation:
        """
        Replace the shaykh notes.

        Raises
        ------
        PermissionDenied
            Unless the requester is an admin or an assignee.
        DomainError
            If ``notes`` is blank.
        InvalidTransition
            If the case is cancelled.
        """
        reconciliation = CaseWorkflowService.lock(reconciliation)
        require(
            Principal.from_user(requesting_user), Action.ADD_NOTES,
            reconciliation.workflow_context(),
            message="Only an admin or an assigned shaykh can add notes to this case.",
        )
        notes = (notes or "").strip()
        if not notes:
            raise DomainError("Notes are required.")
        definition_for(reconciliation.case_type).check_status(Action.ADD_NOTES, reconciliation.status)

        reconciliation.shaykh_notes = notes
        reconciliation.save(update_fields=["shaykh_notes", "updated_at"])
        logger.info("Shaykh notes updated on reconciliation #%s by user %s",
                    reconciliation.pk, requesting_user.pk)
        return reconciliation

    @staticmethod
    def complete_reconciliation(
        reconciliation: Reconciliation,
        outcome: str | None,
        outcome_details: str,
        requesting_user: Any,
    ) -> Reconciliation:
        """
        Close the case with ``outcome`` ∈ {resolved, unresolved}; the
        status becomes the outcome.
        """
        return CaseWorkflowService.complete(
            reconciliation,
            requesting_user,
            outcome=outcome,
            changes={"outcome": outcome, "outcome_details": outcome_details or ""},
            message=outcome_details or "",
        )
