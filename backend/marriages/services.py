"""
Marriages Service Layer.

Creation and certificate operations for marriage cases.  Assignment,
meetings, feedback, completion and cancellation are the shared
``CaseWorkflowService`` operations.

Architecture
------------
- ``MarriageService.create_reservation``   — user books a ceremony.
- ``MarriageService.create_certificate``   — user requests a certificate.
- ``MarriageCertificateService``           — generate / upload / fetch
  the certificate of a certificate request.

Certificate upload crosses the object-storage boundary:

    1. All checks pass on the locked row.
    2. ``put`` the file.  A storage failure raises
       ``ExternalServiceError`` and nothing is written.
    3. Write the key / URL / number / date and complete the case in a
       savepoint.  If that fails the uploaded object is deleted before
       the error propagates.
    4. A certificate file replaced by this upload is deleted once the
       transaction commits.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from django.utils.text import get_valid_filename

from cases.models import CaseParty, CaseStatus, PartyRole
from cases.services import CaseWorkflowService
from cases.workflow import Action, Principal, definition_for, require
from core.domain.access import ROLE_ADMIN, ROLE_SHAYKH, ROLE_USER, require_role
from core.domain.exceptions import DomainError, ExternalServiceError, NotFound
from core.domain.storage import get_object_storage

from .models import Marriage, MarriageType, MarriageWitness

User = get_user_model()

logger = logging.getLogger(__name__)

PARTY_FIELDS = ("first_name", "last_name", "phone", "email", "address", "date_of_birth")


def _create_partners(marriage: Marriage, partner_one: dict, partner_two: dict) -> None:
    CaseParty.objects.bulk_create([
        CaseParty(
            case=marriage,
            role=role,
            **{f: data[f] for f in PARTY_FIELDS if data.get(f) is not None},
        )
        for role, data in (
            (PartyRole.PARTNER_ONE, partner_one),
            (PartyRole.PARTNER_TWO, partner_two),
        )
    ])


def _resolve_preferred_shaykh(shaykh_id: int | None):
    if shaykh_id is None:
        return None
    try:
        return User.objects.get(pk=shaykh_id, role=ROLE_SHAYKH, is_active=True)
    except User.DoesNotExist:
        raise DomainError(f"User id {shaykh_id} is not an active shaykh.")


def _discard_stored_object(storage: Any, key: str) -> None:
    """Delete *key*, logging instead of raising when storage refuses."""
    try:
        storage.delete(key)
    except ExternalServiceError:
        logger.exception("Could not remove stored object %s", key)


class MarriageService:
    """Creation of the two marriage request flavours."""

    @staticmethod
    @transaction.atomic
    def create_reservation(validated_data: dict[str, Any], requesting_user: Any) -> Marriage:
        """
        Create a ``pending`` reservation with both partners.

        Raises
        ------
        PermissionDenied
            If the requester is a shaykh.
        DomainError
            If ``preferred_shaykh_id`` is not an active shaykh.
        """
        require_role(
            requesting_user, ROLE_USER, ROLE_ADMIN,
            message="Only users can request marriage services.",
        )
        data = dict(validated_data)
        partner_one = data.pop("partner_one")
        partner_two = data.pop("partner_two")
        preferred_shaykh = _resolve_preferred_shaykh(data.pop("preferred_shaykh_id", None))

        marriage = Marriage.objects.create(
            owner=requesting_user,
            marriage_type=MarriageType.RESERVATION,
            preferred_shaykh=preferred_shaykh,
            **data,
        )
        _create_partners(marriage, partner_one, partner_two)
        logger.info("Marriage reservation #%s created by user %s", marriage.pk, requesting_user.pk)
        return marriage

    @staticmethod
    @transaction.atomic
    def create_certificate(validated_data: dict[str, Any], requesting_user: Any) -> Marriage:
        """Create a ``pending`` certificate request with partners and witnesses."""
        require_role(
            requesting_user, ROLE_USER, ROLE_ADMIN,
            message="Only users can request marriage services.",
        )
        data = dict(validated_data)
        partner_one = data.pop("partner_one")
        partner_two = data.pop("partner_two")
        witnesses = data.pop("witnesses", [])

        marriage = Marriage.objects.create(
            owner=requesting_user,
            marriage_type=MarriageType.CERTIFICATE,
            **data,
        )
        _create_partners(marriage, partner_one, partner_two)
        MarriageWitness.objects.bulk_create([
            MarriageWitness(marriage=marriage, name=w["name"], contact=w.get("contact", ""))
            for w in witnesses
        ])
        logger.info("Marriage certificate request #%s created by user %s",
                    marriage.pk, requesting_user.pk)
        return marriage


class MarriageCertificateService:
    """Certificate lifecycle of a certificate request."""

    @staticmethod
    def _check_certificate_action(marriage: Marriage, requesting_user: Any) -> None:
        require(
            Principal.from_user(requesting_user),
            Action.MANAGE_CERTIFICATE,
            marriage.workflow_context(),
        )
        if not marriage.is_certificate_request:
            raise DomainError("Certificates can only be issued for certificate requests.")
        definition_for(marriage.case_type).check_status(Action.MANAGE_CERTIFICATE, marriage.status)

    @staticmethod
    @transaction.atomic
    def generate_certificate(
        marriage: Marriage,
        certificate_number: str,
        requesting_user: Any,
    ) -> Marriage:
        """
        Stamp the certificate number and issue date.

        A pending or assigned request moves to ``in-progress``; the
        case completes when the certificate file is uploaded.

        Raises
        ------
        PermissionDenied
            Unless the requester is an admin or the assignee.
        DomainError
            If this is not a certificate request.
        InvalidTransition
            If the case is cancelled.
        """
        marriage = CaseWorkflowService.lock(marriage)
        MarriageCertificateService._check_certificate_action(marriage, requesting_user)

        marriage.certificate_generated = True
        marriage.certificate_number = certificate_number
        marriage.certificate_issued_date = timezone.now()
        target = marriage.status
        if target in (CaseStatus.PENDING, CaseStatus.ASSIGNED):
            target = CaseStatus.IN_PROGRESS
        CaseWorkflowService.transition(
            marriage, target, requesting_user,
            message="Certificate generated.",
            extra_fields=["certificate_generated", "certificate_number", "certificate_issued_date"],
        )
        logger.info("Certificate %s generated for marriage #%s by user %s",
                    certificate_number, marriage.pk, requesting_user.pk)
        return marriage

    @staticmethod
    @transaction.atomic
    def upload_certificate(
        marriage: Marriage,
        upload: Any,
        requesting_user: Any,
        certificate_number: str = "",
    ) -> Marriage:
        """
        Upload the certificate file and complete the case.

        Parameters
        ----------
        upload : UploadedFile
            The file received by the view.

        Raises
        ------
        PermissionDenied
            Unless the requester is an admin or the assignee.
        DomainError
            If this is not a certificate request or no file was sent.
        InvalidTransition
            If the case is cancelled.
        ExternalServiceError
            If the storage backend fails.  The case is unchanged.
        """
        marriage = CaseWorkflowService.lock(marriage)
        MarriageCertificateService._check_certificate_action(marriage, requesting_user)
        if upload is None:
            raise DomainError("A certificate file is required.")

        storage = get_object_storage()
        previous_key = marriage.certificate_file
        key = (
            f"certificates/marriage-{marriage.pk}/"
            f"{uuid.uuid4().hex}-{get_valid_filename(upload.name or 'certificate')}"
        )
        stored = storage.put(
            key,
            upload.read(),
            content_type=getattr(upload, "content_type", None) or "application/octet-stream",
        )

        try:
            with transaction.atomic():
                marriage.certificate_file = stored.key
                marriage.certificate_file_url = stored.url
                if certificate_number:
                    marriage.certificate_number = certificate_number
                marriage.certificate_issued_date = timezone.now()
                CaseWorkflowService.transition(
                    marriage, CaseStatus.COMPLETED, requesting_user,
                    message="Certificate uploaded.",
                    extra_fields=[
                        "certificate_file",
                        "certificate_file_url",
                        "certificate_number",
                        "certificate_issued_date",
                    ],
                )
        except Exception:
            logger.exception("Saving certificate for marriage #%s failed; removing %s",
                             marriage.pk, stored.key)
            _discard_stored_object(storage, stored.key)
            raise

        if previous_key and previous_key != stored.key:
            transaction.on_commit(lambda: _discard_stored_object(storage, previous_key))

        logger.info("Certificate uploaded for marriage #%s (%s, %d bytes) by user %s",
                    marriage.pk, stored.key, stored.size_bytes, requesting_user.pk)
        return marriage

    @staticmethod
    def certificate_info(marriage: Marriage) -> dict[str, Any]:
        """
        Certificate reference for an already-visible marriage.

        Raises
        ------
        NotFound
            If no certificate has been generated or uploaded.
        """
        if not (marriage.certificate_generated or marriage.certificate_file):
            raise NotFound("No certificate has been generated for this marriage.")
        return {
            "certificate_number": marriage.certificate_number,
            "certificate_issued_date": marriage.certificate_issued_date,
            "certificate_url": marriage.certificate_file_url or None,
        }
