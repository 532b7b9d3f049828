"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``   — self-service user creation.
- ``AuthenticationService``     — username/e-mail login + JWT issuance.
- ``CurrentUserService``        — "Me" endpoint helpers, settings, password change.
- ``PasswordResetService``      — forgot / reset password flow.
- ``ShaykhManagementService``   — admin management of shaykh accounts.
- ``AdminAccountService``       — admin listing, creation and provisioning.
- ``RegistrationTokenService``  — one-time shaykh invitations.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.contrib.auth import authenticate as django_authenticate
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q, QuerySet
from django.utils import timezone

from core.domain.access import ROLE_ADMIN, require_role
from core.domain.exceptions import Conflict, DomainError, NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import claim_once

from .models import RegistrationToken, UserRole

User = get_user_model()

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired registration token."
INVALID_RESET_MESSAGE = "Invalid or expired password reset token."
RESET_REQUESTED_MESSAGE = (
    "If an account exists for that e-mail address, a reset link has been sent."
)


def _hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _unique_username(email: str) -> str:
    """Derive a free username from the local part of ``email``."""
    base = email.split("@", 1)[0][:140] or "user"
    candidate = base
    suffix = 1
    while User.objects.filter(username=candidate).exists():
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


def _create_account(validated_data: dict[str, Any], *, role: str) -> User:
    """
    Shared account-creation path for every registration flavour.

    Raises ``Conflict`` when the e-mail or username is already taken.
    Must be called inside an atomic block.
    """
    data = dict(validated_data)
    data.pop("password_confirm", None)
    password = data.pop("password")
    email = data.pop("email").strip().lower()
    username = data.pop("username", None) or _unique_username(email)

    conflicts = []
    if User.objects.filter(email=email).exists():
        conflicts.append("email")
    if User.objects.filter(username=username).exists():
        conflicts.append("username")
    if conflicts:
        raise Conflict(
            f"The following field(s) already exist: {', '.join(conflicts)}."
        )

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username,
                email=email,
                password=password,
                role=role,
                **data,
            )
    except IntegrityError:
        raise Conflict(
            "A user with one of the provided unique fields already exists."
        )
    return user


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Self-service registration of ordinary users."""

    @staticmethod
    @transaction.atomic
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new user with role ``user``.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer`` containing
            ``email``, ``password``, ``first_name``, ``last_name`` and
            optionally ``username``.

        Returns
        -------
        User
            The newly created (and saved) ``User`` instance.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the e-mail or username is already taken.
        """
        user = _create_account(validated_data, role=UserRole.USER)
        logger.info("Registered user %s", user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Handles login and JWT token generation.  The identifier may be a
    username or an e-mail address.
    """

    @staticmethod
    def authenticate(identifier: str, password: str) -> User | None:
        """
        Validate credentials and return the user if successful.

        Returns ``None`` if credentials are invalid or the user is
        inactive.
        """
        return django_authenticate(identifier=identifier, password=password)

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair carrying the role claim.

        Returns
        -------
        dict
            ``{"access": "<token>", "refresh": "<token>"}``.
        """
        from .serializers import CustomTokenObtainPairSerializer

        refresh = CustomTokenObtainPairSerializer.get_token(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the authenticated user's own account."""

    @staticmethod
    def get_profile(user: User) -> User:
        return user

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Apply ``validated_data`` (already restricted to self-editable
        fields by ``MeUpdateSerializer``) to ``user``.
        """
        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=[*validated_data.keys()])
        logger.info("User %s updated profile fields %s", user.pk, sorted(validated_data))
        return user

    @staticmethod
    def update_settings(user: User, validated_data: dict[str, Any]) -> User:
        """Store the preferences validated by ``UserSettingsSerializer``."""
        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=[*validated_data.keys()])
        logger.info("User %s updated settings %s", user.pk, sorted(validated_data))
        return user

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> None:
        """
        Raises
        ------
        DomainError
            If ``current_password`` does not match.
        """
        if not user.check_password(current_password):
            raise DomainError("Current password is incorrect.")
        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("User %s changed password", user.pk)


# ═══════════════════════════════════════════════════════════════════
#  Password Reset Service
# ═══════════════════════════════════════════════════════════════════


class PasswordResetService:
    """
    Forgot-password flow.

    A random token is e-mailed to the user; only its SHA-256 digest is
    stored.  The token is valid for ``PASSWORD_RESET_EXPIRY_MINUTES``
    and is cleared on use.
    """

    @staticmethod
    @transaction.atomic
    def request_reset(email: str) -> str:
        """
        Issue a reset token for ``email`` if such an account exists.

        The same message is returned whether or not the account exists
        so that the endpoint cannot be used to enumerate users.  The
        e-mail is sent after commit; a delivery failure is logged and
        does not undo the token.
        """
        try:
            user = User.objects.get(email=email.strip().lower(), is_active=True)
        except User.DoesNotExist:
            logger.info("Password reset requested for unknown e-mail")
            return RESET_REQUESTED_MESSAGE

        raw = secrets.token_hex(20)
        minutes = settings.PASSWORD_RESET_EXPIRY_MINUTES
        user.reset_password_token = _hash_token(raw)
        user.reset_password_expires_at = timezone.now() + timedelta(minutes=minutes)
        user.save(update_fields=["reset_password_token", "reset_password_expires_at"])

        NotificationService.send(
            recipients=user.email,
            event_type="password_reset",
            context={
                "reset_url": f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{raw}",
                "minutes": minutes,
            },
        )
        logger.info("Password reset token issued for user %s", user.pk)
        return RESET_REQUESTED_MESSAGE

    @staticmethod
    @transaction.atomic
    def reset_password(raw_token: str, new_password: str) -> User:
        """
        Raises
        ------
        DomainError
            If the token does not match or has expired.
        """
        try:
            user = User.objects.select_for_update().get(
                reset_password_token=_hash_token(raw_token),
                reset_password_expires_at__gt=timezone.now(),
            )
        except User.DoesNotExist:
            raise DomainError(INVALID_RESET_MESSAGE)

        user.set_password(new_password)
        user.reset_password_token = ""
        user.reset_password_expires_at = None
        user.save(update_fields=["password", "reset_password_token", "reset_password_expires_at"])
        logger.info("Password reset completed for user %s", user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Shaykh Management Service
# ═══════════════════════════════════════════════════════════════════


class ShaykhManagementService:
    """Admin management of shaykh accounts."""

    @staticmethod
    def list_shaykhs(*, search: str | None = None) -> QuerySet[User]:
        qs = User.objects.filter(role=UserRole.SHAYKH, is_active=True).order_by(
            "first_name", "last_name"
        )
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
            )
        return qs

    @staticmethod
    @transaction.atomic
    def create_shaykh(validated_data: dict[str, Any], *, performed_by: User) -> User:
        require_role(performed_by, ROLE_ADMIN, message="Only admins can create shaykh accounts.")
        user = _create_account(validated_data, role=UserRole.SHAYKH)
        logger.info("Admin %s created shaykh %s", performed_by.pk, user.pk)
        return user

    @staticmethod
    @transaction.atomic
    def delete_shaykh(shaykh_id: int, *, performed_by: User) -> None:
        """
        Delete a shaykh account.  Their case assignments are removed
        with them; the cases themselves are untouched.

        Raises
        ------
        Conflict
            If the account still owns cases of its own.
        """
        require_role(performed_by, ROLE_ADMIN, message="Only admins can delete shaykh accounts.")
        try:
            shaykh = User.objects.get(pk=shaykh_id, role=UserRole.SHAYKH)
        except User.DoesNotExist:
            raise NotFound(f"Shaykh with id {shaykh_id} not found.")
        try:
            shaykh.delete()
        except ProtectedError:
            raise Conflict(
                f"Shaykh with id {shaykh_id} still owns case requests and cannot be deleted."
            )
        logger.info("Admin %s deleted shaykh %s", performed_by.pk, shaykh_id)


# ═══════════════════════════════════════════════════════════════════
#  Admin Account Service
# ═══════════════════════════════════════════════════════════════════


class AdminAccountService:
    """
    Admin accounts.  The first admin is provisioned from the command
    line (``manage.py create_admin``); further admins are created by an
    existing admin through the API.
    """

    @staticmethod
    def list_admins(*, performed_by: User) -> QuerySet[User]:
        require_role(performed_by, ROLE_ADMIN, message="Only admins can list admin accounts.")
        return User.objects.filter(role=UserRole.ADMIN, is_active=True).order_by("first_name", "last_name")

    @staticmethod
    @transaction.atomic
    def create_admin(validated_data: dict[str, Any], *, performed_by: User) -> User:
        """
        Raises
        ------
        PermissionDenied
            If ``performed_by`` is not an admin.
        Conflict
            If the e-mail or username is already registered.
        """
        require_role(performed_by, ROLE_ADMIN, message="Only admins can create admin accounts.")
        user = _create_account(validated_data, role=UserRole.ADMIN)
        logger.info("Admin %s created admin %s", performed_by.pk, user.pk)
        return user

    @staticmethod
    @transaction.atomic
    def provision(validated_data: dict[str, Any]) -> tuple[User, bool]:
        """
        Create an admin, or promote the account that already holds the
        e-mail address.  Returns ``(user, created)``.

        Used by the ``create_admin`` management command, which runs
        without an authenticated principal.
        """
        email = validated_data["email"].strip().lower()
        existing = User.objects.select_for_update().filter(email=email).first()
        if existing is None:
            user = _create_account(validated_data, role=UserRole.ADMIN)
            logger.info("Provisioned admin %s", user.pk)
            return user, True

        if existing.role != UserRole.ADMIN:
            previous = existing.role
            existing.role = UserRole.ADMIN
            existing.save(update_fields=["role"])
            logger.info("Promoted user %s from %s to admin", existing.pk, previous)
        return existing, False


# ═══════════════════════════════════════════════════════════════════
#  Registration Token Service
# ═══════════════════════════════════════════════════════════════════


class RegistrationTokenService:
    """
    Issue, inspect and consume one-time shaykh registration tokens.
    """

    @staticmethod
    def registration_url(token: RegistrationToken) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/register-shaykh/{token.token}"

    @staticmethod
    @transaction.atomic
    def issue(
        *,
        issued_by: User,
        expiry_days: int | None = None,
        email: str = "",
    ) -> RegistrationToken:
        """
        Create a new token valid for ``expiry_days`` (defaults to
        ``settings.REGISTRATION_TOKEN_EXPIRY_DAYS``).

        When ``email`` is given the invitation link is e-mailed to it
        after commit.

        Raises
        ------
        PermissionDenied
            If ``issued_by`` is not an admin.
        DomainError
            If ``expiry_days`` is not positive.
        """
        require_role(issued_by, ROLE_ADMIN, message="Only admins can issue registration tokens.")
        days = settings.REGISTRATION_TOKEN_EXPIRY_DAYS if expiry_days is None else expiry_days
        if days <= 0:
            raise DomainError("expiry_days must be a positive number of days.")

        token = RegistrationToken.objects.create(
            created_by=issued_by,
            expires_at=timezone.now() + timedelta(days=days),
            email=(email or "").strip().lower(),
        )

        if token.email:
            NotificationService.send(
                recipients=token.email,
                event_type="registration_invite",
                context={
                    "registration_url": RegistrationTokenService.registration_url(token),
                    "expires_at": token.expires_at.strftime("%Y-%m-%d %H:%M UTC"),
                },
            )

        logger.info("Admin %s issued registration token %s", issued_by.pk, token.pk)
        return token

    @staticmethod
    def list_tokens(*, performed_by: User, include_used: bool = True) -> QuerySet[RegistrationToken]:
        require_role(performed_by, ROLE_ADMIN, message="Only admins can list registration tokens.")
        qs = RegistrationToken.objects.select_related("created_by", "used_by")
        if not include_used:
            qs = qs.filter(is_used=False)
        return qs

    @staticmethod
    @transaction.atomic
    def revoke(token_id: int, *, performed_by: User) -> None:
        """Delete an unused token.  Used tokens are kept as an audit record."""
        require_role(performed_by, ROLE_ADMIN, message="Only admins can revoke registration tokens.")
        try:
            token = RegistrationToken.objects.select_for_update().get(pk=token_id)
        except (RegistrationToken.DoesNotExist, ValueError):
            raise NotFound(f"Registration token with id {token_id} not found.")
        if token.is_used:
            raise Conflict("A used registration token cannot be revoked.")
        token.delete()
        logger.info("Admin %s revoked registration token %s", performed_by.pk, token_id)

    @staticmethod
    def verify(raw_token: str) -> RegistrationToken:
        """
        Return the token if it is unused and unexpired.

        Raises
        ------
        NotFound
            ``"Invalid or expired registration token."`` otherwise.
        """
        try:
            return RegistrationToken.objects.get(
                token=raw_token,
                is_used=False,
                expires_at__gt=timezone.now(),
            )
        except RegistrationToken.DoesNotExist:
            raise NotFound(INVALID_TOKEN_MESSAGE)

    @staticmethod
    @transaction.atomic
    def consume(raw_token: str, registration_data: dict[str, Any]) -> User:
        """
        Atomically consume ``raw_token`` and create one shaykh account.

        Implementation Contract
        -----------------------
        1. Claim the token with a single conditional ``UPDATE`` filtered
           on ``token``, ``is_used=False`` and ``expires_at > now``.  A
           row count other than one means the token is unknown, expired
           or was claimed by a concurrent request → ``NotFound``.
        2. Create the shaykh account.  A duplicate e-mail raises
           ``Conflict`` and rolls back the claim, leaving the token
           usable.
        3. Record the consumer on the token.

        Raises
        ------
        NotFound
            ``"Invalid or expired registration token."``
        Conflict
            If the e-mail address is already registered.
        """
        now = timezone.now()
        won = claim_once(
            RegistrationToken.objects.filter(
                token=raw_token,
                is_used=False,
                expires_at__gt=now,
            ),
            is_used=True,
            used_at=now,
        )
        if not won:
            raise NotFound(INVALID_TOKEN_MESSAGE)

        user = _create_account(registration_data, role=UserRole.SHAYKH)
        RegistrationToken.objects.filter(token=raw_token).update(used_by=user)

        logger.info("Registration token consumed by new shaykh %s", user.pk)
        return user
