"""
Accounts app models.

Defines the custom ``User`` model (extends Django's ``AbstractUser``)
with a fixed three-value role enum, and ``RegistrationToken``, the
one-time, time-boxed credential used for self-service shaykh
onboarding.
"""

import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel


class UserRole(models.TextChoices):
    USER = "user", "User"
    SHAYKH = "shaykh", "Shaykh"
    ADMIN = "admin", "Admin"


class User(AbstractUser):
    """
    Custom user model for the advisory-service backend.

    Registration requires at minimum: email, password, first_name and
    last_name.  ``username`` defaults to the e-mail local part when the
    client does not supply one.  Login is supported via either the
    username or the e-mail address together with the password.

    Each user holds exactly **one** role.  Self-registered users are
    ``user``; shaykhs are created by an admin or through a registration
    token; admins are created with the ``create_admin`` management
    command (or by another admin).  Superusers are always treated as
    admin by ``core.domain.access.get_user_role_name``.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        verbose_name="Role",
    )

    # ── Shaykh / contact profile ─────────────────────────────────────
    phone_number = models.CharField(
        max_length=30,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    address = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Address",
    )
    years_of_experience = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        verbose_name="Years of Experience",
    )
    educational_institution = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Educational Institution",
    )
    about = models.TextField(
        blank=True,
        default="",
        verbose_name="About",
    )
    where_work = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Place of Work",
    )

    # Client preferences; stored for the frontend, not acted on server-side.
    language = models.CharField(
        max_length=10,
        default="en",
        verbose_name="Language",
    )
    email_notifications = models.BooleanField(
        default=True,
        verbose_name="E-mail Notifications",
    )
    push_notifications = models.BooleanField(
        default=True,
        verbose_name="Push Notifications",
    )
    dark_mode = models.BooleanField(
        default=False,
        verbose_name="Dark Mode",
    )

    # ── Password reset ───────────────────────────────────────────────
    reset_password_token = models.CharField(
        max_length=64,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Reset Password Token (SHA-256)",
    )
    reset_password_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Reset Password Expiry",
    )

    REQUIRED_FIELDS = ["email", "first_name", "last_name"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_full_name()}) - {self.get_role_display()}"

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    # ── Helper predicates for role checks ────────────────────────────

    @property
    def is_shaykh(self) -> bool:
        return self.role == UserRole.SHAYKH

    @property
    def is_admin_role(self) -> bool:
        return self.is_superuser or self.role == UserRole.ADMIN


def _generate_token() -> str:
    return secrets.token_hex(32)


def _default_expiry():
    return timezone.now() + timedelta(days=settings.REGISTRATION_TOKEN_EXPIRY_DAYS)


class RegistrationToken(TimeStampedModel):
    """
    One-time, time-boxed invitation for shaykh self-registration.

    A token is usable at most once and only before ``expires_at``.
    Consumption is a single conditional update performed by
    ``RegistrationTokenService.consume`` so that two concurrent
    registrations cannot both succeed with the same token.
    """

    token = models.CharField(
        max_length=64,
        unique=True,
        default=_generate_token,
        editable=False,
        verbose_name="Token",
    )
    expires_at = models.DateTimeField(
        default=_default_expiry,
        verbose_name="Expires At",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="issued_registration_tokens",
        verbose_name="Issued By",
    )
    is_used = models.BooleanField(
        default=False,
        verbose_name="Used",
    )
    used_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consumed_registration_tokens",
        verbose_name="Used By",
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Used At",
    )
    email = models.EmailField(
        blank=True,
        default="",
        verbose_name="Invited Email",
        help_text="Optional address the invitation was sent to.",
    )

    class Meta:
        verbose_name = "Registration Token"
        verbose_name_plural = "Registration Tokens"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_used", "expires_at"], name="regtoken_used_expiry_idx"),
        ]

    def __str__(self):
        state = "used" if self.is_used else "unused"
        return f"Token {self.token[:8]}… ({state}, expires {self.expires_at:%Y-%m-%d})"

    @property
    def is_valid(self) -> bool:
        return not self.is_used and self.expires_at > timezone.now()
