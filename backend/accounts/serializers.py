"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here; domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import authenticate, get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from core.domain.access import get_user_role_name

from .models import RegistrationToken

User = get_user_model()

MIN_PASSWORD_LENGTH = 6


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.Serializer):
    """
    Validates new-user registration data.

    Required fields: email, password, first_name, last_name.
    ``username`` is optional and derived from the e-mail when omitted.
    """

    username = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSWORD_LENGTH,
        style={"input_type": "password"},
        help_text=f"Minimum {MIN_PASSWORD_LENGTH} characters.",
    )
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone_number = serializers.CharField(max_length=30, required=False, allow_blank=True)

    def validate_email(self, value: str) -> str:
        return value.strip().lower()


class ShaykhRegisterSerializer(RegisterRequestSerializer):
    """
    Registration payload for shaykh accounts (admin-created or via a
    registration token).  Adds the shaykh profile fields.
    """

    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    years_of_experience = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    educational_institution = serializers.CharField(max_length=255, required=False, allow_blank=True)
    about = serializers.CharField(required=False, allow_blank=True)
    where_work = serializers.CharField(max_length=255, required=False, allow_blank=True)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom SimpleJWT serializer that:

    1. Accepts ``identifier`` (username or e-mail) + ``password``
       instead of ``username`` + ``password``.  ``email`` is accepted as
       an alias for ``identifier``.
    2. Resolves the user via the ``EmailOrUsernameBackend``.
    3. Injects the ``role`` claim into the JWT payload.
    """

    username_field = "identifier"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop(self.username_field, None)
        self.fields["identifier"] = serializers.CharField(
            required=False,
            help_text="Username or e-mail address.",
        )
        self.fields["email"] = serializers.CharField(
            required=False,
            write_only=True,
            help_text="Alias for 'identifier'.",
        )

    @classmethod
    def get_token(cls, user) -> Any:
        """
        Add the role claim to the JWT payload so the frontend can
        decode it without a separate API call.
        """
        token = super().get_token(user)
        token["role"] = get_user_role_name(user)
        token["email"] = user.email
        return token

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        identifier = attrs.get("identifier") or attrs.get("email")
        password = attrs.get("password")

        if not identifier:
            raise serializers.ValidationError(
                {"identifier": "This field is required."},
            )

        user = authenticate(
            request=self.context.get("request"),
            identifier=identifier,
            password=password,
        )

        if user is None:
            raise serializers.ValidationError(
                {"detail": "Invalid credentials."},
                code="authentication",
            )

        if not user.is_active:
            raise serializers.ValidationError(
                {"detail": "User account is disabled."},
                code="authentication",
            )

        refresh = self.get_token(user)
        data = {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

        self.user = user

        return data


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserDetailSerializer(serializers.ModelSerializer):
    """Full profile of a user (used by ``/me/`` and login responses)."""

    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "phone_number",
            "address",
            "years_of_experience",
            "educational_institution",
            "about",
            "where_work",
            "date_joined",
        ]
        read_only_fields = fields

    def get_role(self, obj: User) -> str | None:
        return get_user_role_name(obj)


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference embedded in case payloads."""

    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "full_name", "role"]
        read_only_fields = fields

    def get_full_name(self, obj: User) -> str:
        return obj.get_full_name()


class ShaykhSerializer(serializers.ModelSerializer):
    """Public shaykh profile."""

    class Meta:
        model = User
        fields = [
            "id",
            "first_name",
            "last_name",
            "email",
            "phone_number",
            "years_of_experience",
            "educational_institution",
            "about",
            "where_work",
        ]
        read_only_fields = fields


class MeUpdateSerializer(serializers.ModelSerializer):
    """
    Allows the authenticated user to update limited profile fields.
    Sensitive fields (role, is_active, username) are read-only and
    cannot be self-modified.
    """

    class Meta:
        model = User
        fields = [
            "email",
            "first_name",
            "last_name",
            "phone_number",
            "address",
            "years_of_experience",
            "educational_institution",
            "about",
            "where_work",
        ]

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if (
            self.instance
            and User.objects.exclude(pk=self.instance.pk)
            .filter(email=value)
            .exists()
        ):
            raise serializers.ValidationError(
                "This email is already in use by another account."
            )
        return value


class UserSettingsSerializer(serializers.ModelSerializer):
    """Display and notification preferences of the current user."""

    class Meta:
        model = User
        fields = [
            "language",
            "email_notifications",
            "push_notifications",
            "dark_mode",
        ]


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, style={"input_type": "password"})
    new_password = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSWORD_LENGTH,
        style={"input_type": "password"},
    )


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSWORD_LENGTH,
        style={"input_type": "password"},
    )


# ═══════════════════════════════════════════════════════════════════
#  Registration Token Serializers
# ═══════════════════════════════════════════════════════════════════


class RegistrationTokenIssueSerializer(serializers.Serializer):
    expiry_days = serializers.IntegerField(min_value=1, max_value=365, required=False)
    email = serializers.EmailField(required=False, allow_blank=True)


class RegistrationTokenSerializer(serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)
    used_by = UserSummarySerializer(read_only=True)
    registration_url = serializers.SerializerMethodField()

    class Meta:
        model = RegistrationToken
        fields = [
            "id",
            "token",
            "email",
            "expires_at",
            "is_used",
            "used_at",
            "created_by",
            "used_by",
            "registration_url",
            "created_at",
        ]
        read_only_fields = fields

    def get_registration_url(self, obj: RegistrationToken) -> str:
        from .services import RegistrationTokenService

        return RegistrationTokenService.registration_url(obj)


class RegistrationTokenVerifySerializer(serializers.ModelSerializer):
    """What an unauthenticated invitee may learn about a valid token."""

    class Meta:
        model = RegistrationToken
        fields = ["email", "expires_at"]
        read_only_fields = fields
