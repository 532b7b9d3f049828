"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``            — POST /auth/register/
- ``LoginView``               — POST /auth/login/
- ``ForgotPasswordView``      — POST /auth/forgot-password/
- ``ResetPasswordView``       — POST /auth/reset-password/{token}/
- ``MeView``                  — GET / PATCH /me/
- ``MeSettingsView``          — GET / PATCH /me/settings/
- ``ChangePasswordView``      — POST /me/password/
- ``ShaykhViewSet``           — /shaykhs/ (list, retrieve, create, destroy)
- ``AdminAccountViewSet``     — /admins/ (list, create)
- ``RegistrationTokenViewSet``— /registration-tokens/ (list, create,
                                destroy, verify, register)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.exceptions import NotFound

from .serializers import (
    ChangePasswordSerializer,
    CustomTokenObtainPairSerializer,
    ForgotPasswordSerializer,
    MeUpdateSerializer,
    RegisterRequestSerializer,
    RegistrationTokenIssueSerializer,
    RegistrationTokenSerializer,
    RegistrationTokenVerifySerializer,
    ResetPasswordSerializer,
    ShaykhRegisterSerializer,
    ShaykhSerializer,
    UserDetailSerializer,
    UserSettingsSerializer,
)
from .services import (
    AdminAccountService,
    AuthenticationService,
    CurrentUserService,
    PasswordResetService,
    RegistrationTokenService,
    ShaykhManagementService,
    UserRegistrationService,
)


def _auth_payload(user) -> dict:
    payload = AuthenticationService.generate_tokens(user)
    payload["user"] = UserDetailSerializer(user).data
    return payload


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(APIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new account with role ``user`` and
    returns a token pair so the client is logged in immediately.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register a user",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(description="Account created; token pair and profile returned."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="E-mail or username already registered."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(serializer.validated_data)
        return Response(_auth_payload(user), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates by username or e-mail plus
    password and returns a JWT pair carrying the ``role`` claim.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(description="Token pair and profile."),
            400: OpenApiResponse(description="Invalid credentials."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = serializer.validated_data
        payload["user"] = UserDetailSerializer(serializer.user).data

        return Response(payload, status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    """POST /api/accounts/auth/forgot-password/"""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Request a password reset e-mail",
        request=ForgotPasswordSerializer,
        responses={200: OpenApiResponse(description="Always the same generic message.")},
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = PasswordResetService.request_reset(serializer.validated_data["email"])
        return Response({"detail": message}, status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    """POST /api/accounts/auth/reset-password/{token}/"""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Reset password with an e-mailed token",
        request=ResetPasswordSerializer,
        responses={
            200: OpenApiResponse(description="Password changed; token pair returned."),
            400: OpenApiResponse(description="Invalid or expired token."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request, token: str) -> Response:
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = PasswordResetService.reset_password(token, serializer.validated_data["password"])
        return Response(_auth_payload(user), status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") Views
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET  /api/accounts/me/  → Retrieve current user profile.
    PATCH /api/accounts/me/ → Update own profile fields.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user profile",
        responses={200: UserDetailSerializer},
        tags=["Me"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update own profile",
        request=MeUpdateSerializer,
        responses={
            200: UserDetailSerializer,
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Me"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(
            instance=request.user,
            data=request.data,
            partial=True,
        )
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class MeSettingsView(APIView):
    """
    GET   /api/accounts/me/settings/ → Current preferences.
    PATCH /api/accounts/me/settings/ → Update any subset of them.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user settings", responses={200: UserSettingsSerializer}, tags=["Me"])
    def get(self, request: Request) -> Response:
        return Response(UserSettingsSerializer(request.user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update own settings",
        request=UserSettingsSerializer,
        responses={
            200: UserSettingsSerializer,
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Me"],
    )
    def patch(self, request: Request) -> Response:
        serializer = UserSettingsSerializer(instance=request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_settings(request.user, serializer.validated_data)
        return Response(UserSettingsSerializer(user).data, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """POST /api/accounts/me/password/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change own password",
        request=ChangePasswordSerializer,
        responses={
            200: OpenApiResponse(description="Password changed."),
            400: OpenApiResponse(description="Current password incorrect."),
        },
        tags=["Me"],
    )
    def post(self, request: Request) -> Response:
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CurrentUserService.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response({"detail": "Password updated."}, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Shaykh Management
# ═══════════════════════════════════════════════════════════════════


class ShaykhViewSet(viewsets.ViewSet):
    """
    Shaykh directory.  Listing and retrieval are public so that the
    request forms can offer a preferred shaykh; creation and deletion
    are admin-only (enforced in the service layer).
    """

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(summary="List shaykhs", responses={200: ShaykhSerializer(many=True)}, tags=["Shaykhs"])
    def list(self, request: Request) -> Response:
        qs = ShaykhManagementService.list_shaykhs(search=request.query_params.get("search"))
        return Response(ShaykhSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Retrieve a shaykh",
        responses={200: ShaykhSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Shaykhs"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        shaykh = ShaykhManagementService.list_shaykhs().filter(pk=pk).first()
        if shaykh is None:
            raise NotFound(f"Shaykh with id {pk} not found.")
        return Response(ShaykhSerializer(shaykh).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create a shaykh account (admin)",
        request=ShaykhRegisterSerializer,
        responses={
            201: ShaykhSerializer,
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="E-mail already registered."),
        },
        tags=["Shaykhs"],
    )
    def create(self, request: Request) -> Response:
        serializer = ShaykhRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shaykh = ShaykhManagementService.create_shaykh(
            serializer.validated_data, performed_by=request.user,
        )
        return Response(ShaykhSerializer(shaykh).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Delete a shaykh account (admin)",
        responses={
            204: None,
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="The account still owns case requests."),
        },
        tags=["Shaykhs"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        ShaykhManagementService.delete_shaykh(pk, performed_by=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════
#  Admin Accounts
# ═══════════════════════════════════════════════════════════════════


class AdminAccountViewSet(viewsets.ViewSet):
    """Admin accounts; every action is admin-only (enforced in the service layer)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List admin accounts (admin)",
        responses={200: UserDetailSerializer(many=True), 403: OpenApiResponse(description="Admin only.")},
        tags=["Admins"],
    )
    def list(self, request: Request) -> Response:
        qs = AdminAccountService.list_admins(performed_by=request.user)
        return Response(UserDetailSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create an admin account (admin)",
        request=RegisterRequestSerializer,
        responses={
            201: UserDetailSerializer,
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="E-mail or username already registered."),
        },
        tags=["Admins"],
    )
    def create(self, request: Request) -> Response:
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin = AdminAccountService.create_admin(serializer.validated_data, performed_by=request.user)
        return Response(UserDetailSerializer(admin).data, status=status.HTTP_201_CREATED)


# ═══════════════════════════════════════════════════════════════════
#  Registration Tokens
# ═══════════════════════════════════════════════════════════════════


class RegistrationTokenViewSet(viewsets.ViewSet):
    """
    Admin: issue / list / revoke invitation tokens.
    Public: verify a token and register a shaykh account with it.
    """

    lookup_value_regex = r"[0-9a-fA-F]+"

    def get_permissions(self):
        if self.action in ("verify", "register"):
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="List registration tokens (admin)",
        responses={200: RegistrationTokenSerializer(many=True)},
        tags=["Registration Tokens"],
    )
    def list(self, request: Request) -> Response:
        include_used = request.query_params.get("include_used", "true").lower() != "false"
        qs = RegistrationTokenService.list_tokens(
            performed_by=request.user, include_used=include_used,
        )
        return Response(RegistrationTokenSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Issue a registration token (admin)",
        request=RegistrationTokenIssueSerializer,
        responses={
            201: RegistrationTokenSerializer,
            403: OpenApiResponse(description="Admin only."),
        },
        tags=["Registration Tokens"],
    )
    def create(self, request: Request) -> Response:
        serializer = RegistrationTokenIssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        token = RegistrationTokenService.issue(
            issued_by=request.user,
            expiry_days=serializer.validated_data.get("expiry_days"),
            email=serializer.validated_data.get("email", ""),
        )
        return Response(RegistrationTokenSerializer(token).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Revoke an unused registration token (admin)",
        responses={204: None, 409: OpenApiResponse(description="Token already used.")},
        tags=["Registration Tokens"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        RegistrationTokenService.revoke(pk, performed_by=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"], url_path="verify")
    @extend_schema(
        summary="Verify a registration token",
        responses={
            200: RegistrationTokenVerifySerializer,
            404: OpenApiResponse(description="Invalid or expired registration token."),
        },
        tags=["Registration Tokens"],
    )
    def verify(self, request: Request, pk: str = None) -> Response:
        token = RegistrationTokenService.verify(pk)
        data = {"valid": True, **RegistrationTokenVerifySerializer(token).data}
        return Response(data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="register")
    @extend_schema(
        summary="Register a shaykh account with a token",
        request=ShaykhRegisterSerializer,
        responses={
            201: OpenApiResponse(description="Shaykh created; token pair and profile returned."),
            404: OpenApiResponse(description="Invalid or expired registration token."),
            409: OpenApiResponse(description="E-mail already registered."),
        },
        tags=["Registration Tokens"],
    )
    def register(self, request: Request, pk: str = None) -> Response:
        serializer = ShaykhRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = RegistrationTokenService.consume(pk, serializer.validated_data)
        return Response(_auth_payload(user), status=status.HTTP_201_CREATED)
