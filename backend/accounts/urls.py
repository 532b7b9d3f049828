"""
Accounts app URL configuration.

All routes are namespaced under ``accounts`` and designed to be included
in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/                     → RegisterView
    POST   /auth/login/                        → LoginView
    POST   /auth/token/refresh/                → TokenRefreshView (SimpleJWT)
    POST   /auth/forgot-password/              → ForgotPasswordView
    POST   /auth/reset-password/{token}/       → ResetPasswordView

Current User Profile ("Me")
    GET    /me/                                → MeView  (retrieve)
    PATCH  /me/                                → MeView  (partial update)
    POST   /me/password/                       → ChangePasswordView
    GET    /me/settings/                       → MeSettingsView (retrieve)
    PATCH  /me/settings/                       → MeSettingsView (partial update)

Shaykhs
    GET    /shaykhs/                           → ShaykhViewSet.list (public)
    GET    /shaykhs/{id}/                      → ShaykhViewSet.retrieve (public)
    POST   /shaykhs/                           → ShaykhViewSet.create (admin)
    DELETE /shaykhs/{id}/                      → ShaykhViewSet.destroy (admin)

Admins
    GET    /admins/                            → AdminAccountViewSet.list (admin)
    POST   /admins/                            → AdminAccountViewSet.create (admin)

Registration Tokens
    GET    /registration-tokens/               → list (admin)
    POST   /registration-tokens/               → create (admin)
    DELETE /registration-tokens/{id}/          → destroy (admin)
    GET    /registration-tokens/{token}/verify/   → verify (public)
    POST   /registration-tokens/{token}/register/ → register (public)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    AdminAccountViewSet,
    ChangePasswordView,
    ForgotPasswordView,
    LoginView,
    MeSettingsView,
    MeView,
    RegisterView,
    RegistrationTokenViewSet,
    ResetPasswordView,
    ShaykhViewSet,
)

app_name = "accounts"

router = DefaultRouter()
router.register(r"shaykhs", ShaykhViewSet, basename="shaykh")
router.register(r"admins", AdminAccountViewSet, basename="admin-account")
router.register(r"registration-tokens", RegistrationTokenViewSet, basename="registration-token")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),
    path("auth/forgot-password/", ForgotPasswordView.as_view(), name="forgot-password"),
    path(
        "auth/reset-password/<str:token>/",
        ResetPasswordView.as_view(),
        name="reset-password",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),
    path("me/password/", ChangePasswordView.as_view(), name="me-password"),
    path("me/settings/", MeSettingsView.as_view(), name="me-settings"),

    # ── Router-registered viewsets ───────────────────────────────────
    path("", include(router.urls)),
]
