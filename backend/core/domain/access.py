"""
core.domain.access — Role-scoped queryset selectors (shared patterns).

This module provides shared utilities that each app's service layer
calls to obtain querysets filtered by the requesting user's role.

╔══════════════════════════════════════════════════════════════════╗
║  IMPORTANT: per-app scoping logic does NOT live here.          ║
║  Each app's ``services.py`` owns its own scope-config dict.    ║
║  This module provides:                                         ║
║    1) ``apply_role_scope`` — role-keyed queryset dispatch.     ║
║    2) ``require_role`` — guard that checks the role enum.      ║
║    3) ``get_user_role_name`` — normalised role-name helper.    ║
╚══════════════════════════════════════════════════════════════════╝

Roles are a fixed enum on the user model (``user``, ``shaykh``,
``admin``); superusers are always treated as ``admin``.

Usage in an app's service layer::

    from core.domain.access import apply_role_scope

    CASE_SCOPE = {
        "admin":  lambda qs, u: qs,
        "shaykh": lambda qs, u: qs.filter(assignees=u),
        "user":   lambda qs, u: qs.filter(owner=u),
    }

    qs = apply_role_scope(Case.objects.all(), user, scope_config=CASE_SCOPE)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

if TYPE_CHECKING:
    from accounts.models import User

# Type alias for a scope filter function.
# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# Role name → filter function.
ScopeConfig = dict[str, ScopeFilter]

ROLE_ADMIN = "admin"
ROLE_SHAYKH = "shaykh"
ROLE_USER = "user"


def get_user_role_name(user: User) -> str | None:
    """
    Return the role name for a user, or ``None`` for anonymous users.

    Superusers are reported as ``"admin"`` whatever their stored role.

    Args:
        user: User instance (may be ``AnonymousUser``).

    Returns:
        One of ``"user"``, ``"shaykh"``, ``"admin"`` or ``None``.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    return getattr(user, "role", None) or None


def is_admin(user: User) -> bool:
    return get_user_role_name(user) == ROLE_ADMIN


def apply_role_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_config: ScopeConfig,
    default: str = "none",
) -> QuerySet:
    """
    Apply the filter registered for the user's role.

    Args:
        queryset:      Base (unfiltered) queryset.
        user:          The authenticated user.
        scope_config:  ``{role_name: filter_fn}`` mapping.
        default:       What to do when the role has no entry.
                       ``"none"`` (default) → empty queryset.
                       ``"all"`` → return unfiltered.

    Returns:
        The (possibly filtered) queryset.
    """
    role_name = get_user_role_name(user)

    if role_name and role_name in scope_config:
        return scope_config[role_name](queryset, user)

    if default == "none":
        return queryset.none()
    return queryset


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Example::

        require_role(user, "admin")
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise DomainPermissionDenied(
            message
            or (
                f"Role '{role_name}' is not permitted for this operation. "
                f"Required: {', '.join(allowed_roles)}."
            )
        )
