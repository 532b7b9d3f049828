"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Domain-specific exceptions that map cleanly to HTTP responses.
notifications  Fire-and-forget e-mail dispatch deferred to commit.
transactions   Helpers for ``select_for_update`` and conditional updates.
access         Role-scoped queryset selectors and role guards.
storage        Object storage collaborator (S3 / local media).

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update
    from core.domain.access import apply_role_scope
    from core.domain.storage import get_object_storage
"""
