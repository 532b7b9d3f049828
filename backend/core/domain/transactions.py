"""
core.domain.transactions — Helpers for safe state transitions.

Provides utilities that wrap ``transaction.atomic`` and
``select_for_update`` into reusable patterns so that every app's
service layer follows the same concurrency-safe approach.

Design goals
------------
* State-transition reads always lock the row first
  (``select_for_update``) so that the precondition check and the write
  see the same status.
* One-shot resources (registration tokens, reset tokens) are claimed
  with a single conditional ``UPDATE`` whose row count decides the
  winner.
* Keep the helpers **generic**: they accept any Django model class.

Usage::

    from core.domain.transactions import lock_for_update

    with transaction.atomic():
        case = lock_for_update(Marriage, pk, related=("owner",))
        ...

    from core.domain.transactions import claim_once

    won = claim_once(
        RegistrationToken.objects.filter(token=raw, is_used=False),
        is_used=True,
    )
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from django.db import models

from core.domain.exceptions import NotFound

M = TypeVar("M", bound=models.Model)


def lock_for_update(
    model_class: type[M],
    pk: Any,
    *,
    related: Iterable[str] = (),
    not_found_message: str | None = None,
) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class:       The Django model class.
        pk:                Primary key value.
        related:           Forward relations to join with
                           ``select_related``.  Only the model's own
                           rows (including multi-table parents) are
                           locked, never the joined relations.
        not_found_message: Optional message for the ``NotFound`` raised
                           when the row is missing.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    lock_of = ("self",) + tuple(
        link.name for link in model_class._meta.parents.values() if link is not None
    )
    qs = model_class.objects.select_for_update(of=lock_of)
    related = tuple(related)
    if related:
        qs = qs.select_related(*related)
    try:
        return qs.get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(
            not_found_message or f"{model_class.__name__} with pk={pk} does not exist."
        )


def claim_once(queryset: models.QuerySet, **changes: Any) -> bool:
    """
    Apply ``changes`` to the rows matched by ``queryset`` in a single
    conditional ``UPDATE`` and report whether exactly one row changed.

    The filter on ``queryset`` is the precondition (e.g.
    ``is_used=False, expires_at__gt=now``).  Two concurrent callers
    cannot both see a row count of one, because the database re-checks
    the ``WHERE`` clause under the row lock taken by the first writer.

    Returns:
        ``True`` when this caller won the row, ``False`` otherwise.
    """
    return queryset.update(**changes) == 1
