"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations raised by the
workflow engine and the service layers of every case app.  They are
deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to
HTTP responses.

Mapping cheatsheet
------------------
┌──────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception     │ Meaning                      │ Code │
├──────────────────────┼──────────────────────────────┼──────┤
│ DomainError          │ malformed / missing input    │ 400  │
│ PermissionDenied     │ role or ownership check      │ 403  │
│ NotFound             │ reference does not resolve   │ 404  │
│ Conflict             │ precondition / state clash   │ 409  │
│ InvalidTransition    │ illegal status transition    │ 409  │
│ ExternalServiceError │ storage / mail collaborator  │ 502  │
└──────────────────────┴──────────────────────────────┴──────┘

Usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if case.status not in definition.sources_for(Action.REVIEW):
        raise InvalidTransition(
            current=case.status,
            target=CaseStatus.APPROVED,
            reason="Only answered fatwas can be reviewed.",
        )
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Raised directly for invalid input (missing comment, illegal enum
    value, assignee that is not a shaykh).  Maps to HTTP 400.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The authenticated principal's role or relationship to the case
    does not allow this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested case, meeting, token or user does not exist (or is
    not visible to the requesting principal).

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate e-mail on registration, a token that was
    consumed by a concurrent request.  Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A workflow transition that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="completed",
            target="cancelled",
            reason="Completed cases cannot be cancelled.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"- {reason}")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class ExternalServiceError(DomainError):
    """
    A collaborator outside the database (object storage, e-mail)
    failed.  The dependent state change must not have been applied.

    Maps to HTTP 502.
    """

    def __init__(
        self,
        message: str = "An external service failed to complete the request.",
        *,
        service: str | None = None,
    ) -> None:
        super().__init__(message)
        self.service = service
