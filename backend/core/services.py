"""
Core app services — **Service Layer**.

Contains cross-app aggregation and search logic.  Views delegate all
business logic to the service classes defined here, keeping views thin
and ensuring testability.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORT RULEBOOK                                         ║
║                                                                    ║
║  The core app is the ONLY app allowed to aggregate models from     ║
║  every case app.  To prevent circular imports at module load time: ║
║                                                                    ║
║  1. NEVER import models from other apps at the **module level**.   ║
║     Always import inside the method/function that needs them.      ║
║                                                                    ║
║  2. Preferred pattern:                                             ║
║       from django.apps import apps                                 ║
║       Fatwa = apps.get_model("fatwas", "Fatwa")                    ║
║                                                                    ║
║  3. Choice/enum classes (e.g. CaseStatus, MarriageType) live in    ║
║     the respective app's ``models.py`` alongside the models.       ║
║     Import them lazily inside methods too.                         ║
║                                                                    ║
║  4. Prefer ``.aggregate()`` / ``.values().annotate()`` over        ║
║     Python-side loops for counting.                                ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

from datetime import date
from typing import Any, TYPE_CHECKING

from django.apps import apps
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from core.domain.access import ROLE_ADMIN, require_role

if TYPE_CHECKING:
    from accounts.models import User


def _party_name(case: Any, role: str) -> str:
    for party in case.parties.all():
        if party.role == role:
            return f"{party.first_name} {party.last_name}".strip()
    return ""


def _last_months(today: date, count: int) -> list[tuple[int, int]]:
    """``(year, month)`` pairs for the last ``count`` calendar months, oldest first."""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Produces the admin dashboard payload consumed by
    ``DashboardStatsSerializer``:

    * ``stats``                 — scalar totals per case type.
    * ``upcoming_meetings``     — next scheduled meetings.
    * ``shaykh_workload``       — active assignments per shaykh.
    * ``recent_activities``     — newest requests plus pending notices.
    * ``activity_distribution`` — share of each service, in percent.
    * ``monthly_stats``         — requests per month, last three months.

    Admin only.
    """

    #: Maximum number of upcoming meetings to return.
    UPCOMING_MEETINGS_LIMIT: int = 5

    #: Newest requests taken from each case type before merging.
    RECENT_PER_TYPE: int = 3

    #: Maximum number of activity feed items to return.
    RECENT_ACTIVITY_LIMIT: int = 5

    #: Number of calendar months covered by ``monthly_stats``.
    MONTHLY_WINDOW: int = 3

    def __init__(self, user: User) -> None:
        self.user = user

    # ── Public API ──────────────────────────────────────────────────

    def get_stats(self) -> dict[str, Any]:
        """
        Return the full dashboard dictionary.

        Raises
        ------
        PermissionDenied
            If the requesting user is not an admin.
        """
        from cases.services import CaseQueryService

        require_role(self.user, ROLE_ADMIN, message="Only admins can view the dashboard.")

        stats = self._get_totals()
        return {
            "stats": stats,
            "upcoming_meetings": self._get_upcoming_meetings(),
            "shaykh_workload": CaseQueryService.get_shaykh_workload(),
            "recent_activities": self._get_recent_activities(stats),
            "activity_distribution": self._get_activity_distribution(stats),
            "monthly_stats": self._get_monthly_stats(),
        }

    # ── Private helpers ─────────────────────────────────────────────

    def _get_totals(self) -> dict[str, int]:
        from accounts.models import UserRole
        from cases.models import CaseStatus
        from marriages.models import MarriageType

        Fatwa = apps.get_model("fatwas", "Fatwa")
        Marriage = apps.get_model("marriages", "Marriage")
        Reconciliation = apps.get_model("reconciliations", "Reconciliation")
        User = apps.get_model("accounts", "User")

        fatwas = Fatwa.objects.aggregate(
            total=Count("pk"),
            answered=Count("pk", filter=Q(status__in=[CaseStatus.ANSWERED, CaseStatus.APPROVED])),
            pending=Count("pk", filter=Q(status__in=[CaseStatus.PENDING, CaseStatus.ASSIGNED])),
        )
        marriages = Marriage.objects.aggregate(
            total=Count("pk"),
            certificate=Count("pk", filter=Q(marriage_type=MarriageType.CERTIFICATE)),
            reservation=Count("pk", filter=Q(marriage_type=MarriageType.RESERVATION)),
            pending=Count("pk", filter=Q(status=CaseStatus.PENDING)),
        )
        return {
            "total_fatwas": fatwas["total"],
            "answered_fatwas": fatwas["answered"],
            "pending_fatwas": fatwas["pending"],
            "total_marriages": marriages["total"],
            "certificate_requests": marriages["certificate"],
            "reservation_requests": marriages["reservation"],
            "pending_marriages": marriages["pending"],
            "total_reconciliations": Reconciliation.objects.count(),
            "total_shaykhs": User.objects.filter(role=UserRole.SHAYKH).count(),
        }

    def _get_upcoming_meetings(self) -> list[dict[str, Any]]:
        """Scheduled meetings from today on, soonest first."""
        from cases.models import CaseType, MeetingStatus, PartyRole
        from marriages.models import MarriageType

        Meeting = apps.get_model("cases", "Meeting")
        Marriage = apps.get_model("marriages", "Marriage")

        meetings = (
            Meeting.objects
            .filter(
                status=MeetingStatus.SCHEDULED,
                date__gte=timezone.localdate(),
                case__case_type__in=[CaseType.MARRIAGE, CaseType.RECONCILIATION],
            )
            .select_related("case")
            .prefetch_related("case__parties")
            .order_by("date", "time", "id")[: self.UPCOMING_MEETINGS_LIMIT]
        )
        marriage_ids = [m.case_id for m in meetings if m.case.case_type == CaseType.MARRIAGE]
        marriage_types = dict(
            Marriage.objects.filter(pk__in=marriage_ids).values_list("pk", "marriage_type")
        )

        results = []
        for meeting in meetings:
            case = meeting.case
            if case.case_type == CaseType.RECONCILIATION:
                label = "Family Reconciliation Meeting"
                client = f"{_party_name(case, PartyRole.HUSBAND)} Family".strip()
            else:
                label = (
                    "Marriage Certificate Meeting"
                    if marriage_types.get(case.pk) == MarriageType.CERTIFICATE
                    else "Nikah Meeting"
                )
                client = " & ".join(
                    filter(None, (
                        _party_name(case, PartyRole.PARTNER_ONE),
                        _party_name(case, PartyRole.PARTNER_TWO),
                    ))
                )
            results.append({
                "id": meeting.pk,
                "case_id": case.pk,
                "case_type": case.case_type,
                "type": label,
                "client": client,
                "date": meeting.date,
                "time": meeting.time,
                "location": meeting.location,
            })
        return results

    def _get_recent_activities(self, stats: dict[str, int]) -> list[dict[str, Any]]:
        """Newest requests of each type plus pending-count notices."""
        from cases.models import PartyRole

        Fatwa = apps.get_model("fatwas", "Fatwa")
        Marriage = apps.get_model("marriages", "Marriage")
        Reconciliation = apps.get_model("reconciliations", "Reconciliation")

        activities: list[dict[str, Any]] = []
        for fatwa in Fatwa.objects.select_related("owner").order_by("-created_at")[: self.RECENT_PER_TYPE]:
            activities.append({
                "id": f"fatwa-{fatwa.pk}",
                "date": fatwa.created_at,
                "message": f'New fatwa question submitted: "{fatwa.title}"',
                "type": "fatwa",
                "user_id": fatwa.owner_id,
            })
        marriages = (
            Marriage.objects.prefetch_related("parties")
            .order_by("-created_at")[: self.RECENT_PER_TYPE]
        )
        for marriage in marriages:
            partner = _party_name(marriage, PartyRole.PARTNER_ONE) or "Client"
            activities.append({
                "id": f"marriage-{marriage.pk}",
                "date": marriage.created_at,
                "message": f"New {marriage.marriage_type} application submitted by {partner}.",
                "type": "marriage",
                "user_id": marriage.owner_id,
            })
        reconciliations = (
            Reconciliation.objects.prefetch_related("parties")
            .order_by("-created_at")[: self.RECENT_PER_TYPE]
        )
        for reconciliation in reconciliations:
            family = _party_name(reconciliation, PartyRole.HUSBAND)
            activities.append({
                "id": f"reconciliation-{reconciliation.pk}",
                "date": reconciliation.created_at,
                "message": f"New family reconciliation request from {family} family.",
                "type": "reconciliation",
                "user_id": reconciliation.owner_id,
            })

        now = timezone.now()
        if stats["pending_fatwas"]:
            activities.append({
                "id": "pending-fatwa-count",
                "date": now,
                "message": (
                    f"You have {stats['pending_fatwas']} pending fatwa applications. "
                    "Please review these applications."
                ),
                "type": "system",
                "user_id": None,
            })
        if stats["pending_marriages"]:
            activities.append({
                "id": "pending-marriage-count",
                "date": now,
                "message": (
                    f"You have {stats['pending_marriages']} pending marriage applications "
                    "that need to be assigned."
                ),
                "type": "system",
                "user_id": None,
            })

        activities.sort(key=lambda a: a["date"], reverse=True)
        return activities[: self.RECENT_ACTIVITY_LIMIT]

    def _get_activity_distribution(self, stats: dict[str, int]) -> list[dict[str, Any]]:
        """Percentage share of each service; every value is 0 when there is no data."""
        counts = [
            ("Marriage Queries", stats["certificate_requests"]),
            ("Nikahs", stats["reservation_requests"]),
            ("Family Counseling", stats["total_reconciliations"]),
            ("Fatwa Queries", stats["total_fatwas"]),
        ]
        total = sum(count for _, count in counts)
        return [
            {"name": name, "value": round(count * 100 / total) if total else 0}
            for name, count in counts
        ]

    def _get_monthly_stats(self) -> list[dict[str, Any]]:
        """Requests created per calendar month, oldest month first."""
        from marriages.models import MarriageType

        Marriage = apps.get_model("marriages", "Marriage")
        Reconciliation = apps.get_model("reconciliations", "Reconciliation")

        results = []
        for year, month in _last_months(timezone.localdate(), self.MONTHLY_WINDOW):
            in_month = Q(created_at__year=year, created_at__month=month)
            marriages = Marriage.objects.filter(in_month).aggregate(
                certificate=Count("pk", filter=Q(marriage_type=MarriageType.CERTIFICATE)),
                reservation=Count("pk", filter=Q(marriage_type=MarriageType.RESERVATION)),
            )
            results.append({
                "name": date(year, month, 1).strftime("%b"),
                "year": year,
                "month": month,
                "marriage_queries": marriages["certificate"],
                "nikahs": marriages["reservation"],
                "family_counseling": Reconciliation.objects.filter(in_month).count(),
            })
        return results


# ════════════════════════════════════════════════════════════════════
#  Global Search Service
# ════════════════════════════════════════════════════════════════════

class GlobalSearchService:
    """
    Performs a unified, case-insensitive search across Fatwas,
    Marriages and Reconciliations, returning categorised results.

    * **Security**: every category is restricted to the cases the
      requesting user may list (admin: all, shaykh: assigned, user:
      own) through ``CaseQueryService.get_visible_queryset``.
    """

    #: Default maximum results per category.
    DEFAULT_LIMIT: int = 10

    #: Absolute maximum results per category (guard against abuse).
    MAX_LIMIT: int = 50

    #: Minimum query length.
    MIN_QUERY_LENGTH: int = 2

    #: Accepted values of the ``category`` filter.
    CATEGORIES = ("fatwas", "marriages", "reconciliations")

    def __init__(
        self,
        query: str,
        user: User,
        category: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.query = query.strip()
        self.user = user
        self.category = category
        self.limit = max(1, min(limit, self.MAX_LIMIT))

    # ── Public API ──────────────────────────────────────────────────

    def search(self) -> dict[str, Any]:
        """Execute the search and return the unified result dict."""
        results: dict[str, list[dict[str, Any]]] = {c: [] for c in self.CATEGORIES}

        if len(self.query) >= self.MIN_QUERY_LENGTH:
            if self.category in (None, "fatwas"):
                results["fatwas"] = self._search_fatwas()
            if self.category in (None, "marriages"):
                results["marriages"] = self._search_marriages()
            if self.category in (None, "reconciliations"):
                results["reconciliations"] = self._search_reconciliations()

        return {
            "query": self.query,
            "total_results": sum(len(v) for v in results.values()),
            **results,
        }

    # ── Private helpers ─────────────────────────────────────────────

    def _visible(self, app_label: str, model_name: str) -> QuerySet:
        from cases.services import CaseQueryService

        return CaseQueryService.get_visible_queryset(
            apps.get_model(app_label, model_name), self.user,
        )

    def _party_match(self) -> Q:
        return (
            Q(parties__first_name__icontains=self.query)
            | Q(parties__last_name__icontains=self.query)
        )

    def _search_fatwas(self) -> list[dict[str, Any]]:
        """Search ``Fatwa`` records by title, question and answer."""
        qs = self._visible("fatwas", "Fatwa").filter(
            Q(title__icontains=self.query)
            | Q(question__icontains=self.query)
            | Q(answer__icontains=self.query)
        )
        return [
            {
                "id": fatwa.pk,
                "case_type": fatwa.case_type,
                "title": fatwa.title,
                "status": fatwa.status,
                "created_at": fatwa.created_at,
            }
            for fatwa in qs[: self.limit]
        ]

    def _search_marriages(self) -> list[dict[str, Any]]:
        """Search ``Marriage`` records by partner names and free text."""
        from cases.models import PartyRole

        qs = self._visible("marriages", "Marriage").filter(
            self._party_match()
            | Q(additional_information__icontains=self.query)
            | Q(marriage_place__icontains=self.query)
        ).distinct()
        results = []
        for marriage in qs[: self.limit]:
            names = " & ".join(filter(None, (
                _party_name(marriage, PartyRole.PARTNER_ONE),
                _party_name(marriage, PartyRole.PARTNER_TWO),
            )))
            results.append({
                "id": marriage.pk,
                "case_type": marriage.case_type,
                "title": f"{marriage.get_marriage_type_display()}: {names}",
                "status": marriage.status,
                "created_at": marriage.created_at,
            })
        return results

    def _search_reconciliations(self) -> list[dict[str, Any]]:
        """Search ``Reconciliation`` records by spouse names and description."""
        from cases.models import PartyRole

        qs = self._visible("reconciliations", "Reconciliation").filter(
            self._party_match()
            | Q(issue_description__icontains=self.query)
            | Q(additional_information__icontains=self.query)
        ).distinct()
        return [
            {
                "id": reconciliation.pk,
                "case_type": reconciliation.case_type,
                "title": f"{_party_name(reconciliation, PartyRole.HUSBAND)} family".strip(),
                "status": reconciliation.status,
                "created_at": reconciliation.created_at,
            }
            for reconciliation in qs[: self.limit]
        ]


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless**: it does not depend on the requesting
    user.  All constants are public information needed by the frontend
    to render dropdowns and labels.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import UserRole
        from cases.models import CasePriority, CaseStatus, CaseType, MeetingStatus, PartyRole
        from cases.workflow import WORKFLOWS
        from fatwas.models import FatwaPrivacy, FatwaUrgency
        from marriages.models import MarriageType
        from reconciliations.models import ReconciliationOutcome

        to_list = SystemConstantsService._choices_to_list
        labels = dict(CaseStatus.choices)

        return {
            "case_types": to_list(CaseType),
            "case_statuses": to_list(CaseStatus),
            "case_priorities": to_list(CasePriority),
            "meeting_statuses": to_list(MeetingStatus),
            "party_roles": to_list(PartyRole),
            "user_roles": to_list(UserRole),
            "fatwa_urgencies": to_list(FatwaUrgency),
            "fatwa_privacies": to_list(FatwaPrivacy),
            "marriage_types": to_list(MarriageType),
            "reconciliation_outcomes": to_list(ReconciliationOutcome),
            "workflow_statuses": {
                str(case_type): [
                    {"value": s, "label": str(labels[s])}
                    for s in CaseStatus.values
                    if s in definition.statuses
                ]
                for case_type, definition in WORKFLOWS.items()
            },
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]
