"""
Integration tests for core endpoints.

Scope in this file:
- GET /api/core/dashboard/
- GET /api/core/search/
- GET /api/core/constants/
"""

from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserRole
from cases.models import CaseStatus, CaseType


def _client(user: User) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


def _partner(first: str, last: str, **extra) -> dict:
    return {
        "first_name": first,
        "last_name": last,
        "phone": "0400000000",
        "email": f"{first.lower()}@example.com",
        "address": "1 George St, Sydney",
        **extra,
    }


class CoreEndpointsTestBase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.password = "CoreEndpointsP@ss123"
        cls.admin = User.objects.create_user(
            username="core_admin", email="core_admin@example.com",
            password=cls.password, role=UserRole.ADMIN,
        )
        cls.owner = User.objects.create_user(
            username="core_owner", email="core_owner@example.com", password=cls.password,
        )
        cls.other = User.objects.create_user(
            username="core_other", email="core_other@example.com", password=cls.password,
        )
        cls.shaykh = User.objects.create_user(
            username="core_shaykh", email="core_shaykh@example.com", password=cls.password,
            role=UserRole.SHAYKH, first_name="Omar", last_name="Farooq",
        )

    def setUp(self):
        self.admin_client = _client(self.admin)
        self.owner_client = _client(self.owner)

    def _populate(self) -> dict[str, int]:
        """One request of every kind, the reservation assigned with an upcoming meeting."""
        ids = {}
        resp = self.owner_client.post(
            reverse("fatwas:fatwa-list"),
            {"title": "Inheritance question", "question": "How is the estate divided?", "category": "inheritance"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        ids["fatwa"] = resp.data["id"]

        resp = self.owner_client.post(
            reverse("marriages:marriage-reservation"),
            {
                "partner_one": _partner("Omar", "Hassan"),
                "partner_two": _partner("Layla", "Ahmed"),
                "preferred_date": "2026-12-12",
                "preferred_time": "15:30",
                "preferred_location": "Lakemba Mosque",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        ids["reservation"] = resp.data["id"]

        resp = self.owner_client.post(
            reverse("marriages:marriage-certificate-request"),
            {
                "partner_one": _partner("Bilal", "Said", date_of_birth="1994-03-01"),
                "partner_two": _partner("Maryam", "Noor", date_of_birth="1996-07-21"),
                "marriage_date": "2026-09-05",
                "marriage_place": "Auburn Gallipoli Mosque",
                "witnesses": [{"name": "Ibrahim Said", "contact": "0411111111"}],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        ids["certificate"] = resp.data["id"]

        resp = self.owner_client.post(
            reverse("reconciliations:reconciliation-list"),
            {
                "husband": {"first_name": "Khalid", "last_name": "Rahman", "phone": "0411000001", "email": "khalid@example.com"},
                "wife": {"first_name": "Sara", "last_name": "Rahman", "phone": "0411000002", "email": "sara@example.com"},
                "issue_description": "Disagreement over finances.",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        ids["reconciliation"] = resp.data["id"]

        resp = self.admin_client.post(
            reverse("marriages:marriage-assign", args=[ids["reservation"]]),
            {"shaykh_id": self.shaykh.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        resp = _client(self.shaykh).post(
            reverse("marriages:marriage-meetings", args=[ids["reservation"]]),
            {
                "date": (timezone.localdate() + timedelta(days=7)).isoformat(),
                "time": "10:00",
                "location": "Community Centre",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return ids


class TestDashboard(CoreEndpointsTestBase):
    def setUp(self):
        super().setUp()
        self.url = reverse("core:dashboard-stats")

    def test_requires_authentication(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_non_admin_forbidden(self):
        for user in (self.owner, self.shaykh):
            resp = _client(user).get(self.url)
            self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_empty_dashboard_has_zero_distribution(self):
        resp = self.admin_client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["total_fatwas"], 0)
        self.assertEqual(resp.data["stats"]["total_shaykhs"], 1)
        self.assertEqual(
            [(d["name"], d["value"]) for d in resp.data["activity_distribution"]],
            [("Marriage Queries", 0), ("Nikahs", 0), ("Family Counseling", 0), ("Fatwa Queries", 0)],
        )
        self.assertEqual(resp.data["upcoming_meetings"], [])
        self.assertEqual(resp.data["recent_activities"], [])
        self.assertEqual(len(resp.data["monthly_stats"]), 3)

    def test_counts_with_data(self):
        ids = self._populate()
        resp = self.admin_client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        stats = resp.data["stats"]
        self.assertEqual(stats["total_fatwas"], 1)
        self.assertEqual(stats["pending_fatwas"], 1)
        self.assertEqual(stats["answered_fatwas"], 0)
        self.assertEqual(stats["total_marriages"], 2)
        self.assertEqual(stats["certificate_requests"], 1)
        self.assertEqual(stats["reservation_requests"], 1)
        self.assertEqual(stats["pending_marriages"], 1)
        self.assertEqual(stats["total_reconciliations"], 1)

        self.assertEqual([d["value"] for d in resp.data["activity_distribution"]], [25, 25, 25, 25])

        [meeting] = resp.data["upcoming_meetings"]
        self.assertEqual(meeting["case_id"], ids["reservation"])
        self.assertEqual(meeting["type"], "Nikah Meeting")
        self.assertEqual(meeting["client"], "Omar Hassan & Layla Ahmed")

        [workload] = resp.data["shaykh_workload"]
        self.assertEqual(workload["id"], self.shaykh.pk)
        self.assertEqual(workload["assigned_marriages"], 1)
        self.assertEqual(workload["assigned_cases"], 1)

        activities = resp.data["recent_activities"]
        self.assertEqual(len(activities), 5)
        self.assertEqual({a["type"] for a in activities[:2]}, {"system"})

        current = resp.data["monthly_stats"][-1]
        self.assertEqual(current["month"], timezone.localdate().month)
        self.assertEqual(
            (current["marriage_queries"], current["nikahs"], current["family_counseling"]),
            (1, 1, 1),
        )

    def test_workload_ignores_closed_cases(self):
        ids = self._populate()
        self.owner_client.post(
            reverse("marriages:marriage-cancel", args=[ids["reservation"]]), {"reason": "Plans changed."}, format="json",
        )
        resp = self.admin_client.get(self.url)
        self.assertEqual(resp.data["shaykh_workload"][0]["assigned_cases"], 0)
        self.assertEqual(resp.data["upcoming_meetings"], [])


class TestGlobalSearch(CoreEndpointsTestBase):
    def setUp(self):
        super().setUp()
        self.url = reverse("core:global-search")

    def test_short_query_rejected(self):
        resp = self.owner_client.get(self.url, {"q": "a"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_category_rejected(self):
        resp = self.owner_client.get(self.url, {"q": "Omar", "category": "suspects"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_authentication(self):
        resp = APIClient().get(self.url, {"q": "Omar"})
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_owner_finds_own_cases_by_party_name(self):
        ids = self._populate()
        resp = self.owner_client.get(self.url, {"q": "hassan"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["query"], "hassan")
        self.assertEqual([m["id"] for m in resp.data["marriages"]], [ids["reservation"]])
        self.assertEqual(resp.data["marriages"][0]["case_type"], CaseType.MARRIAGE)
        self.assertEqual(resp.data["total_results"], 1)

    def test_results_scoped_to_visible_cases(self):
        self._populate()
        resp = _client(self.other).get(self.url, {"q": "Rahman"})
        self.assertEqual(resp.data["total_results"], 0)

        resp = self.admin_client.get(self.url, {"q": "Rahman"})
        self.assertEqual(len(resp.data["reconciliations"]), 1)

        # The shaykh only sees the reservation assigned to them.
        resp = _client(self.shaykh).get(self.url, {"q": "mosque"})
        self.assertEqual(len(resp.data["marriages"]), 0)
        resp = _client(self.shaykh).get(self.url, {"q": "Layla"})
        self.assertEqual(len(resp.data["marriages"]), 1)
        self.assertEqual(resp.data["marriages"][0]["status"], CaseStatus.IN_PROGRESS)

    def test_category_filter(self):
        self._populate()
        resp = self.admin_client.get(self.url, {"q": "inheritance", "category": "fatwas"})
        self.assertEqual(len(resp.data["fatwas"]), 1)
        self.assertEqual(resp.data["marriages"], [])
        self.assertEqual(resp.data["reconciliations"], [])

        resp = self.admin_client.get(self.url, {"q": "inheritance", "category": "marriages"})
        self.assertEqual(resp.data["total_results"], 0)


class TestSystemConstants(TestCase):
    def setUp(self):
        self.url = reverse("core:system-constants")

    def test_public_and_complete(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        for key in (
            "case_types", "case_statuses", "case_priorities", "meeting_statuses",
            "party_roles", "user_roles", "fatwa_urgencies", "fatwa_privacies",
            "marriage_types", "reconciliation_outcomes", "workflow_statuses",
        ):
            self.assertIn(key, resp.data)
        self.assertEqual(
            {c["value"] for c in resp.data["case_types"]},
            {"fatwa", "marriage", "reconciliation"},
        )

    def test_workflow_statuses_per_type(self):
        resp = APIClient().get(self.url)
        workflows = resp.data["workflow_statuses"]
        fatwa = [s["value"] for s in workflows["fatwa"]]
        self.assertIn(CaseStatus.APPROVED, fatwa)
        self.assertNotIn(CaseStatus.CANCELLED, fatwa)
        reconciliation = [s["value"] for s in workflows["reconciliation"]]
        self.assertIn(CaseStatus.RESOLVED, reconciliation)
        self.assertIn(CaseStatus.UNRESOLVED, reconciliation)
        self.assertNotIn(CaseStatus.COMPLETED, reconciliation)
