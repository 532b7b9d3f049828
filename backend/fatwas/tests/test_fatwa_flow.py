"""
Integration tests — fatwa lifecycle.

Covers:
  - submit → assign → answer → unapprove (with comment) → re-answer →
    approve, and the public listing that follows.
  - Review preconditions: approve from pending/assigned → 409;
    unapprove without a comment → 400.
  - Record-work rules: only the sole assignee of an assigned fatwa (or
    an admin) may answer.
  - Visibility: anonymous callers see only public fatwas; uninvolved
    users get 404.
"""

from __future__ import annotations

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserRole
from cases.models import CaseStatus, Feedback
from fatwas.models import Fatwa, FatwaPrivacy

_PASSWORD = "Fatwa!Flow123"


def _client(user: User) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


class FatwaFlowTestCase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="fatwa_admin", email="fatwa_admin@example.com",
            password=_PASSWORD, role=UserRole.ADMIN,
        )
        cls.owner = User.objects.create_user(
            username="fatwa_owner", email="fatwa_owner@example.com",
            password=_PASSWORD, first_name="Amina", last_name="Khan",
        )
        cls.shaykh = User.objects.create_user(
            username="fatwa_shaykh_y", email="shaykh_y@example.com",
            password=_PASSWORD, role=UserRole.SHAYKH,
            first_name="Yusuf", last_name="Ali",
        )
        cls.other_shaykh = User.objects.create_user(
            username="fatwa_shaykh_z", email="shaykh_z@example.com",
            password=_PASSWORD, role=UserRole.SHAYKH,
        )
        cls.stranger = User.objects.create_user(
            username="fatwa_stranger", email="stranger@example.com", password=_PASSWORD,
        )

    def setUp(self):
        self.admin_client = _client(self.admin)
        self.owner_client = _client(self.owner)
        self.shaykh_client = _client(self.shaykh)

    # ── Helpers ──────────────────────────────────────────────────────

    def _submit(self, **overrides) -> int:
        payload = {
            "title": "Inheritance question",
            "question": "How is the estate divided between siblings?",
            "category": "inheritance",
        }
        payload.update(overrides)
        resp = self.owner_client.post(reverse("fatwas:fatwa-list"), payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data["id"]

    def _url(self, name: str, pk: int) -> str:
        return reverse(f"fatwas:fatwa-{name}", args=[pk])

    def _assign(self, pk: int, shaykh: User):
        return self.admin_client.post(self._url("assign", pk), {"shaykh_id": shaykh.pk}, format="json")

    def _answer(self, client: APIClient, pk: int, text: str = "Per the Quran, 4:11."):
        return client.post(self._url("answer", pk), {"answer": text}, format="json")

    # ── Scenario ─────────────────────────────────────────────────────

    def test_full_review_cycle(self):
        pk = self._submit()
        self.assertEqual(Fatwa.objects.get(pk=pk).status, CaseStatus.PENDING)

        resp = self._assign(pk, self.shaykh)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.ASSIGNED)
        self.assertEqual([a["id"] for a in resp.data["assignees"]], [self.shaykh.pk])

        resp = self._answer(self.shaykh_client, pk)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.ANSWERED)
        self.assertEqual(resp.data["answered_by"]["id"], self.shaykh.pk)

        resp = self.admin_client.post(
            self._url("unapprove", pk), {"comment": "needs citation"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.ASSIGNED)
        self.assertEqual([f["comment"] for f in resp.data["feedback"]], ["needs citation"])

        resp = self._answer(self.shaykh_client, pk, "Per the Quran, 4:11 and 4:176.")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.ANSWERED)

        resp = self.admin_client.post(self._url("approve", pk), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.APPROVED)
        self.assertEqual(resp.data["approved_by"]["id"], self.admin.pk)

        fatwa = Fatwa.objects.get(pk=pk)
        self.assertEqual(fatwa.answer, "Per the Quran, 4:11 and 4:176.")
        self.assertEqual(
            list(fatwa.status_logs.order_by("id").values_list("to_status", flat=True)),
            [
                CaseStatus.ASSIGNED,
                CaseStatus.ANSWERED,
                CaseStatus.ASSIGNED,
                CaseStatus.ANSWERED,
                CaseStatus.APPROVED,
            ],
        )

        # Now public, even without credentials.
        public = APIClient().get(reverse("fatwas:fatwa-public"))
        self.assertEqual(public.status_code, status.HTTP_200_OK)
        self.assertEqual([f["id"] for f in public.data], [pk])
        self.assertNotIn("owner", public.data[0])

    # ── Review preconditions ─────────────────────────────────────────

    def test_approve_from_pending_or_assigned_conflicts(self):
        pk = self._submit()
        resp = self.admin_client.post(self._url("approve", pk), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

        self._assign(pk, self.shaykh)
        resp = self.admin_client.post(self._url("approve", pk), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Fatwa.objects.get(pk=pk).status, CaseStatus.ASSIGNED)

    def test_unapprove_requires_comment(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        self._answer(self.shaykh_client, pk)

        resp = self.admin_client.post(self._url("unapprove", pk), {"comment": "  "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("comment", resp.data["detail"])

        fatwa = Fatwa.objects.get(pk=pk)
        self.assertEqual(fatwa.status, CaseStatus.ANSWERED)
        self.assertEqual(Feedback.objects.filter(case=fatwa).count(), 0)

    def test_only_admin_reviews(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        self._answer(self.shaykh_client, pk)
        resp = self.shaykh_client.post(self._url("approve", pk), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    # ── Record-work rules ────────────────────────────────────────────

    def test_unassigned_shaykh_cannot_answer(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        # Not involved → the fatwa is not even visible.
        resp = self._answer(_client(self.other_shaykh), pk)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_assignee_cannot_answer_twice_without_review(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        self._answer(self.shaykh_client, pk)
        resp = self._answer(self.shaykh_client, pk, "Changed my mind.")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_may_answer_pending_fatwa(self):
        pk = self._submit()
        resp = self._answer(self.admin_client, pk)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.ANSWERED)

    def test_blank_answer_rejected(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        resp = self._answer(self.shaykh_client, pk, "   ")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    # ── Assignment ───────────────────────────────────────────────────

    def test_assign_replaces_single_assignee(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        resp = self._assign(pk, self.other_shaykh)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual([a["id"] for a in resp.data["assignees"]], [self.other_shaykh.pk])

    def test_assign_two_shaykhs_rejected(self):
        pk = self._submit()
        resp = self.admin_client.post(
            self._url("assign", pk),
            {"shaykh_ids": [self.shaykh.pk, self.other_shaykh.pk]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_non_shaykh_rejected(self):
        pk = self._submit()
        resp = self.admin_client.post(self._url("assign", pk), {"shaykh_id": self.stranger.pk}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Fatwa.objects.get(pk=pk).status, CaseStatus.PENDING)

    def test_unassign_returns_to_pending(self):
        pk = self._submit()
        self._assign(pk, self.shaykh)
        resp = self.admin_client.post(self._url("unassign", pk), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.PENDING)
        self.assertEqual(resp.data["assignees"], [])

    # ── Reject & delete ──────────────────────────────────────────────

    def test_reject_is_final(self):
        pk = self._submit()
        resp = self.admin_client.post(self._url("reject", pk), {"reason": "Out of scope."}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.REJECTED)

        resp = self._assign(pk, self.shaykh)
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_delete_is_admin_only(self):
        pk = self._submit()
        resp = self.owner_client.delete(self._url("detail", pk))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        resp = self.admin_client.delete(self._url("detail", pk))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Fatwa.objects.filter(pk=pk).exists())

    # ── Visibility ───────────────────────────────────────────────────

    def test_shaykh_cannot_submit(self):
        resp = self.shaykh_client.post(
            reverse("fatwas:fatwa-list"),
            {"title": "Q", "question": "Why?"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_fatwa_hidden_from_anonymous_and_strangers(self):
        pk = self._submit()
        self.assertEqual(APIClient().get(self._url("detail", pk)).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(_client(self.stranger).get(self._url("detail", pk)).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.owner_client.get(self._url("detail", pk)).status_code, status.HTTP_200_OK)

    def test_confidential_fatwa_never_public(self):
        pk = self._submit(privacy=FatwaPrivacy.CONFIDENTIAL)
        self._answer(self.admin_client, pk)
        self.admin_client.post(self._url("approve", pk), {}, format="json")

        self.assertEqual(APIClient().get(reverse("fatwas:fatwa-public")).data, [])
        self.assertEqual(APIClient().get(self._url("detail", pk)).status_code, status.HTTP_404_NOT_FOUND)

    def test_list_is_role_scoped(self):
        mine = self._submit()
        other = Fatwa.objects.create(owner=self.stranger, title="Other", question="Other?")

        resp = self.owner_client.get(reverse("fatwas:fatwa-list"))
        self.assertEqual([f["id"] for f in resp.data], [mine])

        resp = self.admin_client.get(reverse("fatwas:fatwa-list"))
        self.assertEqual({f["id"] for f in resp.data}, {mine, other.pk})

    def test_admin_notes_hidden_from_owner(self):
        pk = self._submit()
        resp = self.admin_client.patch(self._url("admin-notes", pk), {"admin_notes": "Priority reviewer."}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["admin_notes"], "Priority reviewer.")

        resp = self.owner_client.get(self._url("detail", pk))
        self.assertIsNone(resp.data["admin_notes"])
