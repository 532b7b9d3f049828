"""
Integration tests — shaykh invitations and shaykh management.

A registration token is single use and time boxed; consuming it
creates exactly one shaykh account.  A failed registration (duplicate
e-mail) leaves the token usable, and of two concurrent registrations
on one token exactly one succeeds.
"""

from __future__ import annotations

import threading
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core import mail
from django.db import OperationalError, connection
from django.test import TestCase, TransactionTestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import RegistrationToken, UserRole
from accounts.services import RegistrationTokenService
from core.domain.exceptions import NotFound

User = get_user_model()

_PASSWORD = "Str0ng!Pass99"


def _client(user) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


def _shaykh_payload(email: str) -> dict:
    return {
        "email": email,
        "password": _PASSWORD,
        "first_name": "Yusuf",
        "last_name": "Ali",
        "years_of_experience": 12,
        "educational_institution": "Al-Azhar",
    }


class RegistrationTokenTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="tok_admin", email="tok_admin@example.com",
            password=_PASSWORD, role=UserRole.ADMIN,
        )
        cls.user = User.objects.create_user(
            username="tok_user", email="tok_user@example.com", password=_PASSWORD,
        )

    def setUp(self):
        self.admin_client = _client(self.admin)
        self.anon = APIClient()

    def _issue(self, **payload) -> dict:
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.admin_client.post(
                reverse("accounts:registration-token-list"), payload, format="json",
            )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data

    def _register(self, token: str, email: str):
        return self.anon.post(
            reverse("accounts:registration-token-register", args=[token]),
            _shaykh_payload(email),
            format="json",
        )

    def test_issue_is_admin_only(self):
        resp = _client(self.user).post(reverse("accounts:registration-token-list"), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(RegistrationToken.objects.exists())

    def test_issue_with_email_sends_invitation(self):
        data = self._issue(email="invitee@example.com", expiry_days=3)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["invitee@example.com"])
        self.assertIn(data["token"], mail.outbox[0].body)
        self.assertTrue(data["registration_url"].endswith(f"/register-shaykh/{data['token']}"))

    def test_verify_then_register_consumes_token(self):
        token = self._issue()["token"]

        resp = self.anon.get(reverse("accounts:registration-token-verify", args=[token]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["valid"])

        resp = self._register(token, "new.shaykh@example.com")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["user"]["role"], UserRole.SHAYKH)
        self.assertEqual(resp.data["user"]["years_of_experience"], 12)

        stored = RegistrationToken.objects.get(token=token)
        self.assertTrue(stored.is_used)
        self.assertIsNotNone(stored.used_at)
        self.assertEqual(stored.used_by.email, "new.shaykh@example.com")

        # A used token can neither be verified nor consumed again.
        resp = self.anon.get(reverse("accounts:registration-token-verify", args=[token]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        resp = self._register(token, "second.shaykh@example.com")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(User.objects.filter(email="second.shaykh@example.com").exists())

    def test_expired_token_is_invalid(self):
        token = self._issue()["token"]
        RegistrationToken.objects.filter(token=token).update(expires_at=timezone.now() - timedelta(seconds=1))

        with self.assertRaises(NotFound):
            RegistrationTokenService.verify(token)
        resp = self._register(token, "late@example.com")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_duplicate_email_leaves_token_usable(self):
        token = self._issue()["token"]

        resp = self._register(token, "tok_user@example.com")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(RegistrationToken.objects.get(token=token).is_used)

        resp = self._register(token, "fresh@example.com")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)

    def test_revoke_unused_and_refuse_used(self):
        unused = self._issue()
        resp = self.admin_client.delete(reverse("accounts:registration-token-detail", args=[unused["id"]]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(RegistrationToken.objects.filter(pk=unused["id"]).exists())

        used = self._issue()
        self._register(used["token"], "kept@example.com")
        resp = self.admin_client.delete(reverse("accounts:registration-token-detail", args=[used["id"]]))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_list_can_hide_used_tokens(self):
        used = self._issue()
        self._register(used["token"], "listed@example.com")
        unused = self._issue()

        resp = self.admin_client.get(reverse("accounts:registration-token-list"), {"include_used": "false"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([t["id"] for t in resp.data], [unused["id"]])


class ShaykhManagementTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="mgmt_admin", email="mgmt_admin@example.com",
            password=_PASSWORD, role=UserRole.ADMIN,
        )
        cls.user = User.objects.create_user(
            username="mgmt_user", email="mgmt_user@example.com", password=_PASSWORD,
        )

    def test_admin_creates_and_deletes_shaykh(self):
        admin_client = _client(self.admin)
        resp = admin_client.post(
            reverse("accounts:shaykh-list"), _shaykh_payload("omar@example.com"), format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        shaykh_id = resp.data["id"]

        resp = APIClient().get(reverse("accounts:shaykh-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([s["id"] for s in resp.data], [shaykh_id])

        resp = APIClient().get(reverse("accounts:shaykh-list"), {"search": "nomatch"})
        self.assertEqual(resp.data, [])

        resp = admin_client.delete(reverse("accounts:shaykh-detail", args=[shaykh_id]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=shaykh_id).exists())

    def test_non_admin_cannot_create_shaykh(self):
        resp = _client(self.user).post(
            reverse("accounts:shaykh-list"), _shaykh_payload("omar@example.com"), format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(email="omar@example.com").exists())

    def test_delete_non_shaykh_is_not_found(self):
        resp = _client(self.admin).delete(reverse("accounts:shaykh-detail", args=[self.user.pk]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class ConcurrentConsumeTests(TransactionTestCase):
    """Two registrations racing for one token create exactly one shaykh."""

    def test_only_one_concurrent_consume_succeeds(self):
        admin = User.objects.create_user(
            username="race_admin", email="race_admin@example.com",
            password=_PASSWORD, role=UserRole.ADMIN,
        )
        token = RegistrationTokenService.issue(issued_by=admin).token
        barrier = threading.Barrier(2)
        created, errors = [], []

        def register(email: str) -> None:
            barrier.wait()
            try:
                created.append(RegistrationTokenService.consume(token, _shaykh_payload(email)))
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [
            threading.Thread(target=register, args=(f"racer{i}@example.com",))
            for i in range(2)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(created), 1, errors)
        self.assertEqual(len(errors), 1)
        # Without row locks (SQLite) the loser may be refused by the
        # database lock instead of seeing the claimed row.
        expected = (NotFound,) if connection.features.has_select_for_update else (NotFound, OperationalError)
        self.assertIsInstance(errors[0], expected)

        self.assertEqual(User.objects.filter(role=UserRole.SHAYKH).count(), 1)
        stored = RegistrationToken.objects.get(token=token)
        self.assertTrue(stored.is_used)
        self.assertEqual(stored.used_by_id, created[0].pk)
