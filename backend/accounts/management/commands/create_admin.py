"""
Management command: create_admin
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Provisions an **admin** account from the command line.  This is how the
first admin of a fresh deployment is created; later admins can be added
through ``POST /api/accounts/admins/``.

The command is **idempotent**: when an account with the e-mail already
exists it is promoted to admin (its password is left untouched), and an
existing admin is reported as unchanged.

Usage::

    python manage.py create_admin --email admin@example.com \\
        --first-name Amina --last-name Yusuf --password 'S3cret!pass'

The password may instead be supplied through ``DJANGO_ADMIN_PASSWORD``.
"""

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounts.models import UserRole
from accounts.serializers import RegisterRequestSerializer
from accounts.services import AdminAccountService
from core.domain.exceptions import Conflict

User = get_user_model()

PASSWORD_ENV_VAR = "DJANGO_ADMIN_PASSWORD"


class Command(BaseCommand):
    help = (
        "Create an admin account, or promote the account that already uses "
        "the given e-mail.  Safe to run multiple times."
    )

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", default=None,
                            help=f"Falls back to ${PASSWORD_ENV_VAR}.")
        parser.add_argument("--first-name", dest="first_name", default="Admin")
        parser.add_argument("--last-name", dest="last_name", default="User")
        parser.add_argument("--username", default="")

    def handle(self, *args, **options):
        email = options["email"].strip().lower()
        existing_role = User.objects.filter(email=email).values_list("role", flat=True).first()

        if existing_role is None:
            payload = self._validated_payload(email, options)
        else:
            payload = {"email": email}

        try:
            user, created = AdminAccountService.provision(payload)
        except Conflict as exc:
            raise CommandError(str(exc)) from exc

        if created:
            self.stdout.write(self.style.SUCCESS(f"  ✔  Created admin {user.email} (id={user.pk})"))
        elif existing_role != UserRole.ADMIN:
            self.stdout.write(self.style.SUCCESS(
                f"  ✔  Promoted {user.email} (id={user.pk}) from {existing_role} to admin"
            ))
        else:
            self.stdout.write(self.style.WARNING(f"  ⚠  {user.email} is already an admin; nothing changed"))

    def _validated_payload(self, email: str, options: dict) -> dict:
        password = options["password"] or os.getenv(PASSWORD_ENV_VAR)
        if not password:
            raise CommandError(
                f"A password is required to create a new account: pass --password or set {PASSWORD_ENV_VAR}."
            )

        serializer = RegisterRequestSerializer(data={
            "email": email,
            "password": password,
            "first_name": options["first_name"],
            "last_name": options["last_name"],
            "username": options["username"],
        })
        if not serializer.is_valid():
            problems = "; ".join(
                f"{field}: {' '.join(str(m) for m in messages)}"
                for field, messages in serializer.errors.items()
            )
            raise CommandError(f"Invalid admin details: {problems}")
        return serializer.validated_data
