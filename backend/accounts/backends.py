"""
Custom authentication backend for username-or-email login.

Allows users to authenticate using either their ``username`` or their
``email`` together with their ``password``.  E-mail matching is
case-insensitive because addresses are stored lower-cased.

This backend is registered in ``settings.AUTHENTICATION_BACKENDS``
so that Django's ``authenticate()`` call dispatches to it.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class EmailOrUsernameBackend(ModelBackend):
    """
    Authenticate against username or email.

    When ``django.contrib.auth.authenticate(identifier=..., password=...)``
    is called, this backend resolves the user from the ``identifier``
    keyword argument by checking both unique fields.
    """

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        """
        Resolve the user by *identifier* and verify *password*.

        Parameters
        ----------
        request : HttpRequest | None
        identifier : str
            The value supplied in the login form: a username or an
            e-mail address.
        password : str
            The raw password to verify.

        Returns
        -------
        User | None
            The authenticated user, or ``None`` on failure.
        """
        if identifier is None:
            # Django admin login posts ``username``.
            identifier = kwargs.get(User.USERNAME_FIELD)
        if identifier is None or password is None:
            return None

        identifier = identifier.strip()
        try:
            user = User.objects.get(
                Q(username=identifier) | Q(email=identifier.lower())
            )
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
