"""Abstract model bases reused by the accounts and cases apps."""

from django.db import models


class TimeStampedModel(models.Model):
    """``created_at`` is set on insert and ``updated_at`` on every save."""

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True
