"""
Django admin registrations must not bypass the case workflow: no case
is added from the admin, ``owner`` and ``status`` are read-only, and
meetings, feedback and status history cannot be deleted there.
"""

from __future__ import annotations

import pytest
from django.contrib import admin

from cases.admin import CaseStatusLogInline, FeedbackInline, MeetingInline
from cases.models import CaseStatusLog, Meeting
from fatwas.models import Fatwa
from marriages.models import Marriage
from reconciliations.models import Reconciliation


@pytest.mark.parametrize("model", [Fatwa, Marriage, Reconciliation])
def test_case_admin_locks_owner_and_status(model, rf):
    model_admin = admin.site._registry[model]
    request = rf.get("/admin/")

    readonly = model_admin.get_readonly_fields(request)
    assert {"owner", "status"} <= set(readonly)
    assert not model_admin.has_add_permission(request)


def test_type_specific_readonly_fields_are_kept(rf):
    readonly = admin.site._registry[Marriage].get_readonly_fields(rf.get("/admin/"))
    assert "certificate_file" in readonly


@pytest.mark.parametrize("inline", [MeetingInline, FeedbackInline, CaseStatusLogInline])
def test_append_only_inlines_cannot_delete(inline):
    assert inline.can_delete is False


@pytest.mark.parametrize("model", [Meeting, CaseStatusLog])
def test_append_only_models_cannot_be_deleted(model, rf):
    assert not admin.site._registry[model].has_delete_permission(rf.get("/admin/"))
