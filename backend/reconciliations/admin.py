from django.contrib import admin

from cases.admin import CaseAdminMixin

from .models import Reconciliation


@admin.register(Reconciliation)
class ReconciliationAdmin(CaseAdminMixin, admin.ModelAdmin):
    list_display = ("id", "status", "outcome", "priority", "owner",
                    "created_at")
    list_filter = ("status", "outcome", "priority")
    search_fields = ("issue_description", "parties__first_name",
                     "parties__last_name")
