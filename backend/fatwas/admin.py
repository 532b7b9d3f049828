from django.contrib import admin

from cases.admin import CaseAdminMixin

from .models import Fatwa


@admin.register(Fatwa)
class FatwaAdmin(CaseAdminMixin, admin.ModelAdmin):
    list_display = ("id", "title", "status", "urgency", "privacy",
                    "owner", "created_at")
    list_filter = ("status", "urgency", "privacy", "category")
    search_fields = ("title", "question", "answer")
    readonly_fields = ("answered_by", "answered_at", "approved_by",
                       "approved_at")
