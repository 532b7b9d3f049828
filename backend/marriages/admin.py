from django.contrib import admin

from cases.admin import CaseAdminMixin

from .models import Marriage, MarriageWitness


class MarriageWitnessInline(admin.TabularInline):
    model = MarriageWitness
    extra = 0


@admin.register(Marriage)
class MarriageAdmin(CaseAdminMixin, admin.ModelAdmin):
    list_display = ("id", "marriage_type", "status", "priority",
                    "owner", "certificate_generated", "created_at")
    list_filter = ("marriage_type", "status", "priority",
                   "certificate_generated")
    search_fields = ("certificate_number", "marriage_place",
                     "parties__first_name", "parties__last_name")
    readonly_fields = ("certificate_file", "certificate_file_url",
                       "certificate_issued_date")
    inlines = [MarriageWitnessInline, *CaseAdminMixin.inlines]
