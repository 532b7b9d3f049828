from django.contrib import admin

from .models import CaseAssignment, CaseParty, CaseStatusLog, Feedback, Meeting

CASE_READONLY_FIELDS = ("owner", "status")


class CaseAssignmentInline(admin.TabularInline):
    model = CaseAssignment
    fk_name = "case"
    extra = 0
    readonly_fields = ("assigned_by", "created_at")


class CasePartyInline(admin.TabularInline):
    model = CaseParty
    extra = 0


class MeetingInline(admin.TabularInline):
    model = Meeting
    extra = 0
    can_delete = False
    readonly_fields = ("scheduled_by", "created_at")


class FeedbackInline(admin.TabularInline):
    model = Feedback
    extra = 0
    can_delete = False
    readonly_fields = ("author", "comment", "created_at")


class CaseStatusLogInline(admin.TabularInline):
    model = CaseStatusLog
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "changed_by",
                       "message", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


CASE_INLINES = [
    CaseAssignmentInline,
    CasePartyInline,
    MeetingInline,
    FeedbackInline,
    CaseStatusLogInline,
]


class CaseAdminMixin:
    """
    Case rows are created through the API and change status only through
    the workflow services, so the admin may neither add cases nor edit
    ``owner`` or ``status``.
    """

    inlines = CASE_INLINES

    def get_readonly_fields(self, request, obj=None):
        return (*CASE_READONLY_FIELDS, *super().get_readonly_fields(request, obj))

    def has_add_permission(self, request):
        return False


@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
    list_display = ("case", "date", "time", "location", "status")
    list_filter = ("status",)
    readonly_fields = ("case", "scheduled_by")

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CaseStatusLog)
class CaseStatusLogAdmin(admin.ModelAdmin):
    list_display = ("case", "from_status", "to_status",
                    "changed_by", "created_at")
    list_filter = ("to_status",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
