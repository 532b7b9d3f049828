from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import RegistrationToken, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name",
                    "role", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    list_filter = ("is_active", "is_staff", "role")
    filter_horizontal = ("groups", "user_permissions")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Role", {"fields": ("role",)}),
        ("Shaykh Profile", {"fields": ("phone_number", "address",
                                       "years_of_experience",
                                       "educational_institution",
                                       "about", "where_work")}),
        ("Preferences", {"fields": ("language", "email_notifications",
                                    "push_notifications", "dark_mode")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Extra Info", {"fields": ("email", "first_name", "last_name", "role")}),
    )


@admin.register(RegistrationToken)
class RegistrationTokenAdmin(admin.ModelAdmin):
    list_display = ("token", "email", "created_by", "expires_at", "is_used", "used_by")
    list_filter = ("is_used",)
    search_fields = ("token", "email")
    readonly_fields = ("token", "used_by", "used_at", "created_at", "updated_at")
