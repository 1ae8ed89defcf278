from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class PlatformUserAdmin(UserAdmin):
    list_display = ['username', 'email', 'name', 'role', 'is_staff', 'created_at']
    list_filter = ['role', 'is_staff', 'is_active']
    search_fields = ['username', 'email', 'name']
    fieldsets = UserAdmin.fieldsets + (
        ('Mentorship', {'fields': ('name', 'avatar', 'role')}),
    )
