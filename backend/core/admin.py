from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, ActivityLog, Notification


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'full_name', 'role', 'is_active', 'is_staff', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff', 'is_superuser']
    search_fields = ['username', 'email', 'full_name']
    ordering = ['email']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Console', {'fields': ('full_name', 'phone', 'role')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Console', {'fields': ('email', 'full_name', 'role')}),
    )


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['actor', 'action', 'entity', 'entity_label', 'ip_address', 'created_at']
    list_filter = ['action', 'entity', 'created_at']
    search_fields = ['actor__email', 'entity', 'entity_id', 'entity_label']
    ordering = ['-created_at']
    readonly_fields = ['actor', 'action', 'entity', 'entity_id', 'entity_label', 'details', 'ip_address', 'created_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'title', 'type', 'read', 'created_at']
    list_filter = ['type', 'read']
    search_fields = ['user__email', 'title']
