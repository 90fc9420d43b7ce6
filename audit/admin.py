"""
Admin configuration for audit app (read-only)
"""
from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'entity', 'entity_id', 'actor']
    list_filter = ['action', 'entity']
    search_fields = ['entity_id', 'actor__email']
    readonly_fields = ['actor', 'action', 'entity', 'entity_id', 'before', 'after', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
