"""
Admin configuration for notifications app
"""
from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['type', 'message', 'cycle', 'is_read', 'is_resolved', 'created_at']
    list_filter = ['type', 'is_read', 'is_resolved']
    search_fields = ['message']
    readonly_fields = ['created_at', 'resolved_at', 'payload']
