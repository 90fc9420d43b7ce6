"""
Admin configuration for instructors app
"""
from django.contrib import admin
from .models import Instructor


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    """Instructor Admin"""
    list_display = ['name', 'email', 'rate_frontal', 'rate_online', 'rate_private', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'email', 'phone']
    readonly_fields = ['created_at', 'updated_at']
