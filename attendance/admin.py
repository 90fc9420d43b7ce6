"""
Admin configuration for attendance app
"""
from django.contrib import admin
from .models import Attendance


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    """Attendance Admin"""
    list_display = ['student', 'meeting', 'status', 'is_trial', 'recorded_by', 'recorded_at']
    list_filter = ['status', 'is_trial']
    search_fields = ['student__full_name', 'meeting__cycle__name']
    readonly_fields = ['created_at', 'recorded_at']
    raw_id_fields = ['meeting', 'registration', 'student']
