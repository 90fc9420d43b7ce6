"""
Admin configuration for cycles app
"""
from django.contrib import admin
from .models import Cycle, Meeting, Holiday


class MeetingInline(admin.TabularInline):
    model = Meeting
    fk_name = 'cycle'
    extra = 0
    fields = ['scheduled_date', 'start_time', 'end_time', 'status', 'activity_type', 'instructor',
              'revenue', 'instructor_payment', 'profit']
    readonly_fields = ['revenue', 'instructor_payment', 'profit']
    can_delete = False
    show_change_link = True


@admin.register(Cycle)
class CycleAdmin(admin.ModelAdmin):
    """Cycle Admin"""
    list_display = ['name', 'course', 'branch', 'instructor', 'day_of_week', 'start_date',
                    'total_meetings', 'completed_meetings', 'remaining_meetings', 'status']
    list_filter = ['status', 'pricing_mode', 'activity_type', 'day_of_week', 'branch']
    search_fields = ['name', 'course__name', 'branch__name', 'instructor__name']
    readonly_fields = ['total_meetings', 'completed_meetings', 'remaining_meetings', 'created_at', 'updated_at']
    inlines = [MeetingInline]


@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
    """Meeting Admin"""
    list_display = ['cycle', 'scheduled_date', 'status', 'activity_type', 'instructor',
                    'revenue', 'instructor_payment', 'profit']
    list_filter = ['status', 'activity_type', 'scheduled_date']
    search_fields = ['cycle__name', 'topic']
    readonly_fields = ['revenue', 'instructor_payment', 'profit', 'status_updated_at', 'created_at', 'updated_at']
    ordering = ['-scheduled_date']

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Holiday)
class HolidayAdmin(admin.ModelAdmin):
    list_display = ['date', 'name']
    search_fields = ['name']
    ordering = ['date']
