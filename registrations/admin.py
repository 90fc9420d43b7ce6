"""
Admin configuration for registrations app
"""
from django.contrib import admin
from .models import Registration


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    """Registration Admin"""
    list_display = ['student', 'cycle', 'status', 'payment_status', 'amount', 'registration_date']
    list_filter = ['status', 'payment_status', 'payment_method']
    search_fields = ['student__full_name', 'cycle__name']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['student', 'cycle']
