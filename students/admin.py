"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    """Student Admin"""
    list_display = ['full_name', 'phone', 'email', 'grade', 'created_at', 'deleted_at']
    list_filter = ['grade', 'created_at']
    search_fields = ['full_name', 'email', 'phone']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['full_name']
