"""
Admin configuration for core app
"""
from django.contrib import admin
from .models import Branch, Course


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    """Branch Admin"""
    list_display = ['name', 'address', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'address']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']
