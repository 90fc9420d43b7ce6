"""
Custom permissions for role-based access
"""
from rest_framework import permissions


class IsManager(permissions.BasePermission):
    """Admin or manager: may mutate cycles, meetings, registrations and attendance"""
    
    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.is_manager
        )


class IsOperator(permissions.BasePermission):
    """Any back-office role: ledger reads and attendance recording"""
    
    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role in ('admin', 'manager', 'instructor')
        )
