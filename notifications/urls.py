"""
URLs for notifications app.
"""
from django.urls import path
from notifications.views import (
    notifications_view,
    notification_mark_read_view,
    notification_resolve_view,
    notifications_mark_all_read_view,
    notifications_count_view,
)

urlpatterns = [
    path('', notifications_view, name='notifications-list'),
    path('count/', notifications_count_view, name='notifications-count'),
    path('<int:notification_id>/read/', notification_mark_read_view, name='notification-mark-read'),
    path('<int:notification_id>/resolve/', notification_resolve_view, name='notification-resolve'),
    path('mark-all-read/', notifications_mark_all_read_view, name='notifications-mark-all-read'),
]
