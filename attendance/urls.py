"""
URLs for attendance app (mounted at /api/).
"""
from django.urls import path
from attendance import views

urlpatterns = [
    path('meetings/<int:meeting_id>/attendance/', views.meeting_attendance_view, name='meeting-attendance'),
]
