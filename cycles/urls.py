"""
URLs for cycles app (mounted at /api/).
"""
from django.urls import path
from cycles import views

urlpatterns = [
    path('cycles/', views.cycles_view, name='cycles-list'),
    path('cycles/<int:pk>/', views.cycle_detail_view, name='cycle-detail'),
    path('cycles/<int:pk>/cancel/', views.cycle_cancel_view, name='cycle-cancel'),
    path('cycles/<int:pk>/sync-progress/', views.cycle_sync_progress_view, name='cycle-sync-progress'),
    path('cycles/<int:pk>/generate-missing/', views.cycle_generate_missing_view, name='cycle-generate-missing'),
    path('cycles/<int:pk>/meetings/', views.cycle_meetings_view, name='cycle-meetings'),
    # bulk routes before <int:pk>
    path('meetings/bulk-update/', views.meetings_bulk_update_view, name='meetings-bulk-update'),
    path('meetings/bulk-recalculate/', views.meetings_bulk_recalculate_view, name='meetings-bulk-recalculate'),
    path('meetings/<int:pk>/', views.meeting_detail_view, name='meeting-detail'),
    path('meetings/<int:pk>/postpone/', views.meeting_postpone_view, name='meeting-postpone'),
    path('meetings/<int:pk>/recalculate/', views.meeting_recalculate_view, name='meeting-recalculate'),
]
