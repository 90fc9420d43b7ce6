"""
URLs for registrations app (mounted at /api/).
"""
from django.urls import path
from registrations import views

urlpatterns = [
    path('cycles/<int:cycle_id>/registrations/', views.cycle_registrations_view, name='cycle-registrations'),
    path('registrations/bulk-update/', views.registrations_bulk_update_view, name='registrations-bulk-update'),
    path('registrations/<int:pk>/', views.registration_detail_view, name='registration-detail'),
    path('registrations/<int:pk>/payment/', views.registration_payment_view, name='registration-payment'),
    path('registrations/<int:pk>/cancel/', views.registration_cancel_view, name='registration-cancel'),
]
