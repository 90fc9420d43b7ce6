"""
Notification views for operators.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from accounts.permissions import IsManager
from notifications.models import Notification
from notifications.serializers import NotificationSerializer
from notifications.services import mark_read, resolve_notification, mark_all_read


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def notifications_view(request):
    """
    GET /api/notifications/?type=
    Returns active (unread) notifications, newest first.
    """
    qs = Notification.objects.filter(is_read=False).select_related('cycle')
    event_type = request.query_params.get('type')
    if event_type:
        qs = qs.filter(type=event_type)
    qs = qs.order_by('-created_at')
    
    serializer = NotificationSerializer(qs, many=True)
    return Response({
        'notifications': serializer.data,
        'unread_count': qs.count(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def notifications_count_view(request):
    """
    GET /api/notifications/count/
    Unread count only (for header badge).
    """
    return Response({'count': Notification.objects.filter(is_read=False).count()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def notification_mark_read_view(request, notification_id):
    """
    POST /api/notifications/{id}/read/
    """
    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
    
    mark_read(notification)
    return Response({"detail": "Marked as read"})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def notification_resolve_view(request, notification_id):
    """
    POST /api/notifications/{id}/resolve/
    """
    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        return Response({"detail": "Notification not found"}, status=status.HTTP_404_NOT_FOUND)
    
    resolve_notification(notification)
    return Response({"detail": "Resolved"})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def notifications_mark_all_read_view(request):
    """
    POST /api/notifications/mark-all-read/
    """
    updated = mark_all_read()
    return Response({"detail": f"Marked {updated} notifications as read"})
