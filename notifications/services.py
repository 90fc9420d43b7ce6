"""
Notification services: create from ledger events, mark read, resolve.
"""
from django.db import transaction
from django.utils import timezone

from notifications.models import Notification


def _message_for(event):
    event_type = event.get("type")
    if event.get("message"):
        return event["message"]
    if event_type == Notification.TYPE_MEETING_COMPLETED:
        return f"Meeting on {event.get('date')} of cycle {event.get('cycle_name')} completed"
    if event_type == Notification.TYPE_MEETING_CANCELLED:
        return f"Meeting on {event.get('date')} of cycle {event.get('cycle_name')} cancelled"
    if event_type == Notification.TYPE_NEGATIVE_PROFIT:
        return (
            f"Meeting on {event.get('date')} of cycle {event.get('cycle_name')} "
            f"has negative profit ({event.get('profit')})"
        )
    if event_type == Notification.TYPE_CYCLE_COMPLETED:
        return f"Cycle {event.get('cycle_name')} completed"
    if event_type == Notification.TYPE_PAYMENT_STATUS_CHANGED:
        return (
            f"Payment status of {event.get('student_name')} in {event.get('cycle_name')} "
            f"changed from {event.get('old_status')} to {event.get('new_status')}"
        )
    return str(event_type)


def create_notification_from_event(event, created_by=None):
    """
    Create a Notification for a ledger event.
    Negative-profit alerts are deduplicated: one unread alert per meeting.
    """
    event_type = event["type"]
    meeting_id = event.get("meeting_id")

    if event_type == Notification.TYPE_NEGATIVE_PROFIT and meeting_id:
        existing = Notification.objects.filter(
            meeting_id=meeting_id,
            type=event_type,
            is_read=False,
        ).first()
        if existing:
            return existing

    return Notification.objects.create(
        type=event_type,
        cycle_id=event.get("cycle_id"),
        meeting_id=meeting_id,
        registration_id=event.get("registration_id"),
        message=_message_for(event),
        payload=event,
        created_by=created_by,
    )


def mark_read(notification):
    notification.is_read = True
    notification.save(update_fields=["is_read"])
    return notification


def resolve_notification(notification):
    """Resolving also marks as read so it leaves the active list."""
    notification.is_read = True
    notification.is_resolved = True
    notification.resolved_at = timezone.now()
    notification.save(update_fields=["is_read", "is_resolved", "resolved_at"])
    return notification


@transaction.atomic
def mark_all_read(queryset=None):
    qs = queryset if queryset is not None else Notification.objects.all()
    return qs.filter(is_read=False).update(is_read=True)
