"""
Notification dispatcher: receives domain events from the ledger.

An event is a dict with at least "type" plus ids (cycle_id, meeting_id, registration_id)
and event-specific data. The implementation is chosen by settings.NOTIFICATION_DISPATCHER.
dispatch_event() delivers after the surrounding transaction commits; delivery failures are
logged and never propagate back into the business operation.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Interface for event sinks (in-app, email, messaging gateway)."""

    def notify(self, event):
        raise NotImplementedError


class DatabaseNotificationDispatcher(NotificationDispatcher):
    """Default sink: store an in-app Notification for operators."""

    def notify(self, event):
        from notifications.services import create_notification_from_event

        return create_notification_from_event(event)


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Writes events to the log only. Useful for scripts and local runs."""

    def notify(self, event):
        logger.info(f"[notify] {event.get('type')}: {event}")


def get_dispatcher():
    return import_string(settings.NOTIFICATION_DISPATCHER)()


def dispatch_event(event):
    """Queue the event for delivery after commit."""

    def _deliver():
        try:
            get_dispatcher().notify(event)
        except Exception as e:
            logger.error(f"[notify] Failed to deliver {event.get('type')}: {e}", exc_info=True)

    transaction.on_commit(_deliver)
