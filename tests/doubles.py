"""
Collaborator stand-ins selected through AUDIT_RECORDER / NOTIFICATION_DISPATCHER overrides.
"""
from audit.recorder import AuditRecorder
from notifications.dispatch import NotificationDispatcher


class RecordingDispatcher(NotificationDispatcher):
    events = []

    def notify(self, event):
        RecordingDispatcher.events.append(event)

    @classmethod
    def types(cls):
        return [e["type"] for e in cls.events]


class FailingDispatcher(NotificationDispatcher):
    def notify(self, event):
        raise RuntimeError("gateway down")


class FailingAuditRecorder(AuditRecorder):
    def record(self, action, entity, entity_id, before, after, actor=None):
        raise RuntimeError("audit sink down")
