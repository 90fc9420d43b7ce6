"""
Audit recorder: receives before/after snapshots for every mutating operation.

The sink is chosen by settings.AUDIT_RECORDER (dotted path to an AuditRecorder subclass).
record_audit() defers the write until the surrounding transaction commits and logs,
never raises, when the sink fails: an audit failure must not roll back a ledger change.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Interface for audit sinks."""

    def record(self, action, entity, entity_id, before, after, actor=None):
        raise NotImplementedError


class DatabaseAuditRecorder(AuditRecorder):
    """Default sink: one AuditLog row per call."""

    def record(self, action, entity, entity_id, before, after, actor=None):
        from audit.models import AuditLog

        AuditLog.objects.create(
            actor=actor if getattr(actor, "pk", None) else None,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            before=before,
            after=after,
        )


def get_audit_recorder():
    return import_string(settings.AUDIT_RECORDER)()


def snapshot(instance):
    """Plain dict of the instance's concrete field values (FKs as ids)."""
    if instance is None:
        return None
    return {field.attname: getattr(instance, field.attname) for field in instance._meta.concrete_fields}


def record_audit(action, entity, entity_id, before=None, after=None, actor=None):
    """Queue an audit entry for after commit. Failures are logged and swallowed."""

    def _write():
        try:
            get_audit_recorder().record(action, entity, entity_id, before, after, actor=actor)
        except Exception as e:
            logger.error(f"[audit] Failed to record {action} {entity}#{entity_id}: {e}", exc_info=True)

    transaction.on_commit(_write)
