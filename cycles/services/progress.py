"""
Cycle progress tracker: completed/remaining/total counters derived from the meeting ledger.

Counters are a cache. They are always recomputed from a fresh read of the meetings table
with the cycle row locked (select_for_update), never incremented in place, so concurrent
refreshes of the same cycle serialize and the last writer sees every committed change.

Cycle status follows the ledger:
- active cycle, every meeting settled -> completed, and its registered/active
  registrations are marked completed. Settled means completed, cancelled, or
  postponed with a replacement meeting (the replacement carries the occurrence).
- completed cycle with an unsettled meeting again -> active
- cancelled cycles are left alone
"""
import logging

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from core import errors
from cycles.models import Cycle, Meeting
from registrations.models import Registration
from audit.models import AuditLog
from audit.recorder import record_audit, snapshot
from notifications.dispatch import dispatch_event
from notifications.models import Notification

logger = logging.getLogger(__name__)


def progress_snapshot(cycle):
    """Meeting counts per status straight from the ledger, plus the total."""
    counts = {status: 0 for status, _ in Meeting.STATUS_CHOICES}
    rows = Meeting.objects.filter(cycle=cycle).order_by().values("status").annotate(n=Count("id"))
    for row in rows:
        counts[row["status"]] = row["n"]
    counts["total"] = sum(counts[status] for status, _ in Meeting.STATUS_CHOICES)
    return counts


def _complete_registrations(cycle):
    updated = Registration.objects.filter(
        cycle=cycle,
        status__in=Registration.ACTIVE_STATUSES,
    ).update(status=Registration.STATUS_COMPLETED)
    logger.info(f"[progress] cycle_id={cycle.id} completed, {updated} registrations marked completed")
    return updated


def refresh_cycle_progress(cycle_id):
    """
    Recompute counters (and status) for one cycle from the meeting ledger.
    Returns the refreshed Cycle.
    """
    with transaction.atomic():
        try:
            cycle = Cycle.objects.select_for_update().get(pk=cycle_id)
        except Cycle.DoesNotExist:
            raise errors.NotFoundError(f"Cycle {cycle_id} not found")

        counts = progress_snapshot(cycle)
        total = counts["total"]
        completed = counts[Meeting.STATUS_COMPLETED]
        superseded = Meeting.objects.filter(
            cycle=cycle, status=Meeting.STATUS_POSTPONED, rescheduled_to__isnull=False,
        ).count()
        all_terminal = total > 0 and (
            counts[Meeting.STATUS_COMPLETED] + counts[Meeting.STATUS_CANCELLED] + superseded == total
        )

        update_fields = []
        if cycle.total_meetings != total:
            cycle.total_meetings = total
            update_fields.append("total_meetings")
        if cycle.completed_meetings != completed:
            cycle.completed_meetings = completed
            update_fields.append("completed_meetings")
        if cycle.remaining_meetings != total - completed:
            cycle.remaining_meetings = total - completed
            update_fields.append("remaining_meetings")

        became_completed = False
        if cycle.status == Cycle.STATUS_ACTIVE and all_terminal:
            cycle.status = Cycle.STATUS_COMPLETED
            update_fields.append("status")
            became_completed = True
        elif cycle.status == Cycle.STATUS_COMPLETED and not all_terminal:
            logger.info(f"[progress] cycle_id={cycle.id} has open meetings again, reverting to active")
            cycle.status = Cycle.STATUS_ACTIVE
            update_fields.append("status")

        if update_fields:
            cycle.save(update_fields=update_fields + ["updated_at"])
            logger.info(
                f"[progress] cycle_id={cycle.id} total={total} completed={completed} "
                f"remaining={cycle.remaining_meetings} status={cycle.status}"
            )

        if became_completed:
            _complete_registrations(cycle)
            dispatch_event({
                "type": Notification.TYPE_CYCLE_COMPLETED,
                "cycle_id": cycle.id,
                "cycle_name": cycle.name,
                "completed_meetings": completed,
            })

    return cycle


def rebuild_from_ledger(cycle_id):
    """
    Reconciliation entry point: recompute counters and report the drift that was found.
    Returns {"cycle_id", "before": {...}, "after": {...}, "changed": bool}.
    """
    with transaction.atomic():
        try:
            before_cycle = Cycle.objects.select_for_update().get(pk=cycle_id)
        except Cycle.DoesNotExist:
            raise errors.NotFoundError(f"Cycle {cycle_id} not found")
        before = {
            "total_meetings": before_cycle.total_meetings,
            "completed_meetings": before_cycle.completed_meetings,
            "remaining_meetings": before_cycle.remaining_meetings,
            "status": before_cycle.status,
        }
        cycle = refresh_cycle_progress(cycle_id)
        after = {
            "total_meetings": cycle.total_meetings,
            "completed_meetings": cycle.completed_meetings,
            "remaining_meetings": cycle.remaining_meetings,
            "status": cycle.status,
        }
    if before != after:
        logger.warning(f"[rebuild] cycle_id={cycle_id} drift fixed: {before} -> {after}")
    return {"cycle_id": cycle_id, "before": before, "after": after, "changed": before != after}


def cancel_cycle(cycle, reason="", actor=None):
    """
    Operator-driven cancellation. Meetings are left untouched.
    """
    with transaction.atomic():
        cycle = Cycle.objects.select_for_update().get(pk=cycle.pk)
        if cycle.status == Cycle.STATUS_CANCELLED:
            raise errors.InvalidStateError("Cycle is already cancelled")
        before = snapshot(cycle)
        cycle.status = Cycle.STATUS_CANCELLED
        cycle.cancelled_at = timezone.now()
        cycle.cancellation_reason = reason or ""
        cycle.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])
        logger.info(f"[cancel_cycle] cycle_id={cycle.id} cancelled by {getattr(actor, 'id', None)}")
        record_audit(AuditLog.ACTION_UPDATE, "cycle", cycle.id, before=before, after=snapshot(cycle), actor=actor)
    return cycle


def delete_cycle(cycle, actor=None):
    """
    A cycle can only be deleted while its ledger is empty.
    """
    with transaction.atomic():
        if Meeting.objects.filter(cycle=cycle).exists():
            raise errors.InvalidStateError("Cycle has meetings and cannot be deleted; cancel it instead")
        if Registration.objects.filter(cycle=cycle).exists():
            raise errors.InvalidStateError("Cycle has registrations and cannot be deleted; cancel it instead")
        before = snapshot(cycle)
        cycle_id = cycle.id
        cycle.delete()
        record_audit(AuditLog.ACTION_DELETE, "cycle", cycle_id, before=before, after=None, actor=actor)
    logger.info(f"[delete_cycle] cycle_id={cycle_id} deleted")
