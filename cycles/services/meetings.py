"""
Meeting state machine and single-meeting mutations.

Transitions:
    scheduled -> completed | cancelled | postponed
    postponed -> scheduled | cancelled
    completed, cancelled -> (none)
force=True is the operator override (direct status set). Setting the current status again
is rejected. A postponed meeting whose replacement is still live cannot go back to
scheduled. Entering 'completed' seeds attendance and may raise a negative-profit alert.
Every status change refreshes the cycle's counters before returning.

Changing activity_type, instructor or times recomputes instructor_payment and profit.
Revenue is kept as snapshotted; recalculate_meeting() re-stamps everything on request.
"""
import logging
from datetime import time, timedelta

from django.db import transaction
from django.utils import timezone

from core import errors
from cycles.models import Cycle, Meeting, Holiday, MEETING_ACTIVITY_CHOICES
from cycles.services.financials import stamp_financials, FINANCIAL_FIELDS
from cycles.services.progress import refresh_cycle_progress
from attendance.services.recording import seed_attendance
from instructors.models import Instructor
from audit.models import AuditLog
from audit.recorder import record_audit, snapshot
from notifications.dispatch import dispatch_event
from notifications.models import Notification

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    Meeting.STATUS_SCHEDULED: {Meeting.STATUS_COMPLETED, Meeting.STATUS_CANCELLED, Meeting.STATUS_POSTPONED},
    Meeting.STATUS_POSTPONED: {Meeting.STATUS_SCHEDULED, Meeting.STATUS_CANCELLED},
    Meeting.STATUS_COMPLETED: set(),
    Meeting.STATUS_CANCELLED: set(),
}

VALID_STATUSES = {choice for choice, _ in Meeting.STATUS_CHOICES}
VALID_ACTIVITY_TYPES = {choice for choice, _ in MEETING_ACTIVITY_CHOICES}

UPDATABLE_FIELDS = {
    "status",
    "activity_type",
    "instructor",
    "topic",
    "notes",
    "scheduled_date",
    "start_time",
    "end_time",
}
# Fields whose change invalidates instructor_payment / profit
PAYMENT_FIELDS = {"activity_type", "instructor", "start_time", "end_time"}


def can_transition(current, new_status):
    return new_status in ALLOWED_TRANSITIONS.get(current, set())


def _check_transition(meeting, new_status, force):
    if new_status not in VALID_STATUSES:
        raise errors.ValidationError(f"Invalid meeting status '{new_status}'")
    if new_status == meeting.status:
        raise errors.InvalidStateError(f"Meeting is already {meeting.status}")
    if not force and not can_transition(meeting.status, new_status):
        raise errors.InvalidStateError(
            f"Cannot change meeting status from {meeting.status} to {new_status}"
        )
    if new_status == Meeting.STATUS_SCHEDULED and meeting.rescheduled_to_id:
        _release_replacement(meeting)


def _release_replacement(meeting):
    """
    A postponed meeting can only be scheduled again once its replacement is cancelled,
    otherwise the same occurrence sits in the ledger twice. Clears the link.
    """
    replacement_status = (
        Meeting.objects.filter(pk=meeting.rescheduled_to_id).values_list("status", flat=True).first()
    )
    if replacement_status is not None and replacement_status != Meeting.STATUS_CANCELLED:
        raise errors.InvalidStateError(
            f"Meeting was replaced by meeting {meeting.rescheduled_to_id} ({replacement_status}); "
            f"cancel the replacement before rescheduling"
        )
    logger.info(f"[meeting_status] meeting_id={meeting.id} unlinked from replacement {meeting.rescheduled_to_id}")
    meeting.rescheduled_to = None


def _lock(meeting):
    try:
        return Meeting.objects.select_for_update().get(pk=meeting.pk)
    except Meeting.DoesNotExist:
        raise errors.NotFoundError(f"Meeting {meeting.pk} not found")


def _resolve_instructor(value):
    if value is None or isinstance(value, Instructor):
        return value
    try:
        return Instructor.objects.get(pk=value)
    except Instructor.DoesNotExist:
        raise errors.NotFoundError(f"Instructor {value} not found")
    except (ValueError, TypeError):
        raise errors.ValidationError(f"Invalid instructor reference {value!r}")


def _event(meeting, event_type, **extra):
    event = {
        "type": event_type,
        "cycle_id": meeting.cycle_id,
        "cycle_name": meeting.cycle.name,
        "meeting_id": meeting.id,
        "date": meeting.scheduled_date,
    }
    event.update(extra)
    return event


def _enter_status(meeting, new_status, actor):
    """Set status + side effects. Caller holds the row lock and saves nothing else afterwards."""
    old_status = meeting.status
    meeting.status = new_status
    meeting.status_updated_at = timezone.now()
    meeting.status_updated_by = actor if getattr(actor, "pk", None) else None
    meeting.save(update_fields=["status", "status_updated_at", "status_updated_by", "rescheduled_to", "updated_at"])
    logger.info(f"[meeting_status] meeting_id={meeting.id}: {old_status} -> {new_status}")

    if new_status == Meeting.STATUS_COMPLETED:
        seed_attendance(meeting, actor=actor)
        dispatch_event(_event(meeting, Notification.TYPE_MEETING_COMPLETED))
        if meeting.profit < 0:
            logger.warning(f"[meeting_status] meeting_id={meeting.id} completed with negative profit {meeting.profit}")
            dispatch_event(_event(
                meeting, Notification.TYPE_NEGATIVE_PROFIT,
                revenue=meeting.revenue,
                instructor_payment=meeting.instructor_payment,
                profit=meeting.profit,
            ))
    elif new_status == Meeting.STATUS_CANCELLED:
        dispatch_event(_event(meeting, Notification.TYPE_MEETING_CANCELLED, previous_status=old_status))


def transition_meeting(meeting, new_status, actor=None, force=False):
    """
    Move one meeting to new_status. Raises InvalidStateError for a disallowed transition.
    Returns the updated meeting; the cycle's counters are already refreshed.
    """
    with transaction.atomic():
        meeting = _lock(meeting)
        before = snapshot(meeting)
        _check_transition(meeting, new_status, force)
        _enter_status(meeting, new_status, actor)
        refresh_cycle_progress(meeting.cycle_id)
        record_audit(AuditLog.ACTION_UPDATE, "meeting", meeting.id, before=before, after=snapshot(meeting), actor=actor)
    return meeting


def update_meeting(meeting, changes, actor=None, force=False):
    """
    Sparse update of one meeting. Keys: status, activity_type, instructor (id or None),
    topic, notes, scheduled_date, start_time, end_time.
    Activity type / instructor / time changes recompute instructor_payment and profit.
    """
    if not changes:
        raise errors.ValidationError("No changes given")
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise errors.ValidationError(f"Unknown meeting fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        meeting = _lock(meeting)
        before = snapshot(meeting)

        new_status = changes.get("status")
        if "status" in changes:
            _check_transition(meeting, new_status, force)

        if "activity_type" in changes:
            if changes["activity_type"] not in VALID_ACTIVITY_TYPES:
                raise errors.ValidationError(f"Invalid activity type '{changes['activity_type']}'")
            meeting.activity_type = changes["activity_type"]
        if "instructor" in changes:
            meeting.instructor = _resolve_instructor(changes["instructor"])
        for field in ("start_time", "end_time"):
            if field in changes:
                if changes[field] is not None and not isinstance(changes[field], time):
                    raise errors.ValidationError(f"{field} must be a time")
                setattr(meeting, field, changes[field])
        if meeting.start_time and meeting.end_time and meeting.start_time >= meeting.end_time:
            raise errors.ValidationError("start_time must be before end_time")
        if "scheduled_date" in changes:
            if not changes["scheduled_date"]:
                raise errors.ValidationError("scheduled_date cannot be empty")
            meeting.scheduled_date = changes["scheduled_date"]
        if "topic" in changes:
            meeting.topic = changes["topic"] or ""
        if "notes" in changes:
            meeting.notes = changes["notes"] or ""

        if PAYMENT_FIELDS & set(changes):
            stamp_financials(meeting, revenue=meeting.revenue)
            logger.info(
                f"[update_meeting] meeting_id={meeting.id} recomputed: payment={meeting.instructor_payment}, "
                f"profit={meeting.profit}"
            )
        meeting.save()

        if "status" in changes:
            _enter_status(meeting, new_status, actor)
            refresh_cycle_progress(meeting.cycle_id)

        record_audit(AuditLog.ACTION_UPDATE, "meeting", meeting.id, before=before, after=snapshot(meeting), actor=actor)
    return meeting


def recalculate_meeting(meeting, actor=None):
    """
    Re-stamp revenue, instructor payment and profit from current rates and enrollment.
    Opt-in only: rate-table edits never touch existing meetings by themselves.
    """
    with transaction.atomic():
        meeting = _lock(meeting)
        before = snapshot(meeting)
        stamp_financials(meeting)
        meeting.save(update_fields=FINANCIAL_FIELDS + ["updated_at"])
        logger.info(
            f"[recalculate] meeting_id={meeting.id}: revenue {before['revenue']} -> {meeting.revenue}, "
            f"payment {before['instructor_payment']} -> {meeting.instructor_payment}"
        )
        record_audit(AuditLog.ACTION_UPDATE, "meeting", meeting.id, before=before, after=snapshot(meeting), actor=actor)
    return meeting


def _next_free_date(cycle, after_date):
    """after_date + 7 days, skipping holidays week by week."""
    candidate = after_date + timedelta(days=7)
    holidays = set(Holiday.objects.filter(date__gte=candidate).values_list("date", flat=True))
    while candidate in holidays:
        candidate += timedelta(days=7)
    return candidate


def postpone_meeting(meeting, new_date=None, new_start_time=None, new_end_time=None, actor=None):
    """
    Postpone a scheduled meeting and create its replacement.
    Without new_date the replacement goes 7 days after the cycle's last scheduled/completed meeting.
    Returns (postponed_meeting, replacement).
    """
    with transaction.atomic():
        meeting = _lock(meeting)
        if meeting.status != Meeting.STATUS_SCHEDULED:
            raise errors.InvalidStateError(f"Only scheduled meetings can be postponed (meeting is {meeting.status})")
        cycle = meeting.cycle
        if cycle.status == Cycle.STATUS_CANCELLED:
            raise errors.InvalidStateError("Cycle is cancelled")

        if new_date is None:
            last_date = (
                Meeting.objects.filter(
                    cycle=cycle,
                    status__in=[Meeting.STATUS_SCHEDULED, Meeting.STATUS_COMPLETED],
                )
                .order_by("-scheduled_date")
                .values_list("scheduled_date", flat=True)
                .first()
            )
            new_date = _next_free_date(cycle, max(last_date or meeting.scheduled_date, meeting.scheduled_date))

        start_time = new_start_time or meeting.start_time
        end_time = new_end_time or meeting.end_time
        if start_time and end_time and start_time >= end_time:
            raise errors.ValidationError("start_time must be before end_time")

        replacement = Meeting(
            cycle=cycle,
            scheduled_date=new_date,
            start_time=start_time,
            end_time=end_time,
            status=Meeting.STATUS_SCHEDULED,
            activity_type=meeting.activity_type,
            instructor=meeting.instructor,
            topic=f"Replacement for {meeting.scheduled_date:%Y-%m-%d}",
        )
        stamp_financials(replacement, cycle=cycle)
        replacement.save()

        before = snapshot(meeting)
        meeting.rescheduled_to = replacement
        meeting.save(update_fields=["rescheduled_to", "updated_at"])
        _enter_status(meeting, Meeting.STATUS_POSTPONED, actor)
        refresh_cycle_progress(cycle.id)

        logger.info(
            f"[postpone] meeting_id={meeting.id} postponed, replacement meeting_id={replacement.id} on {new_date}"
        )
        record_audit(AuditLog.ACTION_UPDATE, "meeting", meeting.id, before=before, after=snapshot(meeting), actor=actor)
        record_audit(AuditLog.ACTION_CREATE, "meeting", replacement.id, before=None, after=snapshot(replacement), actor=actor)
    return meeting, replacement


def add_meeting(cycle, scheduled_date, start_time=None, end_time=None, activity_type=None,
                instructor=None, topic="", actor=None):
    """Manually add one scheduled meeting to a cycle's ledger."""
    with transaction.atomic():
        cycle = Cycle.objects.select_for_update().get(pk=cycle.pk)
        if cycle.status == Cycle.STATUS_CANCELLED:
            raise errors.InvalidStateError("Cannot add meetings to a cancelled cycle")
        activity_type = activity_type or cycle.activity_type
        if activity_type not in VALID_ACTIVITY_TYPES:
            raise errors.ValidationError(f"Invalid activity type '{activity_type}'")

        meeting = Meeting(
            cycle=cycle,
            scheduled_date=scheduled_date,
            start_time=start_time or cycle.start_time,
            end_time=end_time or cycle.end_time,
            status=Meeting.STATUS_SCHEDULED,
            activity_type=activity_type,
            instructor=_resolve_instructor(instructor) if instructor is not None else cycle.instructor,
            topic=topic or "",
        )
        if meeting.start_time and meeting.end_time and meeting.start_time >= meeting.end_time:
            raise errors.ValidationError("start_time must be before end_time")
        stamp_financials(meeting, cycle=cycle)
        meeting.save()
        refresh_cycle_progress(cycle.id)
        logger.info(f"[add_meeting] cycle_id={cycle.id}: added meeting_id={meeting.id} on {scheduled_date}")
        record_audit(AuditLog.ACTION_CREATE, "meeting", meeting.id, before=None, after=snapshot(meeting), actor=actor)
    return meeting
