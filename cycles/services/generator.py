"""
Meeting generator: expand a cycle's weekly recurrence into dated meetings.

Start at cycle.start_date, jump to the first date on day_of_week (0=Mon..6=Sun),
then step 7 days. Holiday dates are skipped and do not count. Generation stops at
total_meetings occurrences, or early at end_date, in which case total_meetings is
clamped to the number actually produced. The batch is written with one bulk_create
inside transaction.atomic(): a partial batch is never visible.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction

from core import errors
from cycles.models import Cycle, Meeting, Holiday
from cycles.services.financials import compute_revenue, stamp_financials
from cycles.services.progress import refresh_cycle_progress
from audit.models import AuditLog
from audit.recorder import record_audit, snapshot

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def first_occurrence(start_date, day_of_week):
    """First date >= start_date whose weekday() equals day_of_week."""
    offset = (day_of_week - start_date.weekday()) % 7
    return start_date + timedelta(days=offset)


def plan_dates(start_date, day_of_week, count, end_date=None, holidays=None, after=None):
    """
    Return up to `count` meeting dates.
    after: generate strictly after this date (used when appending to an existing ledger).
    """
    holidays = holidays or set()
    max_weeks = settings.MEETING_GENERATION_MAX_WEEKS
    current = first_occurrence(start_date, day_of_week)
    if after is not None:
        while current <= after:
            current += WEEK

    dates = []
    weeks = 0
    while len(dates) < count and weeks < max_weeks:
        if end_date is not None and current > end_date:
            break
        if current not in holidays:
            dates.append(current)
        current += WEEK
        weeks += 1
    return dates


def _holiday_dates(start_date, end_date=None):
    qs = Holiday.objects.filter(date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(date__lte=end_date)
    return set(qs.values_list("date", flat=True))


def validate_recurrence(cycle):
    if cycle.day_of_week is None or not 0 <= int(cycle.day_of_week) <= 6:
        raise errors.ValidationError("day_of_week must be between 0 (Monday) and 6 (Sunday)")
    if not cycle.total_meetings or cycle.total_meetings < 1:
        raise errors.ValidationError("total_meetings must be at least 1")
    if cycle.end_date is not None and cycle.start_date > cycle.end_date:
        raise errors.ValidationError("start_date must not be after end_date")
    if cycle.start_time and cycle.end_time and cycle.start_time >= cycle.end_time:
        raise errors.ValidationError("start_time must be before end_time")


def _build_meetings(cycle, dates):
    revenue = compute_revenue(cycle)
    meetings = []
    for meeting_date in dates:
        meeting = Meeting(
            cycle=cycle,
            scheduled_date=meeting_date,
            start_time=cycle.start_time,
            end_time=cycle.end_time,
            status=Meeting.STATUS_SCHEDULED,
            activity_type=cycle.activity_type,
            instructor=cycle.instructor,
        )
        stamp_financials(meeting, cycle=cycle, revenue=revenue)
        meetings.append(meeting)
    return meetings


def generate_meetings(cycle):
    """
    Generate the full meeting ledger for a freshly saved cycle with no meetings.
    Returns the list of created meetings.
    """
    logger.info(
        f"[generate_meetings] cycle_id={cycle.id}, day_of_week={cycle.day_of_week}, "
        f"start={cycle.start_date}, end={cycle.end_date}, total={cycle.total_meetings}"
    )
    validate_recurrence(cycle)

    with transaction.atomic():
        if Meeting.objects.filter(cycle=cycle).exists():
            raise errors.InvalidStateError("Cycle already has meetings; use generate_missing_meetings")

        holidays = _holiday_dates(cycle.start_date, cycle.end_date)
        dates = plan_dates(
            cycle.start_date, cycle.day_of_week, cycle.total_meetings,
            end_date=cycle.end_date, holidays=holidays,
        )
        if not dates:
            raise errors.ValidationError("No meeting date falls between start_date and end_date")

        update_fields = []
        if len(dates) < cycle.total_meetings:
            logger.warning(
                f"[generate_meetings] end_date {cycle.end_date} reached after {len(dates)} of "
                f"{cycle.total_meetings} meetings, clamping total_meetings"
            )
            cycle.total_meetings = len(dates)
            update_fields.append("total_meetings")
        if cycle.end_date is None:
            cycle.end_date = dates[-1]
            update_fields.append("end_date")
        if update_fields:
            cycle.save(update_fields=update_fields + ["updated_at"])

        meetings = Meeting.objects.bulk_create(_build_meetings(cycle, dates))
        logger.info(f"[generate_meetings] Created {len(meetings)} meetings for cycle_id={cycle.id}")

        refresh_cycle_progress(cycle.id)

    return meetings


def create_cycle(actor=None, **fields):
    """
    Create a cycle and its meeting ledger as one atomic unit.
    Returns the saved cycle with refreshed counters.
    """
    fields.setdefault("duration_minutes", settings.DEFAULT_MEETING_DURATION_MINUTES)
    with transaction.atomic():
        cycle = Cycle(created_by=actor if getattr(actor, "pk", None) else None, **fields)
        validate_recurrence(cycle)
        cycle.remaining_meetings = cycle.total_meetings
        cycle.save()
        generate_meetings(cycle)
        cycle.refresh_from_db()
        record_audit(AuditLog.ACTION_CREATE, "cycle", cycle.id, before=None, after=snapshot(cycle), actor=actor)
    return cycle


def generate_missing_meetings(cycle, target_total, end_date=None, actor=None):
    """
    Extend a cycle's ledger to target_total meetings.
    New dates continue after the last existing meeting and must fit before end_date
    (the new end_date when given, which may only move the cycle's end later).
    Returns the number of meetings created.
    """
    try:
        target_total = int(target_total)
    except (TypeError, ValueError):
        raise errors.ValidationError("target_total must be an integer")

    with transaction.atomic():
        cycle = Cycle.objects.select_for_update().get(pk=cycle.pk)
        if cycle.status != Cycle.STATUS_ACTIVE:
            raise errors.InvalidStateError(f"Only active cycles can be extended (cycle is {cycle.status})")

        existing = Meeting.objects.filter(cycle=cycle)
        current = existing.count()
        if target_total < current:
            raise errors.ValidationError(
                f"target_total {target_total} is below the {current} meetings already in the ledger"
            )
        if end_date is not None and cycle.end_date is not None and end_date < cycle.end_date:
            raise errors.ValidationError("end_date can only be moved later")

        missing = target_total - current
        if missing == 0:
            logger.info(f"[generate_missing] cycle_id={cycle.id} already has {current} meetings")
            return 0

        horizon = end_date or cycle.end_date
        last = existing.order_by("-scheduled_date").values_list("scheduled_date", flat=True).first()
        holidays = _holiday_dates(cycle.start_date, horizon)
        dates = plan_dates(
            cycle.start_date, cycle.day_of_week, missing,
            end_date=horizon, holidays=holidays, after=last,
        )
        if len(dates) < missing:
            raise errors.ValidationError(
                f"Only {len(dates)} of {missing} additional meetings fit before end_date {horizon}"
            )

        if end_date is not None and end_date != cycle.end_date:
            cycle.end_date = end_date
            cycle.save(update_fields=["end_date", "updated_at"])

        meetings = Meeting.objects.bulk_create(_build_meetings(cycle, dates))
        logger.info(f"[generate_missing] Created {len(meetings)} meetings for cycle_id={cycle.id}")
        refresh_cycle_progress(cycle.id)

        record_audit(
            AuditLog.ACTION_UPDATE, "cycle", cycle.id,
            before={"meetings": current},
            after={"meetings": current + len(meetings), "end_date": str(cycle.end_date)},
            actor=actor,
        )
    return len(meetings)
