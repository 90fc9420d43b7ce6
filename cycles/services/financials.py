"""
Financial calculator: per-meeting revenue, instructor payment and profit.

- instructor_payment = hourly rate (by activity type) * duration_minutes / 60, or the
  envelope share (instructor_total_budget / total_meetings) for the cycle's own instructor
- revenue depends on the cycle pricing mode:
    per_student: price_per_student * (student_count override or active registrations)
    fixed:       meeting_revenue
    private:     sum of active registration amounts / total_meetings
- profit = revenue - instructor_payment (may be negative)
All money is quantized to 0.01, ROUND_HALF_UP.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Sum

from cycles.models import Cycle
from instructors.rates import hourly_rate
from registrations.models import Registration

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
MINUTES_PER_DAY = 24 * 60
FINANCIAL_FIELDS = ["revenue", "instructor_payment", "profit"]


def money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def meeting_duration_minutes(meeting, cycle=None) -> int:
    """
    Minutes between the meeting's start and end time when that is a sane value (0 < m < 24h),
    otherwise the cycle's duration_minutes.
    """
    cycle = cycle or meeting.cycle
    start, end = meeting.start_time, meeting.end_time
    if start and end:
        delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
        minutes = int(delta.total_seconds() // 60)
        if 0 < minutes < MINUTES_PER_DAY:
            return minutes
    return cycle.duration_minutes or settings.DEFAULT_MEETING_DURATION_MINUTES


def compute_instructor_payment(instructor, activity_type, duration_minutes) -> Decimal:
    rate = hourly_rate(instructor, activity_type)
    if rate <= 0 or not duration_minutes:
        return Decimal("0.00")
    return money(rate * Decimal(duration_minutes) / Decimal(60))


def envelope_payment(cycle, instructor):
    """
    Share of the cycle's envelope budget, or None when the envelope does not apply
    (no budget, or the meeting is taught by someone other than the cycle instructor).
    """
    if cycle.instructor_total_budget is None or instructor is None:
        return None
    if instructor.pk != cycle.instructor_id or not cycle.total_meetings:
        return None
    return money(Decimal(cycle.instructor_total_budget) / Decimal(cycle.total_meetings))


def active_registrations(cycle):
    return Registration.objects.filter(cycle=cycle, status__in=Registration.ACTIVE_STATUSES)


def compute_revenue(cycle) -> Decimal:
    """Per-meeting revenue for the cycle at the moment of computation."""
    if cycle.pricing_mode == Cycle.PRICING_FIXED:
        return money(cycle.meeting_revenue)

    if cycle.pricing_mode == Cycle.PRICING_PRIVATE:
        if not cycle.total_meetings:
            return Decimal("0.00")
        total = active_registrations(cycle).aggregate(total=Sum("amount"))["total"] or Decimal("0")
        return money(Decimal(total) / Decimal(cycle.total_meetings))

    if cycle.price_per_student is None:
        return Decimal("0.00")
    if cycle.student_count is not None:
        count = cycle.student_count
    else:
        count = active_registrations(cycle).count()
    return money(Decimal(cycle.price_per_student) * count)


def compute_profit(revenue, instructor_payment) -> Decimal:
    return money(revenue) - money(instructor_payment)


def stamp_financials(meeting, cycle=None, revenue=None):
    """
    Set revenue, instructor_payment and profit on an (unsaved or saved) meeting in memory.
    revenue may be precomputed by the caller when stamping a batch of the same cycle.
    """
    cycle = cycle or meeting.cycle
    if revenue is None:
        revenue = compute_revenue(cycle)

    payment = envelope_payment(cycle, meeting.instructor)
    if payment is None:
        duration = meeting_duration_minutes(meeting, cycle)
        payment = compute_instructor_payment(meeting.instructor, meeting.activity_type, duration)

    meeting.revenue = money(revenue)
    meeting.instructor_payment = payment
    meeting.profit = compute_profit(meeting.revenue, payment)
    return meeting

