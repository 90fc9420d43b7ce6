"""
Per-meeting revenue, instructor payment and profit.
- rate lookup falls back to the frontal rate
- per-student / fixed / private revenue
- envelope budget applies to the cycle instructor only
- profit == revenue - instructor_payment, negative allowed
"""
from datetime import time
from decimal import Decimal

from django.test import TestCase

from cycles.models import Cycle, Meeting
from cycles.services.financials import (
    compute_revenue,
    meeting_duration_minutes,
    money,
    stamp_financials,
)
from instructors.rates import hourly_rate
from registrations.services import enroll, cancel_registration
from tests.factories import make_cycle, make_instructor, make_student


class HourlyRateTests(TestCase):
    def test_fallback_to_frontal(self):
        instructor = make_instructor(rate_frontal=Decimal("100.00"))
        self.assertEqual(hourly_rate(instructor, "online"), Decimal("100.00"))
        self.assertEqual(hourly_rate(instructor, "private_lesson"), Decimal("100.00"))
        self.assertEqual(hourly_rate(instructor, "preparation"), Decimal("100.00"))

    def test_specific_rate_wins(self):
        instructor = make_instructor(rate_frontal=Decimal("100.00"), rate_online=Decimal("80.00"))
        self.assertEqual(hourly_rate(instructor, "online"), Decimal("80.00"))
        self.assertEqual(hourly_rate(instructor, "frontal"), Decimal("100.00"))

    def test_missing_rates_and_instructor(self):
        instructor = make_instructor(rate_frontal=None)
        self.assertEqual(hourly_rate(instructor, "online"), Decimal("0"))
        self.assertEqual(hourly_rate(None, "frontal"), Decimal("0"))


class MeetingFinancialsTests(TestCase):
    def test_generated_meetings_are_stamped(self):
        cycle = make_cycle()
        for meeting in Meeting.objects.filter(cycle=cycle):
            # 50 * 4 students; 100/h * 90 min
            self.assertEqual(meeting.revenue, Decimal("200.00"))
            self.assertEqual(meeting.instructor_payment, Decimal("150.00"))
            self.assertEqual(meeting.profit, Decimal("50.00"))

    def test_negative_profit_is_kept(self):
        cycle = make_cycle(price_per_student=Decimal("10.00"), student_count=1)
        meeting = Meeting.objects.filter(cycle=cycle).first()
        self.assertEqual(meeting.profit, Decimal("-140.00"))
        self.assertEqual(meeting.profit, meeting.revenue - meeting.instructor_payment)

    def test_profit_identity_holds_for_every_meeting(self):
        make_cycle(instructor_total_budget=Decimal("333.33"), total_meetings=7)
        make_cycle(pricing_mode=Cycle.PRICING_FIXED, meeting_revenue=Decimal("99.99"))
        for meeting in Meeting.objects.all():
            self.assertEqual(meeting.profit, meeting.revenue - meeting.instructor_payment)

    def test_per_student_counts_active_registrations(self):
        cycle = make_cycle(student_count=None)
        enroll(make_student("A"), cycle)
        enroll(make_student("B"), cycle)
        cancelled = enroll(make_student("C"), cycle)
        cancel_registration(cancelled)
        self.assertEqual(compute_revenue(cycle), Decimal("100.00"))

    def test_fixed_revenue(self):
        cycle = make_cycle(pricing_mode=Cycle.PRICING_FIXED, meeting_revenue=Decimal("300.00"))
        self.assertEqual(compute_revenue(cycle), Decimal("300.00"))
        self.assertEqual(Meeting.objects.filter(cycle=cycle).first().revenue, Decimal("300.00"))

    def test_private_revenue_spreads_amounts(self):
        cycle = make_cycle(pricing_mode=Cycle.PRICING_PRIVATE, price_per_student=None)
        enroll(make_student("A"), cycle, amount=Decimal("1000.00"))
        enroll(make_student("B"), cycle, amount=Decimal("500.00"))
        self.assertEqual(compute_revenue(cycle), Decimal("150.00"))

    def test_envelope_budget_for_cycle_instructor(self):
        cycle = make_cycle(instructor_total_budget=Decimal("1000.00"))
        meeting = Meeting.objects.filter(cycle=cycle).first()
        self.assertEqual(meeting.instructor_payment, Decimal("100.00"))
        self.assertEqual(meeting.profit, Decimal("100.00"))

        substitute = make_instructor("Sub", rate_frontal=Decimal("60.00"))
        meeting.instructor = substitute
        stamp_financials(meeting)
        self.assertEqual(meeting.instructor_payment, Decimal("90.00"))

    def test_duration_falls_back_to_cycle(self):
        cycle = make_cycle(duration_minutes=45)
        meeting = Meeting(cycle=cycle, scheduled_date=cycle.start_date)
        self.assertEqual(meeting_duration_minutes(meeting, cycle), 45)
        meeting.start_time, meeting.end_time = time(10, 0), time(12, 0)
        self.assertEqual(meeting_duration_minutes(meeting, cycle), 120)

    def test_money_rounds_half_up(self):
        self.assertEqual(money(Decimal("0.005")), Decimal("0.01"))
        self.assertEqual(money(None), Decimal("0.00"))
