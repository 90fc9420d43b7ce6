"""
Meeting status transitions and single-meeting mutations.
- scheduled -> completed seeds 'present' attendance for active registrations and refreshes counters;
  trial rows recorded beforehand do not block seeding
- setting the current status again is rejected
- completed -> scheduled needs force
- activity/instructor change recomputes payment and profit, keeps revenue
- postpone creates a replacement meeting
"""
from datetime import date, time, timedelta
from decimal import Decimal

from django.test import TestCase

from core import errors
from attendance.models import Attendance
from attendance.services.recording import record_attendance
from cycles.models import Meeting, Holiday
from cycles.services.meetings import (
    add_meeting,
    can_transition,
    postpone_meeting,
    recalculate_meeting,
    transition_meeting,
    update_meeting,
)
from registrations.services import enroll, cancel_registration
from tests.factories import make_cycle, make_instructor, make_student, make_user, FIRST_WEDNESDAY


class TransitionTests(TestCase):
    def setUp(self):
        self.manager = make_user()
        self.cycle = make_cycle(actor=self.manager)
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))
        self.reg_a = enroll(make_student("A"), self.cycle)
        self.reg_b = enroll(make_student("B"), self.cycle)
        cancel_registration(enroll(make_student("C"), self.cycle))

    def test_transition_table(self):
        self.assertTrue(can_transition(Meeting.STATUS_SCHEDULED, Meeting.STATUS_POSTPONED))
        self.assertTrue(can_transition(Meeting.STATUS_POSTPONED, Meeting.STATUS_SCHEDULED))
        self.assertFalse(can_transition(Meeting.STATUS_CANCELLED, Meeting.STATUS_COMPLETED))
        self.assertFalse(can_transition(Meeting.STATUS_COMPLETED, Meeting.STATUS_SCHEDULED))

    def test_complete_seeds_attendance_and_refreshes_counters(self):
        meeting = transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED, actor=self.manager)

        self.assertEqual(meeting.status, Meeting.STATUS_COMPLETED)
        self.assertEqual(meeting.status_updated_by, self.manager)
        self.assertIsNotNone(meeting.status_updated_at)
        seeded = Attendance.objects.filter(meeting=meeting)
        self.assertEqual(
            set(seeded.values_list("registration_id", flat=True)),
            {self.reg_a.id, self.reg_b.id},
        )
        self.assertTrue(all(a.status == Attendance.STATUS_PRESENT for a in seeded))

        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.completed_meetings, 1)
        self.assertEqual(self.cycle.remaining_meetings, 9)

    def test_trial_row_does_not_block_seeding(self):
        trial_student = make_student("Trial")
        record_attendance(self.meetings[0], Attendance.STATUS_PRESENT, student=trial_student)

        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)

        rows = Attendance.objects.filter(meeting=self.meetings[0])
        self.assertEqual(rows.filter(is_trial=True).count(), 1)
        self.assertEqual(
            set(rows.filter(registration__isnull=False).values_list("registration_id", flat=True)),
            {self.reg_a.id, self.reg_b.id},
        )

    def test_seed_skipped_when_registration_attendance_exists(self):
        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
        record_attendance(self.meetings[0], Attendance.STATUS_ABSENT, registration=self.reg_a)
        transition_meeting(self.meetings[0], Meeting.STATUS_SCHEDULED, force=True)

        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)

        rows = Attendance.objects.filter(meeting=self.meetings[0])
        self.assertEqual(rows.count(), 2)
        self.assertEqual(rows.get(registration=self.reg_a).status, Attendance.STATUS_ABSENT)

    def test_same_status_rejected(self):
        with self.assertRaises(errors.InvalidStateError):
            transition_meeting(self.meetings[0], Meeting.STATUS_SCHEDULED)
        transition_meeting(self.meetings[0], Meeting.STATUS_CANCELLED)
        with self.assertRaises(errors.InvalidStateError):
            transition_meeting(self.meetings[0], Meeting.STATUS_CANCELLED, force=True)

    def test_unknown_status_rejected(self):
        with self.assertRaises(errors.ValidationError):
            transition_meeting(self.meetings[0], "done")

    def test_reopen_needs_force(self):
        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
        with self.assertRaises(errors.InvalidStateError):
            transition_meeting(self.meetings[0], Meeting.STATUS_SCHEDULED)

        meeting = transition_meeting(self.meetings[0], Meeting.STATUS_SCHEDULED, force=True)
        self.assertEqual(meeting.status, Meeting.STATUS_SCHEDULED)
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.completed_meetings, 0)
        self.assertEqual(self.cycle.remaining_meetings, 10)

    def test_forced_cancel_keeps_seeded_attendance(self):
        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
        transition_meeting(self.meetings[0], Meeting.STATUS_CANCELLED, force=True)
        self.assertEqual(Attendance.objects.filter(meeting=self.meetings[0]).count(), 2)

    def test_postponed_back_to_scheduled(self):
        transition_meeting(self.meetings[1], Meeting.STATUS_POSTPONED)
        meeting = transition_meeting(self.meetings[1], Meeting.STATUS_SCHEDULED)
        self.assertEqual(meeting.status, Meeting.STATUS_SCHEDULED)


class UpdateMeetingTests(TestCase):
    def setUp(self):
        self.instructor = make_instructor(rate_frontal=Decimal("100.00"), rate_online=Decimal("80.00"))
        self.cycle = make_cycle(instructor=self.instructor)
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))

    def test_activity_change_recomputes_payment_not_revenue(self):
        meeting = update_meeting(self.meetings[0], {"activity_type": "online"})

        self.assertEqual(meeting.activity_type, "online")
        self.assertEqual(meeting.revenue, Decimal("200.00"))
        self.assertEqual(meeting.instructor_payment, Decimal("120.00"))
        self.assertEqual(meeting.profit, Decimal("80.00"))

        untouched = Meeting.objects.get(pk=self.meetings[1].pk)
        self.assertEqual(untouched.activity_type, "frontal")
        self.assertEqual(untouched.instructor_payment, Decimal("150.00"))

    def test_instructor_change_recomputes(self):
        substitute = make_instructor("Sub", rate_frontal=Decimal("60.00"))
        meeting = update_meeting(self.meetings[0], {"instructor": substitute.id})
        self.assertEqual(meeting.instructor, substitute)
        self.assertEqual(meeting.instructor_payment, Decimal("90.00"))
        self.assertEqual(meeting.profit, Decimal("110.00"))

    def test_time_change_recomputes(self):
        meeting = update_meeting(self.meetings[0], {"end_time": time(19, 0)})
        self.assertEqual(meeting.instructor_payment, Decimal("100.00"))

    def test_topic_change_keeps_financials(self):
        meeting = update_meeting(self.meetings[0], {"topic": "Decorators", "notes": "bring laptops"})
        self.assertEqual(meeting.topic, "Decorators")
        self.assertEqual(meeting.instructor_payment, Decimal("150.00"))

    def test_status_and_activity_in_one_call(self):
        meeting = update_meeting(self.meetings[0], {"status": "completed", "activity_type": "online"})
        self.assertEqual(meeting.status, Meeting.STATUS_COMPLETED)
        self.assertEqual(meeting.instructor_payment, Decimal("120.00"))
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.completed_meetings, 1)

    def test_rejected_change_leaves_meeting_untouched(self):
        with self.assertRaises(errors.ValidationError):
            update_meeting(self.meetings[0], {"activity_type": "online", "start_time": time(20, 0)})
        meeting = Meeting.objects.get(pk=self.meetings[0].pk)
        self.assertEqual(meeting.activity_type, "frontal")
        self.assertEqual(meeting.instructor_payment, Decimal("150.00"))

    def test_unknown_fields_and_empty_changes(self):
        with self.assertRaises(errors.ValidationError):
            update_meeting(self.meetings[0], {"revenue": 1})
        with self.assertRaises(errors.ValidationError):
            update_meeting(self.meetings[0], {})

    def test_unknown_instructor_is_not_found(self):
        with self.assertRaises(errors.NotFoundError):
            update_meeting(self.meetings[0], {"instructor": 999999})
        with self.assertRaises(errors.ValidationError):
            update_meeting(self.meetings[0], {"instructor": "abc"})
        meeting = Meeting.objects.get(pk=self.meetings[0].pk)
        self.assertEqual(meeting.instructor, self.instructor)

    def test_recalculate_picks_up_new_rate(self):
        self.instructor.rate_frontal = Decimal("120.00")
        self.instructor.save()
        self.assertEqual(Meeting.objects.get(pk=self.meetings[0].pk).instructor_payment, Decimal("150.00"))

        meeting = recalculate_meeting(self.meetings[0])
        self.assertEqual(meeting.instructor_payment, Decimal("180.00"))
        self.assertEqual(meeting.profit, Decimal("20.00"))
        self.assertEqual(Meeting.objects.get(pk=self.meetings[1].pk).instructor_payment, Decimal("150.00"))


class PostponeTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle()
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))
        self.last_date = FIRST_WEDNESDAY + timedelta(weeks=9)

    def test_default_date_after_last_meeting(self):
        meeting, replacement = postpone_meeting(self.meetings[2])

        self.assertEqual(meeting.status, Meeting.STATUS_POSTPONED)
        self.assertEqual(meeting.rescheduled_to, replacement)
        self.assertEqual(replacement.scheduled_date, self.last_date + timedelta(days=7))
        self.assertEqual(replacement.status, Meeting.STATUS_SCHEDULED)
        self.assertEqual(replacement.start_time, time(18, 0))
        self.assertEqual(replacement.profit, replacement.revenue - replacement.instructor_payment)

        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.total_meetings, 11)
        self.assertEqual(self.cycle.remaining_meetings, 11)

    def test_default_date_skips_holiday(self):
        Holiday.objects.create(date=self.last_date + timedelta(days=7), name="Spring break")
        _, replacement = postpone_meeting(self.meetings[0])
        self.assertEqual(replacement.scheduled_date, self.last_date + timedelta(days=14))

    def test_explicit_date_and_time(self):
        _, replacement = postpone_meeting(
            self.meetings[0], new_date=date(2026, 1, 9), new_start_time=time(10, 0), new_end_time=time(11, 0),
        )
        self.assertEqual(replacement.scheduled_date, date(2026, 1, 9))
        self.assertEqual(replacement.instructor_payment, Decimal("100.00"))

    def test_only_scheduled_can_be_postponed(self):
        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
        with self.assertRaises(errors.InvalidStateError):
            postpone_meeting(self.meetings[0])
        self.assertEqual(Meeting.objects.filter(cycle=self.cycle).count(), 10)

    def test_replaced_meeting_cannot_be_rescheduled_while_replacement_is_live(self):
        meeting, replacement = postpone_meeting(self.meetings[0])

        with self.assertRaises(errors.InvalidStateError):
            update_meeting(meeting, {"status": "scheduled", "scheduled_date": date(2026, 1, 10)})
        with self.assertRaises(errors.InvalidStateError):
            transition_meeting(meeting, Meeting.STATUS_SCHEDULED)

        meeting.refresh_from_db()
        self.assertEqual(meeting.status, Meeting.STATUS_POSTPONED)
        self.assertEqual(meeting.rescheduled_to, replacement)
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.total_meetings, 11)

    def test_reschedule_after_replacement_cancelled_clears_link(self):
        meeting, replacement = postpone_meeting(self.meetings[0])
        transition_meeting(replacement, Meeting.STATUS_CANCELLED)

        meeting = update_meeting(meeting, {"status": "scheduled", "scheduled_date": date(2026, 1, 10)})

        self.assertEqual(meeting.status, Meeting.STATUS_SCHEDULED)
        self.assertIsNone(Meeting.objects.get(pk=meeting.pk).rescheduled_to)
        self.assertEqual(
            Meeting.objects.filter(cycle=self.cycle, status=Meeting.STATUS_SCHEDULED).count(), 10,
        )


class AddMeetingTests(TestCase):
    def test_add_meeting_inherits_cycle_defaults(self):
        cycle = make_cycle(total_meetings=2)
        meeting = add_meeting(cycle, date(2026, 1, 30), topic="Extra session")
        self.assertEqual(meeting.instructor_id, cycle.instructor_id)
        self.assertEqual(meeting.start_time, cycle.start_time)
        self.assertEqual(meeting.instructor_payment, Decimal("150.00"))
        cycle.refresh_from_db()
        self.assertEqual(cycle.total_meetings, 3)

    def test_add_meeting_with_unknown_instructor(self):
        cycle = make_cycle(total_meetings=2)
        with self.assertRaises(errors.NotFoundError):
            add_meeting(cycle, date(2026, 1, 30), instructor=999999)
        self.assertEqual(Meeting.objects.filter(cycle=cycle).count(), 2)
