"""
Bulk mutation over meetings and registrations.
- every target gets its own outcome; applied targets are never rolled back
- malformed requests fail before anything is touched
"""
from decimal import Decimal

from django.test import TestCase, override_settings

from core import errors
from core.results import RESULT_ALL_APPLIED, RESULT_NONE_APPLIED, RESULT_PARTIAL
from cycles.models import Meeting
from cycles.services.bulk import (
    bulk_recalculate_meetings,
    bulk_update_meetings,
    bulk_update_registrations,
)
from cycles.services.meetings import transition_meeting
from registrations.models import Registration
from registrations.services import enroll
from tests.factories import make_cycle, make_student


class BulkMeetingsTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle(total_meetings=4)
        self.other_cycle = make_cycle(name="Other", total_meetings=1)
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))
        self.foreign = Meeting.objects.get(cycle=self.other_cycle)

    def test_three_independent_outcomes(self):
        a, c = self.meetings[0], self.meetings[1]
        transition_meeting(c, Meeting.STATUS_CANCELLED)

        result = bulk_update_meetings(
            [a.id, self.foreign.id, c.id], {"status": Meeting.STATUS_CANCELLED}, cycle=self.cycle,
        )

        self.assertEqual(result.status, RESULT_PARTIAL)
        outcomes = {o.target_id: o for o in result.outcomes}
        self.assertTrue(outcomes[a.id].ok)
        self.assertEqual(outcomes[self.foreign.id].code, "validation_error")
        self.assertEqual(outcomes[c.id].code, "invalid_state")
        self.assertEqual(Meeting.objects.get(pk=a.id).status, Meeting.STATUS_CANCELLED)
        self.assertEqual(Meeting.objects.get(pk=self.foreign.id).status, Meeting.STATUS_SCHEDULED)

        data = result.as_dict()
        self.assertEqual(data["applied"], 1)
        self.assertEqual(data["failed"], 2)
        self.assertEqual([r["id"] for r in data["results"]], [a.id, self.foreign.id, c.id])

    def test_all_applied_refreshes_counters(self):
        ids = [m.id for m in self.meetings[:3]]
        result = bulk_update_meetings(ids, {"status": Meeting.STATUS_COMPLETED})
        self.assertEqual(result.status, RESULT_ALL_APPLIED)
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.completed_meetings, 3)
        self.assertEqual(self.cycle.remaining_meetings, 1)

    def test_none_applied(self):
        result = bulk_update_meetings([999998, 999999], {"topic": "x"})
        self.assertEqual(result.status, RESULT_NONE_APPLIED)
        self.assertTrue(all(o.code == "not_found" for o in result.outcomes))

    def test_activity_change_per_meeting(self):
        ids = [m.id for m in self.meetings[:2]]
        bulk_update_meetings(ids, {"activity_type": "online"})
        for meeting in Meeting.objects.filter(id__in=ids):
            self.assertEqual(meeting.activity_type, "online")
            self.assertEqual(meeting.revenue, Decimal("200.00"))
        self.assertEqual(Meeting.objects.get(pk=self.meetings[2].pk).activity_type, "frontal")

    def test_duplicates_applied_once(self):
        meeting = self.meetings[0]
        result = bulk_update_meetings([meeting.id, meeting.id], {"status": Meeting.STATUS_COMPLETED})
        self.assertEqual(len(result.outcomes), 1)
        self.assertEqual(result.status, RESULT_ALL_APPLIED)

    def test_malformed_requests(self):
        with self.assertRaises(errors.ValidationError):
            bulk_update_meetings([], {"status": "completed"})
        with self.assertRaises(errors.ValidationError):
            bulk_update_meetings([self.meetings[0].id], {})
        with override_settings(BULK_MAX_TARGETS=2):
            with self.assertRaises(errors.ValidationError):
                bulk_update_meetings([m.id for m in self.meetings[:3]], {"topic": "x"})
        self.assertFalse(Meeting.objects.exclude(topic="").exists())

    def test_bulk_recalculate(self):
        instructor = self.cycle.instructor
        instructor.rate_frontal = Decimal("200.00")
        instructor.save()
        result = bulk_recalculate_meetings([self.meetings[0].id, self.foreign.id], cycle=self.cycle)
        self.assertEqual(result.applied, 1)
        self.assertEqual(Meeting.objects.get(pk=self.meetings[0].pk).instructor_payment, Decimal("300.00"))
        self.assertEqual(Meeting.objects.get(pk=self.meetings[1].pk).instructor_payment, Decimal("150.00"))


class BulkRegistrationsTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle(total_meetings=2)
        self.regs = [enroll(make_student(f"S{i}"), self.cycle) for i in range(3)]

    def test_payment_status_for_selection(self):
        ids = [r.id for r in self.regs[:2]]
        result = bulk_update_registrations(ids, {"payment_status": Registration.PAYMENT_PAID})
        self.assertEqual(result.status, RESULT_ALL_APPLIED)
        self.assertEqual(
            Registration.objects.filter(payment_status=Registration.PAYMENT_PAID).count(), 2,
        )

    def test_cancel_partial(self):
        self.regs[0].status = Registration.STATUS_CANCELLED
        self.regs[0].save()
        result = bulk_update_registrations(
            [r.id for r in self.regs], {"status": Registration.STATUS_CANCELLED}, cycle=self.cycle,
        )
        self.assertEqual(result.status, RESULT_PARTIAL)
        self.assertEqual(result.failures[0].target_id, self.regs[0].id)
        self.assertEqual(Registration.objects.filter(status=Registration.STATUS_CANCELLED).count(), 3)
