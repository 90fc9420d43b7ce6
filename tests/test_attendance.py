"""
Attendance recording.
- recording twice for the same pair leaves one row with the second outcome
- enrolled students need a completed meeting; trials may be recorded earlier
- bulk recording reports one outcome per entry
"""
from django.test import TestCase

from core import errors
from attendance.models import Attendance
from attendance.services.recording import (
    attendance_sheet,
    record_attendance,
    record_attendance_bulk,
)
from cycles.models import Meeting
from cycles.services.meetings import transition_meeting
from registrations.services import enroll, cancel_registration
from tests.factories import make_cycle, make_student


class RecordAttendanceTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle(total_meetings=3)
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))
        self.registration = enroll(make_student("Enrolled"), self.cycle)
        self.completed = transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)

    def test_second_call_overwrites(self):
        _, created = record_attendance(self.completed, Attendance.STATUS_ABSENT, registration=self.registration)
        self.assertFalse(created)  # seeded on completion
        attendance, created = record_attendance(
            self.completed, Attendance.STATUS_LATE, registration=self.registration, notes="10 min",
        )
        self.assertFalse(created)
        rows = Attendance.objects.filter(meeting=self.completed, registration=self.registration)
        self.assertEqual(rows.count(), 1)
        self.assertEqual(rows.get().status, Attendance.STATUS_LATE)
        self.assertEqual(rows.get().notes, "10 min")

    def test_registration_needs_completed_meeting(self):
        with self.assertRaises(errors.InvalidStateError):
            record_attendance(self.meetings[1], Attendance.STATUS_PRESENT, registration=self.registration)
        self.assertFalse(Attendance.objects.filter(meeting=self.meetings[1]).exists())

    def test_meeting_status_read_from_database(self):
        # self.meetings[0] still says 'scheduled' in memory; the row is completed
        attendance, _ = record_attendance(self.meetings[0], Attendance.STATUS_ABSENT, registration=self.registration)
        self.assertEqual(attendance.status, Attendance.STATUS_ABSENT)

        transition_meeting(self.meetings[0], Meeting.STATUS_CANCELLED, force=True)
        self.assertEqual(self.completed.status, Meeting.STATUS_COMPLETED)
        with self.assertRaises(errors.InvalidStateError):
            record_attendance(self.completed, Attendance.STATUS_PRESENT, registration=self.registration)
        with self.assertRaises(errors.InvalidStateError):
            record_attendance(self.completed, Attendance.STATUS_PRESENT, student=make_student("Late trial"))

    def test_registration_from_other_cycle_rejected(self):
        other = enroll(make_student("Other"), make_cycle(name="Other cycle", total_meetings=1))
        with self.assertRaises(errors.ValidationError):
            record_attendance(self.completed, Attendance.STATUS_PRESENT, registration=other)

    def test_cancelled_registration_rejected(self):
        cancel_registration(self.registration)
        self.registration.refresh_from_db()
        with self.assertRaises(errors.InvalidStateError):
            record_attendance(self.completed, Attendance.STATUS_ABSENT, registration=self.registration)

    def test_trial_on_scheduled_meeting(self):
        trial = make_student("Trial")
        attendance, created = record_attendance(self.meetings[1], Attendance.STATUS_PRESENT, student=trial)
        self.assertTrue(created)
        self.assertTrue(attendance.is_trial)
        self.assertIsNone(attendance.registration_id)

        record_attendance(self.meetings[1], Attendance.STATUS_ABSENT, student=trial)
        self.assertEqual(Attendance.objects.filter(meeting=self.meetings[1], student=trial).count(), 1)

    def test_trial_rules(self):
        with self.assertRaises(errors.ValidationError):
            record_attendance(self.meetings[1], Attendance.STATUS_PRESENT, student=self.registration.student)
        transition_meeting(self.meetings[2], Meeting.STATUS_CANCELLED)
        with self.assertRaises(errors.InvalidStateError):
            record_attendance(
                Meeting.objects.get(pk=self.meetings[2].pk), Attendance.STATUS_PRESENT, student=make_student("T"),
            )

    def test_target_and_status_validation(self):
        with self.assertRaises(errors.ValidationError):
            record_attendance(self.completed, Attendance.STATUS_PRESENT)
        with self.assertRaises(errors.ValidationError):
            record_attendance(
                self.completed, Attendance.STATUS_PRESENT,
                registration=self.registration, student=self.registration.student,
            )
        with self.assertRaises(errors.ValidationError):
            record_attendance(self.completed, "excused", registration=self.registration)


class BulkAttendanceTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle(total_meetings=2)
        self.reg_a = enroll(make_student("A"), self.cycle)
        self.reg_b = enroll(make_student("B"), self.cycle)
        self.meeting = transition_meeting(
            Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date").first(),
            Meeting.STATUS_COMPLETED,
        )
        self.trial = make_student("Guest")

    def test_mixed_outcomes(self):
        result = record_attendance_bulk(self.meeting, [
            {"registrationId": self.reg_a.id, "status": "absent"},
            {"registrationId": 999999, "status": "present"},
            {"registrationId": self.reg_b.id, "status": "sleeping"},
            {"studentId": self.trial.id, "status": "present"},
        ])

        self.assertEqual(result.status, "partial")
        self.assertEqual(result.applied, 2)
        codes = {o.target_id: o.code for o in result.outcomes}
        self.assertEqual(codes[999999], "not_found")
        self.assertEqual(codes[self.reg_b.id], "validation_error")
        self.assertEqual(Attendance.objects.get(meeting=self.meeting, registration=self.reg_a).status, "absent")
        self.assertEqual(Attendance.objects.get(meeting=self.meeting, registration=self.reg_b).status, "present")

    def test_empty_entries_rejected(self):
        with self.assertRaises(errors.ValidationError):
            record_attendance_bulk(self.meeting, [])

    def test_sheet(self):
        record_attendance(self.meeting, Attendance.STATUS_LATE, registration=self.reg_b)
        record_attendance(self.meeting, Attendance.STATUS_PRESENT, student=self.trial)

        sheet = attendance_sheet(self.meeting)

        self.assertEqual(sheet["meetingId"], self.meeting.id)
        self.assertEqual(len(sheet["students"]), 2)
        self.assertEqual(len(sheet["trials"]), 1)
        self.assertEqual(sheet["counts"]["present"], 2)
        self.assertEqual(sheet["counts"]["late"], 1)
        self.assertEqual(sheet["counts"]["unmarked"], 0)
