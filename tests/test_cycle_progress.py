"""
Cycle counters and status follow the meeting ledger.
- counters always match a re-scan of the ledger
- all meetings settled -> cycle completed, registrations completed, cycle.completed event
- drifted counters are repaired by rebuild_from_ledger / sync_progress
- cancel and delete rules
"""
from datetime import time
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings

from core import errors
from cycles.models import Cycle, Meeting
from cycles.services.meetings import postpone_meeting, transition_meeting
from cycles.services.progress import (
    cancel_cycle,
    delete_cycle,
    progress_snapshot,
    rebuild_from_ledger,
)
from registrations.models import Registration
from registrations.services import enroll
from tests.doubles import RecordingDispatcher
from tests.factories import make_cycle, make_student, FIRST_WEDNESDAY, WEDNESDAY


def assert_ledger_consistent(test, cycle):
    cycle.refresh_from_db()
    counts = progress_snapshot(cycle)
    test.assertEqual(
        counts["completed"] + counts["cancelled"] + counts["postponed"] + counts["scheduled"],
        cycle.total_meetings,
    )
    test.assertEqual(cycle.completed_meetings, counts["completed"])
    test.assertEqual(cycle.remaining_meetings, cycle.total_meetings - cycle.completed_meetings)


@override_settings(NOTIFICATION_DISPATCHER="tests.doubles.RecordingDispatcher")
class CycleCompletionTests(TestCase):
    def setUp(self):
        RecordingDispatcher.events = []
        self.cycle = make_cycle(total_meetings=3)
        self.meetings = list(Meeting.objects.filter(cycle=self.cycle).order_by("scheduled_date"))
        self.registration = enroll(make_student(), self.cycle)

    def test_counters_track_every_change(self):
        transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
        assert_ledger_consistent(self, self.cycle)
        transition_meeting(self.meetings[1], Meeting.STATUS_CANCELLED)
        assert_ledger_consistent(self, self.cycle)
        postpone_meeting(self.meetings[2])
        assert_ledger_consistent(self, self.cycle)
        self.assertEqual(self.cycle.total_meetings, 4)
        self.assertEqual(self.cycle.status, Cycle.STATUS_ACTIVE)

    def test_all_settled_completes_cycle(self):
        with self.captureOnCommitCallbacks(execute=True):
            transition_meeting(self.meetings[0], Meeting.STATUS_COMPLETED)
            transition_meeting(self.meetings[1], Meeting.STATUS_CANCELLED)
            transition_meeting(self.meetings[2], Meeting.STATUS_COMPLETED)

        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.status, Cycle.STATUS_COMPLETED)
        self.assertEqual(self.cycle.completed_meetings, 2)
        self.assertEqual(self.cycle.remaining_meetings, 1)
        self.registration.refresh_from_db()
        self.assertEqual(self.registration.status, Registration.STATUS_COMPLETED)
        self.assertEqual(RecordingDispatcher.types().count("cycle.completed"), 1)

    def test_postponed_with_replacement_counts_as_settled(self):
        _, replacement = postpone_meeting(self.meetings[2])
        for meeting in self.meetings[:2] + [replacement]:
            transition_meeting(meeting, Meeting.STATUS_COMPLETED)
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.status, Cycle.STATUS_COMPLETED)

    def test_reopening_a_meeting_reactivates_cycle(self):
        for meeting in self.meetings:
            transition_meeting(meeting, Meeting.STATUS_COMPLETED)
        transition_meeting(self.meetings[2], Meeting.STATUS_SCHEDULED, force=True)
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.status, Cycle.STATUS_ACTIVE)
        self.assertEqual(self.cycle.completed_meetings, 2)


class RebuildTests(TestCase):
    def setUp(self):
        self.cycle = make_cycle()
        transition_meeting(Meeting.objects.filter(cycle=self.cycle).first(), Meeting.STATUS_COMPLETED)

    def test_rebuild_repairs_drift(self):
        Cycle.objects.filter(pk=self.cycle.pk).update(completed_meetings=7, remaining_meetings=0, total_meetings=3)
        report = rebuild_from_ledger(self.cycle.pk)
        self.assertTrue(report["changed"])
        self.assertEqual(report["before"]["completed_meetings"], 7)
        self.assertEqual(report["after"]["completed_meetings"], 1)
        self.assertEqual(report["after"]["total_meetings"], 10)
        self.assertEqual(report["after"]["remaining_meetings"], 9)
        assert_ledger_consistent(self, self.cycle)

    def test_rebuild_without_drift(self):
        self.assertFalse(rebuild_from_ledger(self.cycle.pk)["changed"])

    def test_rebuild_unknown_cycle(self):
        with self.assertRaises(errors.NotFoundError):
            rebuild_from_ledger(999999)

    def test_sync_progress_command(self):
        Cycle.objects.filter(pk=self.cycle.pk).update(completed_meetings=5)

        out = StringIO()
        call_command("sync_progress", stdout=out)
        self.assertIn("1 cycles drifted", out.getvalue())
        self.assertEqual(Cycle.objects.get(pk=self.cycle.pk).completed_meetings, 5)

        out = StringIO()
        call_command("sync_progress", "--apply", stdout=out)
        self.assertIn("Fixed 1 cycles", out.getvalue())
        self.assertEqual(Cycle.objects.get(pk=self.cycle.pk).completed_meetings, 1)


class CancelDeleteTests(TestCase):
    def test_cancel_keeps_meetings(self):
        cycle = make_cycle(total_meetings=2)
        cycle = cancel_cycle(cycle, reason="Instructor left")
        self.assertEqual(cycle.status, Cycle.STATUS_CANCELLED)
        self.assertEqual(cycle.cancellation_reason, "Instructor left")
        self.assertIsNotNone(cycle.cancelled_at)
        self.assertEqual(
            Meeting.objects.filter(cycle=cycle, status=Meeting.STATUS_SCHEDULED).count(), 2,
        )
        with self.assertRaises(errors.InvalidStateError):
            cancel_cycle(cycle)

    def test_cancelled_cycle_not_auto_completed(self):
        cycle = make_cycle(total_meetings=1)
        cancel_cycle(cycle)
        transition_meeting(Meeting.objects.get(cycle=cycle), Meeting.STATUS_COMPLETED)
        cycle.refresh_from_db()
        self.assertEqual(cycle.status, Cycle.STATUS_CANCELLED)
        self.assertEqual(cycle.completed_meetings, 1)

    def test_delete_refused_with_meetings(self):
        cycle = make_cycle(total_meetings=1)
        with self.assertRaises(errors.InvalidStateError):
            delete_cycle(cycle)
        self.assertTrue(Cycle.objects.filter(pk=cycle.pk).exists())

    def test_delete_empty_cycle(self):
        cycle = Cycle.objects.create(
            name="Draft",
            day_of_week=WEDNESDAY,
            start_time=time(18, 0),
            end_time=time(19, 30),
            start_date=FIRST_WEDNESDAY,
            total_meetings=0,
        )
        delete_cycle(cycle)
        self.assertFalse(Cycle.objects.filter(pk=cycle.pk).exists())
