"""
Attendance recording: one outcome per (meeting, registration), or per (meeting, student) for trials.

- Enrolled students are recorded against their Registration, and only once the meeting is completed.
- Trial attendees (no registration) are recorded by Student on any meeting that is not cancelled.
- Recording again overwrites the existing row (update_or_create).
- On meeting completion the state machine seeds 'present' for every active registration,
  unless registration attendance already exists for that meeting.
"""
import logging

from django.db import IntegrityError, transaction

from core import errors
from core.results import BulkResult
from attendance.models import Attendance
from cycles.models import Meeting
from registrations.models import Registration
from students.models import Student
from audit.models import AuditLog
from audit.recorder import record_audit, snapshot

logger = logging.getLogger(__name__)

VALID_STATUSES = {choice for choice, _ in Attendance.STATUS_CHOICES}


def record_attendance(meeting, status, registration=None, student=None, notes=None, actor=None):
    """
    Record (create or overwrite) one attendance outcome.
    Exactly one of registration / student must be given; a student target is a trial record.
    Returns (attendance, created).
    """
    if status not in VALID_STATUSES:
        raise errors.ValidationError(f"Invalid attendance status '{status}'")
    if (registration is None) == (student is None):
        raise errors.ValidationError("Provide exactly one of registration or student")

    recorded_by = actor if getattr(actor, "pk", None) else None

    with transaction.atomic():
        try:
            meeting = Meeting.objects.select_for_update().get(pk=meeting.pk)
        except Meeting.DoesNotExist:
            raise errors.NotFoundError(f"Meeting {meeting.pk} not found")

        if registration is not None:
            if registration.cycle_id != meeting.cycle_id:
                raise errors.ValidationError("Registration does not belong to the meeting's cycle")
            if registration.status == Registration.STATUS_CANCELLED:
                raise errors.InvalidStateError("Registration is cancelled")
            if meeting.status != Meeting.STATUS_COMPLETED:
                raise errors.InvalidStateError(
                    f"Attendance can only be recorded for completed meetings (meeting is {meeting.status})"
                )
            lookup = {"meeting": meeting, "registration": registration}
            defaults = {"student_id": registration.student_id, "status": status, "is_trial": False,
                        "recorded_by": recorded_by}
        else:
            if meeting.status == Meeting.STATUS_CANCELLED:
                raise errors.InvalidStateError("Cannot record attendance for a cancelled meeting")
            enrolled = Registration.objects.filter(
                cycle_id=meeting.cycle_id,
                student=student,
                status__in=Registration.ACTIVE_STATUSES,
            ).exists()
            if enrolled:
                raise errors.ValidationError(
                    "Student is enrolled in this cycle; record attendance against the registration"
                )
            lookup = {"meeting": meeting, "student": student, "registration": None}
            defaults = {"status": status, "is_trial": True, "recorded_by": recorded_by}

        if notes is not None:
            defaults["notes"] = notes

        existing = Attendance.objects.filter(**lookup).first()
        before = snapshot(existing)
        try:
            with transaction.atomic():
                attendance, created = Attendance.objects.update_or_create(defaults=defaults, **lookup)
        except IntegrityError:
            raise errors.ConflictError("Attendance was recorded concurrently, retry")

        logger.info(
            f"[attendance] meeting_id={meeting.id} "
            f"{'registration_id=' + str(registration.id) if registration else 'trial student_id=' + str(student.id)} "
            f"status={status} created={created}"
        )
        record_audit(
            AuditLog.ACTION_CREATE if created else AuditLog.ACTION_UPDATE,
            "attendance", attendance.id,
            before=before, after=snapshot(attendance), actor=actor,
        )
    return attendance, created


def seed_attendance(meeting, actor=None):
    """
    Mark every active registration 'present' for a just-completed meeting.
    No-op (returns 0) when the meeting already has registration attendance; trial rows
    recorded before completion do not count.
    """
    if Attendance.objects.filter(meeting=meeting, registration__isnull=False).exists():
        logger.info(f"[seed_attendance] meeting_id={meeting.id} already has registration attendance, skipping")
        return 0

    registrations = Registration.objects.filter(
        cycle_id=meeting.cycle_id,
        status__in=Registration.ACTIVE_STATUSES,
    ).only("id", "student_id")
    recorded_by = actor if getattr(actor, "pk", None) else None
    rows = [
        Attendance(
            meeting=meeting,
            registration=reg,
            student_id=reg.student_id,
            status=Attendance.STATUS_PRESENT,
            recorded_by=recorded_by,
        )
        for reg in registrations
    ]
    if rows:
        Attendance.objects.bulk_create(rows)
    logger.info(f"[seed_attendance] meeting_id={meeting.id}: seeded {len(rows)} present records")
    return len(rows)


def record_attendance_bulk(meeting, entries, actor=None):
    """
    entries: [{"registrationId" | "studentId", "status", "notes"?}, ...]
    Each entry is applied in its own savepoint; returns a BulkResult keyed by registration/student id.
    """
    if not entries:
        raise errors.ValidationError("entries must be a non-empty list")

    result = BulkResult()
    for entry in entries:
        registration_id = entry.get("registrationId")
        student_id = entry.get("studentId")
        target_id = registration_id or student_id
        try:
            with transaction.atomic():
                registration = student = None
                if registration_id:
                    try:
                        registration = Registration.objects.get(pk=registration_id)
                    except (Registration.DoesNotExist, ValueError, TypeError):
                        raise errors.NotFoundError(f"Registration {registration_id} not found")
                elif student_id:
                    try:
                        student = Student.objects.get(pk=student_id, is_deleted=False)
                    except (Student.DoesNotExist, ValueError, TypeError):
                        raise errors.NotFoundError(f"Student {student_id} not found")
                record_attendance(
                    meeting,
                    entry.get("status"),
                    registration=registration,
                    student=student,
                    notes=entry.get("notes"),
                    actor=actor,
                )
        except errors.LedgerError as e:
            result.failed(target_id, e.code, e.detail)
            continue
        result.succeeded(target_id)

    logger.info(
        f"[attendance_bulk] meeting_id={meeting.id}: applied={result.applied} failed={len(result.failures)}"
    )
    return result


def attendance_sheet(meeting):
    """
    Attendance view for one meeting: every active registration with its outcome (or None),
    trial rows, and counts per outcome.
    """
    records = {
        a.registration_id: a
        for a in Attendance.objects.filter(meeting=meeting, registration__isnull=False)
    }
    registrations = Registration.objects.filter(
        cycle_id=meeting.cycle_id,
    ).exclude(status=Registration.STATUS_CANCELLED).select_related("student")

    rows = []
    for reg in registrations:
        if not reg.is_active and reg.id not in records:
            continue
        record = records.get(reg.id)
        rows.append({
            "registrationId": reg.id,
            "studentId": reg.student_id,
            "studentName": reg.student.full_name,
            "status": record.status if record else None,
            "notes": record.notes if record else "",
        })

    trials = [
        {
            "studentId": a.student_id,
            "studentName": a.student.full_name,
            "status": a.status,
            "notes": a.notes,
        }
        for a in Attendance.objects.filter(meeting=meeting, registration__isnull=True).select_related("student")
    ]

    counts = {status: 0 for status in VALID_STATUSES}
    counts["unmarked"] = 0
    for row in rows + trials:
        if row["status"] is None:
            counts["unmarked"] += 1
        else:
            counts[row["status"]] += 1

    return {
        "meetingId": meeting.id,
        "date": meeting.scheduled_date.isoformat(),
        "meetingStatus": meeting.status,
        "students": rows,
        "trials": trials,
        "counts": counts,
    }
