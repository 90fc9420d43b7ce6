"""
Attendance: one outcome per (meeting, registration), or per (meeting, student) for trial attendees.
Recording again overwrites the existing row.
"""
from django.db import models
from accounts.models import User


class Attendance(models.Model):
    STATUS_PRESENT = "present"
    STATUS_ABSENT = "absent"
    STATUS_LATE = "late"

    STATUS_CHOICES = [
        (STATUS_PRESENT, "Present"),
        (STATUS_ABSENT, "Absent"),
        (STATUS_LATE, "Late"),
    ]

    meeting = models.ForeignKey(
        "cycles.Meeting",
        on_delete=models.CASCADE,
        related_name="attendance",
    )
    # Null for trial attendees (not enrolled)
    registration = models.ForeignKey(
        "registrations.Registration",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="attendance",
    )
    student = models.ForeignKey(
        "students.Student",
        on_delete=models.PROTECT,
        related_name="attendance",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_index=True)
    is_trial = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")
    recorded_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_attendance",
    )
    recorded_at = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "attendance"
        verbose_name = "Attendance"
        verbose_name_plural = "Attendance"
        ordering = ["meeting_id", "student__full_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["meeting", "registration"],
                condition=models.Q(registration__isnull=False),
                name="unique_attendance_per_meeting_registration",
            ),
            models.UniqueConstraint(
                fields=["meeting", "student"],
                condition=models.Q(registration__isnull=True),
                name="unique_trial_attendance_per_meeting_student",
            ),
        ]
        indexes = [
            models.Index(fields=["meeting", "status"], name="attendance_meeting_status_idx"),
        ]

    def __str__(self):
        return f"{self.student} - {self.meeting.scheduled_date} - {self.status}"
