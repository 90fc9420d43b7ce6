"""
Cycle (recurring weekly class series), its Meeting ledger, and the Holiday calendar.
A Cycle exclusively owns its Meetings. Meetings are never deleted; a cycle with meetings cannot be deleted.
Counters on Cycle are a cache of the ledger, recomputed by cycles.services.progress.
"""
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from accounts.models import User

ACTIVITY_FRONTAL = "frontal"
ACTIVITY_ONLINE = "online"
ACTIVITY_PRIVATE_LESSON = "private_lesson"
ACTIVITY_PREPARATION = "preparation"

CYCLE_ACTIVITY_CHOICES = [
    (ACTIVITY_FRONTAL, "Frontal"),
    (ACTIVITY_ONLINE, "Online"),
    (ACTIVITY_PRIVATE_LESSON, "Private lesson"),
]

MEETING_ACTIVITY_CHOICES = CYCLE_ACTIVITY_CHOICES + [
    (ACTIVITY_PREPARATION, "Preparation"),
]

WEEKDAY_CHOICES = [
    (0, "Monday"),
    (1, "Tuesday"),
    (2, "Wednesday"),
    (3, "Thursday"),
    (4, "Friday"),
    (5, "Saturday"),
    (6, "Sunday"),
]


class Holiday(models.Model):
    """Calendar date on which no meeting is generated."""
    date = models.DateField(unique=True)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "holidays"
        verbose_name = "Holiday"
        verbose_name_plural = "Holidays"
        ordering = ["date"]

    def __str__(self):
        return f"{self.date} {self.name}"


class Cycle(models.Model):
    """
    Recurring class series: one meeting per week on day_of_week (0=Mon..6=Sun).
    total/completed/remaining are derived from the meeting ledger.
    """
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PRICING_PER_STUDENT = "per_student"
    PRICING_FIXED = "fixed"
    PRICING_PRIVATE = "private"

    PRICING_CHOICES = [
        (PRICING_PER_STUDENT, "Per student"),
        (PRICING_FIXED, "Fixed per meeting"),
        (PRICING_PRIVATE, "Private (registration amounts)"),
    ]

    name = models.CharField(max_length=255)
    course = models.ForeignKey(
        "core.Course",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cycles",
    )
    branch = models.ForeignKey(
        "core.Branch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cycles",
    )
    instructor = models.ForeignKey(
        "instructors.Instructor",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cycles",
    )

    # Pricing
    pricing_mode = models.CharField(max_length=20, choices=PRICING_CHOICES, default=PRICING_PER_STUDENT)
    price_per_student = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    meeting_revenue = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        help_text="Revenue per meeting in fixed pricing mode",
    )
    student_count = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Overrides the active registration count in per-student pricing",
    )
    revenue_includes_vat = models.BooleanField(default=False)
    instructor_total_budget = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        help_text="Envelope budget split evenly over total_meetings for the cycle instructor",
    )

    # Recurrence
    day_of_week = models.PositiveSmallIntegerField(
        choices=WEEKDAY_CHOICES,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    activity_type = models.CharField(max_length=20, choices=CYCLE_ACTIVITY_CHOICES, default=ACTIVITY_FRONTAL)

    # Progress (cache of the meeting ledger)
    total_meetings = models.PositiveIntegerField()
    completed_meetings = models.PositiveIntegerField(default=0)
    remaining_meetings = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_cycles",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cycles"
        verbose_name = "Cycle"
        verbose_name_plural = "Cycles"
        ordering = ["-start_date", "name"]
        indexes = [
            models.Index(fields=["status", "start_date"], name="cycles_status_start_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_day_of_week_display()} {self.start_time:%H:%M})"


class Meeting(models.Model):
    """
    One dated occurrence of a Cycle.
    revenue / instructor_payment / profit are a snapshot taken at the last financial computation.
    """
    STATUS_SCHEDULED = "scheduled"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_POSTPONED = "postponed"

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_POSTPONED, "Postponed"),
    ]

    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    cycle = models.ForeignKey(Cycle, on_delete=models.PROTECT, related_name="meetings")
    scheduled_date = models.DateField(db_index=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    activity_type = models.CharField(max_length=20, choices=MEETING_ACTIVITY_CHOICES, default=ACTIVITY_FRONTAL)
    instructor = models.ForeignKey(
        "instructors.Instructor",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="meetings",
    )

    revenue = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    instructor_payment = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    profit = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    topic = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    rescheduled_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rescheduled_from",
    )
    status_updated_at = models.DateTimeField(null=True, blank=True)
    status_updated_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="meeting_status_updates",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "meetings"
        verbose_name = "Meeting"
        verbose_name_plural = "Meetings"
        ordering = ["scheduled_date", "start_time", "id"]
        indexes = [
            models.Index(fields=["cycle", "status"], name="meetings_cycle_status_idx"),
            models.Index(fields=["cycle", "scheduled_date"], name="meetings_cycle_date_idx"),
        ]

    def __str__(self):
        return f"{self.cycle.name} - {self.scheduled_date} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES
