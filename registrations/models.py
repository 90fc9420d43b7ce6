"""
Registration: a Student's enrollment in one Cycle.
Enrollment status and payment status are independent axes.
At most one non-cancelled registration per (student, cycle).
"""
from django.db import models
from django.utils import timezone


class Registration(models.Model):
    STATUS_REGISTERED = "registered"
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_REGISTERED, "Registered"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses that count as "enrolled" for revenue, attendance seeding and duplicate checks
    ACTIVE_STATUSES = (STATUS_REGISTERED, STATUS_ACTIVE)

    PAYMENT_UNPAID = "unpaid"
    PAYMENT_PARTIAL = "partial"
    PAYMENT_PAID = "paid"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_UNPAID, "Unpaid"),
        (PAYMENT_PARTIAL, "Partial"),
        (PAYMENT_PAID, "Paid"),
    ]

    METHOD_CREDIT = "credit"
    METHOD_TRANSFER = "transfer"
    METHOD_CASH = "cash"

    PAYMENT_METHOD_CHOICES = [
        (METHOD_CREDIT, "Credit card"),
        (METHOD_TRANSFER, "Bank transfer"),
        (METHOD_CASH, "Cash"),
    ]

    student = models.ForeignKey(
        "students.Student",
        on_delete=models.PROTECT,
        related_name="registrations",
    )
    cycle = models.ForeignKey(
        "cycles.Cycle",
        on_delete=models.PROTECT,
        related_name="registrations",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_REGISTERED, db_index=True)
    registration_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payment_status = models.CharField(
        max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_UNPAID, db_index=True,
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True, default="")
    invoice_link = models.URLField(max_length=500, blank=True, default="")
    cancellation_date = models.DateField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "registrations"
        verbose_name = "Registration"
        verbose_name_plural = "Registrations"
        ordering = ["-registration_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "cycle"],
                condition=~models.Q(status="cancelled"),
                name="unique_open_registration_per_student_cycle",
            ),
        ]
        indexes = [
            models.Index(fields=["cycle", "status"], name="registrations_cycle_status_idx"),
        ]

    def __str__(self):
        return f"{self.student} @ {self.cycle.name} ({self.status})"

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES
