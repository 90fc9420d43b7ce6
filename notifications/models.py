"""
Notification models for operator alerts (meeting completed, negative profit, payment status, etc.)
"""
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from accounts.models import User


class Notification(models.Model):
    """
    Operator notifications created from ledger events.
    """
    TYPE_MEETING_COMPLETED = "meeting.completed"
    TYPE_MEETING_CANCELLED = "meeting.cancelled"
    TYPE_NEGATIVE_PROFIT = "meeting.negative_profit"
    TYPE_CYCLE_COMPLETED = "cycle.completed"
    TYPE_PAYMENT_STATUS_CHANGED = "registration.payment_status_changed"
    
    TYPE_CHOICES = [
        (TYPE_MEETING_COMPLETED, "Meeting completed"),
        (TYPE_MEETING_CANCELLED, "Meeting cancelled"),
        (TYPE_NEGATIVE_PROFIT, "Negative profit"),
        (TYPE_CYCLE_COMPLETED, "Cycle completed"),
        (TYPE_PAYMENT_STATUS_CHANGED, "Payment status changed"),
    ]
    
    type = models.CharField(max_length=50, choices=TYPE_CHOICES, db_index=True)
    cycle = models.ForeignKey(
        "cycles.Cycle",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    meeting = models.ForeignKey(
        "cycles.Meeting",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    registration = models.ForeignKey(
        "registrations.Registration",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    is_read = models.BooleanField(default=False, db_index=True)
    is_resolved = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_notifications",
    )
    
    class Meta:
        db_table = "notifications"
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["meeting", "type"],
                condition=models.Q(is_read=False, type="meeting.negative_profit"),
                name="unique_active_negative_profit_per_meeting",
            ),
        ]
        indexes = [
            models.Index(fields=["type", "is_read", "is_resolved"], name="notifications_type_read_idx"),
            models.Index(fields=["cycle", "is_resolved"], name="notifications_cycle_idx"),
        ]
    
    def __str__(self):
        return f"{self.type} - {self.message[:40]} - {self.created_at}"
