"""
Instructor and the per-instructor rate table.
Hourly rates are keyed by activity type; any of them may be empty, the frontal rate is the fallback.
"""
from django.db import models
from accounts.models import User


class Instructor(models.Model):
    """
    Instructor teaching cycles. Optionally linked to an operator User (role=instructor).
    """
    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='instructor_profile',
        limit_choices_to={'role': 'instructor'},
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=20, blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)

    # Rate table (per hour)
    rate_frontal = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rate_online = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rate_private = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rate_preparation = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'instructors'
        verbose_name = 'Instructor'
        verbose_name_plural = 'Instructors'
        ordering = ['name']

    def __str__(self):
        return self.name
