"""
Student: a learner who enrolls in cycles.
Owned by the customer-management side; the ledger only references it.
Soft delete: deleted_at set instead of row delete.
"""
from django.db import models


class Student(models.Model):
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    grade = models.CharField(max_length=50, blank=True, default='', help_text="Class/Grade e.g. 10, 5A")
    notes = models.TextField(blank=True, default='')
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        ordering = ['full_name']

    def __str__(self):
        return self.full_name

    def save(self, *args, **kwargs):
        self.is_deleted = self.deleted_at is not None
        super().save(*args, **kwargs)
