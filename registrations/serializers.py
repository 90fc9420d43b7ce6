"""
Serializers for registrations app
"""
from rest_framework import serializers

from students.models import Student
from .models import Registration


class RegistrationSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.full_name', read_only=True)
    cycleId = serializers.IntegerField(source='cycle_id', read_only=True)
    registrationDate = serializers.DateField(source='registration_date', read_only=True)
    paymentStatus = serializers.CharField(source='payment_status', read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    invoiceLink = serializers.CharField(source='invoice_link', read_only=True)
    cancellationDate = serializers.DateField(source='cancellation_date', read_only=True)
    cancellationReason = serializers.CharField(source='cancellation_reason', read_only=True)

    class Meta:
        model = Registration
        fields = [
            'id', 'studentId', 'studentName', 'cycleId', 'status', 'registrationDate',
            'amount', 'paymentStatus', 'paymentMethod', 'invoiceLink',
            'cancellationDate', 'cancellationReason', 'notes',
        ]
        read_only_fields = fields


class _PaymentFieldsSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=0)
    paymentStatus = serializers.ChoiceField(
        source='payment_status', choices=Registration.PAYMENT_STATUS_CHOICES, required=False,
    )
    paymentMethod = serializers.ChoiceField(
        source='payment_method', choices=Registration.PAYMENT_METHOD_CHOICES, required=False, allow_blank=True,
    )
    invoiceLink = serializers.URLField(source='invoice_link', max_length=500, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class RegistrationCreateSerializer(_PaymentFieldsSerializer):
    """POST /api/cycles/{id}/registrations/"""
    studentId = serializers.PrimaryKeyRelatedField(
        source='student', queryset=Student.objects.filter(is_deleted=False),
    )
    status = serializers.ChoiceField(
        choices=[c for c in Registration.STATUS_CHOICES if c[0] in Registration.ACTIVE_STATUSES],
        required=False,
    )
    registrationDate = serializers.DateField(source='registration_date', required=False)


class PaymentUpdateSerializer(_PaymentFieldsSerializer):
    """Sparse payment change: unspecified fields keep their value."""


class RegistrationUpdateSerializer(_PaymentFieldsSerializer):
    """Sparse change set for PATCH and bulk 'data'."""
    status = serializers.ChoiceField(choices=Registration.STATUS_CHOICES, required=False)
    cancellationReason = serializers.CharField(source='cancellation_reason', required=False, allow_blank=True)
