"""
Serializers for cycles app.
Input serializers only validate shape; business rules live in cycles.services.
"""
from rest_framework import serializers

from core.models import Branch, Course
from instructors.models import Instructor
from .models import Cycle, Meeting, ACTIVITY_FRONTAL, CYCLE_ACTIVITY_CHOICES, MEETING_ACTIVITY_CHOICES


class CycleCreateSerializer(serializers.Serializer):
    """POST /api/cycles/ body (camelCase). validated_data keys match Cycle fields."""
    name = serializers.CharField(max_length=255)
    courseId = serializers.PrimaryKeyRelatedField(
        source='course', queryset=Course.objects.all(), required=False, allow_null=True,
    )
    branchId = serializers.PrimaryKeyRelatedField(
        source='branch', queryset=Branch.objects.all(), required=False, allow_null=True,
    )
    instructorId = serializers.PrimaryKeyRelatedField(
        source='instructor', queryset=Instructor.objects.all(), required=False, allow_null=True,
    )
    pricingMode = serializers.ChoiceField(
        source='pricing_mode', choices=Cycle.PRICING_CHOICES, default=Cycle.PRICING_PER_STUDENT,
    )
    pricePerStudent = serializers.DecimalField(
        source='price_per_student', max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=0,
    )
    meetingRevenue = serializers.DecimalField(
        source='meeting_revenue', max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=0,
    )
    studentCount = serializers.IntegerField(source='student_count', required=False, allow_null=True, min_value=0)
    revenueIncludesVat = serializers.BooleanField(source='revenue_includes_vat', required=False, default=False)
    instructorTotalBudget = serializers.DecimalField(
        source='instructor_total_budget', max_digits=10, decimal_places=2, required=False, allow_null=True,
        min_value=0,
    )
    dayOfWeek = serializers.IntegerField(source='day_of_week', min_value=0, max_value=6)
    startTime = serializers.TimeField(source='start_time')
    endTime = serializers.TimeField(source='end_time')
    durationMinutes = serializers.IntegerField(source='duration_minutes', required=False, min_value=1)
    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date', required=False, allow_null=True)
    totalMeetings = serializers.IntegerField(source='total_meetings', min_value=1)
    activityType = serializers.ChoiceField(
        source='activity_type', choices=CYCLE_ACTIVITY_CHOICES, default=ACTIVITY_FRONTAL,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        start_date, end_date = attrs.get('start_date'), attrs.get('end_date')
        if end_date and start_date and start_date > end_date:
            raise serializers.ValidationError({'endDate': 'endDate must not be before startDate'})
        if attrs['start_time'] >= attrs['end_time']:
            raise serializers.ValidationError({'endTime': 'endTime must be after startTime'})
        return attrs


class CycleSerializer(serializers.ModelSerializer):
    courseId = serializers.IntegerField(source='course_id', read_only=True, allow_null=True)
    courseName = serializers.SerializerMethodField()
    branchId = serializers.IntegerField(source='branch_id', read_only=True, allow_null=True)
    branchName = serializers.SerializerMethodField()
    instructorId = serializers.IntegerField(source='instructor_id', read_only=True, allow_null=True)
    instructorName = serializers.SerializerMethodField()
    pricingMode = serializers.CharField(source='pricing_mode', read_only=True)
    pricePerStudent = serializers.DecimalField(source='price_per_student', max_digits=10, decimal_places=2, read_only=True)
    meetingRevenue = serializers.DecimalField(source='meeting_revenue', max_digits=10, decimal_places=2, read_only=True)
    studentCount = serializers.IntegerField(source='student_count', read_only=True)
    revenueIncludesVat = serializers.BooleanField(source='revenue_includes_vat', read_only=True)
    instructorTotalBudget = serializers.DecimalField(
        source='instructor_total_budget', max_digits=10, decimal_places=2, read_only=True,
    )
    dayOfWeek = serializers.IntegerField(source='day_of_week', read_only=True)
    startTime = serializers.TimeField(source='start_time', read_only=True)
    endTime = serializers.TimeField(source='end_time', read_only=True)
    durationMinutes = serializers.IntegerField(source='duration_minutes', read_only=True)
    startDate = serializers.DateField(source='start_date', read_only=True)
    endDate = serializers.DateField(source='end_date', read_only=True)
    activityType = serializers.CharField(source='activity_type', read_only=True)
    totalMeetings = serializers.IntegerField(source='total_meetings', read_only=True)
    completedMeetings = serializers.IntegerField(source='completed_meetings', read_only=True)
    remainingMeetings = serializers.IntegerField(source='remaining_meetings', read_only=True)

    def get_courseName(self, obj):
        return obj.course.name if obj.course else None

    def get_branchName(self, obj):
        return obj.branch.name if obj.branch else None

    def get_instructorName(self, obj):
        return obj.instructor.name if obj.instructor else None

    class Meta:
        model = Cycle
        fields = [
            'id', 'name', 'courseId', 'courseName', 'branchId', 'branchName', 'instructorId', 'instructorName',
            'pricingMode', 'pricePerStudent', 'meetingRevenue', 'studentCount', 'revenueIncludesVat',
            'instructorTotalBudget', 'dayOfWeek', 'startTime', 'endTime', 'durationMinutes',
            'startDate', 'endDate', 'activityType', 'totalMeetings', 'completedMeetings', 'remainingMeetings',
            'status', 'cancellation_reason', 'notes', 'created_at',
        ]
        read_only_fields = fields


class CycleExtendSerializer(serializers.Serializer):
    """POST /api/cycles/{id}/generate-missing/ body."""
    targetTotal = serializers.IntegerField(source='target_total', min_value=1)
    endDate = serializers.DateField(source='end_date', required=False, allow_null=True)


class MeetingSerializer(serializers.ModelSerializer):
    cycleId = serializers.IntegerField(source='cycle_id', read_only=True)
    scheduledDate = serializers.DateField(source='scheduled_date', read_only=True)
    startTime = serializers.TimeField(source='start_time', read_only=True)
    endTime = serializers.TimeField(source='end_time', read_only=True)
    activityType = serializers.CharField(source='activity_type', read_only=True)
    instructorId = serializers.IntegerField(source='instructor_id', read_only=True, allow_null=True)
    instructorName = serializers.SerializerMethodField()
    instructorPayment = serializers.DecimalField(
        source='instructor_payment', max_digits=10, decimal_places=2, read_only=True,
    )
    rescheduledToId = serializers.IntegerField(source='rescheduled_to_id', read_only=True, allow_null=True)
    statusUpdatedAt = serializers.DateTimeField(source='status_updated_at', read_only=True)

    def get_instructorName(self, obj):
        return obj.instructor.name if obj.instructor else None

    class Meta:
        model = Meeting
        fields = [
            'id', 'cycleId', 'scheduledDate', 'startTime', 'endTime', 'status', 'activityType',
            'instructorId', 'instructorName', 'revenue', 'instructorPayment', 'profit',
            'topic', 'notes', 'rescheduledToId', 'statusUpdatedAt',
        ]
        read_only_fields = fields


class MeetingUpdateSerializer(serializers.Serializer):
    """
    Sparse meeting change set (single PATCH and bulk 'data').
    validated_data keys are the service field names.
    """
    status = serializers.ChoiceField(choices=Meeting.STATUS_CHOICES, required=False)
    activityType = serializers.ChoiceField(source='activity_type', choices=MEETING_ACTIVITY_CHOICES, required=False)
    instructorId = serializers.IntegerField(source='instructor', required=False, allow_null=True, min_value=1)
    topic = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True)
    scheduledDate = serializers.DateField(source='scheduled_date', required=False)
    startTime = serializers.TimeField(source='start_time', required=False, allow_null=True)
    endTime = serializers.TimeField(source='end_time', required=False, allow_null=True)


class MeetingCreateSerializer(serializers.Serializer):
    scheduledDate = serializers.DateField(source='scheduled_date')
    startTime = serializers.TimeField(source='start_time', required=False, allow_null=True)
    endTime = serializers.TimeField(source='end_time', required=False, allow_null=True)
    activityType = serializers.ChoiceField(source='activity_type', choices=MEETING_ACTIVITY_CHOICES, required=False)
    instructorId = serializers.IntegerField(source='instructor', required=False, allow_null=True, min_value=1)
    topic = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class MeetingPostponeSerializer(serializers.Serializer):
    newDate = serializers.DateField(source='new_date', required=False, allow_null=True)
    newStartTime = serializers.TimeField(source='new_start_time', required=False, allow_null=True)
    newEndTime = serializers.TimeField(source='new_end_time', required=False, allow_null=True)


class MeetingOverrideSerializer(serializers.Serializer):
    """force=true bypasses the status transition table (operator override)."""
    force = serializers.BooleanField(required=False, default=False)
