"""
Serializers for notifications.
"""
from rest_framework import serializers
from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    cycleId = serializers.IntegerField(source='cycle_id', read_only=True, allow_null=True)
    cycleName = serializers.SerializerMethodField()
    meetingId = serializers.IntegerField(source='meeting_id', read_only=True, allow_null=True)
    registrationId = serializers.IntegerField(source='registration_id', read_only=True, allow_null=True)
    
    def get_cycleName(self, obj):
        return obj.cycle.name if obj.cycle else None

    class Meta:
        model = Notification
        fields = [
            'id',
            'type',
            'cycleId',
            'cycleName',
            'meetingId',
            'registrationId',
            'message',
            'payload',
            'is_read',
            'is_resolved',
            'created_at',
            'resolved_at',
        ]
        read_only_fields = fields
