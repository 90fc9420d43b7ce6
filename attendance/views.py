"""
Attendance API: per-meeting sheet and recording.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsOperator
from cycles.models import Meeting
from attendance.services.recording import attendance_sheet, record_attendance_bulk


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOperator])
def meeting_attendance_view(request, meeting_id):
    """
    GET /api/meetings/{id}/attendance/
    POST /api/meetings/{id}/attendance/
    body: {records: [{registrationId | studentId, status: present|absent|late, notes?}, ...]}
    Each record gets its own outcome; instructors may record attendance too.
    """
    try:
        meeting = Meeting.objects.select_related('cycle').get(id=meeting_id)
    except Meeting.DoesNotExist:
        return Response({'detail': 'Meeting not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(attendance_sheet(meeting))

    records = request.data.get('records')
    if not isinstance(records, list) or not records or not all(isinstance(r, dict) for r in records):
        return Response({'detail': 'records must be a non-empty list of objects', 'code': 'validation_error'},
                        status=status.HTTP_400_BAD_REQUEST)
    result = record_attendance_bulk(meeting, records, actor=request.user)
    return Response({**result.as_dict(), 'sheet': attendance_sheet(meeting)})
