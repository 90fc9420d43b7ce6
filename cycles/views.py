"""
Cycle and meeting API views.
Services raise core.errors; config.exceptions maps them to {detail, code}.
"""
from django.db import models
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsManager, IsOperator
from core.utils import parse_id_list
from cycles.models import Cycle, Meeting
from cycles.serializers import (
    CycleCreateSerializer,
    CycleExtendSerializer,
    CycleSerializer,
    MeetingSerializer,
    MeetingUpdateSerializer,
    MeetingCreateSerializer,
    MeetingPostponeSerializer,
    MeetingOverrideSerializer,
)
from cycles.services.generator import create_cycle, generate_missing_meetings
from cycles.services.progress import cancel_cycle, delete_cycle, rebuild_from_ledger
from cycles.services.meetings import update_meeting, postpone_meeting, recalculate_meeting, add_meeting
from cycles.services.bulk import bulk_update_meetings, bulk_recalculate_meetings


def _paginate(qs, request, page_size=50):
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
        page_size = min(int(request.query_params.get('page_size', page_size)), 200)
    except ValueError:
        page = 1
    offset = (page - 1) * page_size
    items = list(qs[offset:offset + page_size + 1])
    has_next = len(items) > page_size
    if has_next:
        items = items[:page_size]
    return items, {'page': page, 'page_size': page_size, 'has_next': has_next}


def _get_cycle(pk):
    try:
        return Cycle.objects.select_related('course', 'branch', 'instructor').get(id=pk)
    except Cycle.DoesNotExist:
        return None


def _get_meeting(pk):
    try:
        return Meeting.objects.select_related('cycle', 'instructor').get(id=pk)
    except Meeting.DoesNotExist:
        return None


def _forbidden_unless_manager(request):
    if IsManager().has_permission(request, None):
        return None
    return Response({'detail': 'Manager role required', 'code': 'permission_denied'},
                    status=status.HTTP_403_FORBIDDEN)


def _cycle_not_found():
    return Response({'detail': 'Cycle not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


def _meeting_not_found():
    return Response({'detail': 'Meeting not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOperator])
def cycles_view(request):
    """
    GET /api/cycles/?status=&instructorId=&branchId=&q=
    POST /api/cycles/ - create a cycle and generate its meetings (manager only)
    """
    if request.method == 'POST':
        denied = _forbidden_unless_manager(request)
        if denied:
            return denied
        serializer = CycleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cycle = create_cycle(actor=request.user, **serializer.validated_data)
        return Response(CycleSerializer(cycle).data, status=status.HTTP_201_CREATED)

    qs = Cycle.objects.select_related('course', 'branch', 'instructor').order_by('-start_date', 'name')
    cycle_status = request.query_params.get('status')
    if cycle_status:
        qs = qs.filter(status=cycle_status)
    instructor_id = request.query_params.get('instructorId')
    if instructor_id and instructor_id.isdigit():
        qs = qs.filter(instructor_id=int(instructor_id))
    branch_id = request.query_params.get('branchId')
    if branch_id and branch_id.isdigit():
        qs = qs.filter(branch_id=int(branch_id))
    q = request.query_params.get('q', '').strip()
    if q:
        qs = qs.filter(models.Q(name__icontains=q) | models.Q(course__name__icontains=q))
    items, meta = _paginate(qs, request)
    return Response({'items': CycleSerializer(items, many=True).data, 'meta': meta})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsOperator])
def cycle_detail_view(request, pk):
    """
    GET /api/cycles/{id}/
    DELETE /api/cycles/{id}/ - only while the cycle has no meetings and no registrations
    """
    cycle = _get_cycle(pk)
    if cycle is None:
        return _cycle_not_found()
    if request.method == 'DELETE':
        denied = _forbidden_unless_manager(request)
        if denied:
            return denied
        delete_cycle(cycle, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(CycleSerializer(cycle).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def cycle_cancel_view(request, pk):
    """POST /api/cycles/{id}/cancel/ body: {reason?}"""
    cycle = _get_cycle(pk)
    if cycle is None:
        return _cycle_not_found()
    cycle = cancel_cycle(cycle, reason=(request.data.get('reason') or '').strip(), actor=request.user)
    return Response(CycleSerializer(cycle).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def cycle_sync_progress_view(request, pk):
    """
    POST /api/cycles/{id}/sync-progress/
    Recompute counters from the meeting ledger; reports the drift that was fixed.
    """
    report = rebuild_from_ledger(pk)
    return Response({
        'cycleId': report['cycle_id'],
        'before': report['before'],
        'after': report['after'],
        'changed': report['changed'],
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def cycle_generate_missing_view(request, pk):
    """
    POST /api/cycles/{id}/generate-missing/ body: {targetTotal, endDate?}
    Appends meetings after the last one until the ledger holds targetTotal.
    """
    cycle = _get_cycle(pk)
    if cycle is None:
        return _cycle_not_found()
    serializer = CycleExtendSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    created = generate_missing_meetings(cycle, actor=request.user, **serializer.validated_data)
    cycle.refresh_from_db()
    return Response({'created': created, 'cycle': CycleSerializer(cycle).data})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOperator])
def cycle_meetings_view(request, pk):
    """
    GET /api/cycles/{id}/meetings/?status=
    POST /api/cycles/{id}/meetings/ - add one meeting manually (manager only)
    """
    cycle = _get_cycle(pk)
    if cycle is None:
        return _cycle_not_found()

    if request.method == 'POST':
        denied = _forbidden_unless_manager(request)
        if denied:
            return denied
        serializer = MeetingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        meeting = add_meeting(cycle, actor=request.user, **serializer.validated_data)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_201_CREATED)

    qs = Meeting.objects.filter(cycle=cycle).select_related('instructor').order_by('scheduled_date', 'start_time')
    meeting_status = request.query_params.get('status')
    if meeting_status:
        qs = qs.filter(status=meeting_status)
    return Response({
        'cycle': CycleSerializer(cycle).data,
        'meetings': MeetingSerializer(qs, many=True).data,
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsOperator])
def meeting_detail_view(request, pk):
    """
    GET /api/meetings/{id}/
    PATCH /api/meetings/{id}/ body: sparse {status, activityType, instructorId, topic, notes,
    scheduledDate, startTime, endTime, force?}. Manager only.
    """
    meeting = _get_meeting(pk)
    if meeting is None:
        return _meeting_not_found()
    if request.method == 'GET':
        return Response(MeetingSerializer(meeting).data)

    denied = _forbidden_unless_manager(request)
    if denied:
        return denied
    serializer = MeetingUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    meeting = update_meeting(meeting, dict(serializer.validated_data), actor=request.user, force=_force(request))
    return Response(MeetingSerializer(meeting).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def meeting_postpone_view(request, pk):
    """
    POST /api/meetings/{id}/postpone/ body: {newDate?, newStartTime?, newEndTime?}
    Returns the postponed meeting and its replacement.
    """
    meeting = _get_meeting(pk)
    if meeting is None:
        return _meeting_not_found()
    serializer = MeetingPostponeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    meeting, replacement = postpone_meeting(meeting, actor=request.user, **serializer.validated_data)
    return Response({
        'meeting': MeetingSerializer(meeting).data,
        'replacement': MeetingSerializer(replacement).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def meeting_recalculate_view(request, pk):
    """POST /api/meetings/{id}/recalculate/ - re-stamp financials from current rates."""
    meeting = _get_meeting(pk)
    if meeting is None:
        return _meeting_not_found()
    meeting = recalculate_meeting(meeting, actor=request.user)
    return Response(MeetingSerializer(meeting).data)


def _force(request):
    serializer = MeetingOverrideSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data['force']


def _bulk_cycle(request):
    """Optional cycleId scoping for bulk endpoints. Returns (cycle, error_response)."""
    cycle_id = request.data.get('cycleId')
    if cycle_id in (None, ''):
        return None, None
    cycle = _get_cycle(cycle_id) if str(cycle_id).isdigit() else None
    if cycle is None:
        return None, _cycle_not_found()
    return cycle, None


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def meetings_bulk_update_view(request):
    """
    POST /api/meetings/bulk-update/
    body: {ids: [..], data: {status?, activityType?, instructorId?, topic?, ...}, cycleId?, force?}
    200 with per-meeting results; 400 only for a malformed request.
    """
    ids = parse_id_list(request.data.get('ids'))
    if ids is None:
        return Response({'detail': 'ids must be a list of meeting ids', 'code': 'validation_error'},
                        status=status.HTTP_400_BAD_REQUEST)
    serializer = MeetingUpdateSerializer(data=request.data.get('data') or {})
    serializer.is_valid(raise_exception=True)
    cycle, error = _bulk_cycle(request)
    if error:
        return error

    result = bulk_update_meetings(
        ids, dict(serializer.validated_data),
        actor=request.user, cycle=cycle, force=_force(request),
    )
    return Response(result.as_dict())


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def meetings_bulk_recalculate_view(request):
    """POST /api/meetings/bulk-recalculate/ body: {ids: [..], cycleId?}"""
    ids = parse_id_list(request.data.get('ids'))
    if ids is None:
        return Response({'detail': 'ids must be a list of meeting ids', 'code': 'validation_error'},
                        status=status.HTTP_400_BAD_REQUEST)
    cycle, error = _bulk_cycle(request)
    if error:
        return error
    result = bulk_recalculate_meetings(ids, actor=request.user, cycle=cycle)
    return Response(result.as_dict())
