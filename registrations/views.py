"""
Registration API views: enrollment, payment status and bulk changes.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsManager, IsOperator
from core.utils import parse_id_list
from cycles.models import Cycle
from cycles.services.bulk import bulk_update_registrations
from registrations.models import Registration
from registrations.serializers import (
    RegistrationSerializer,
    RegistrationCreateSerializer,
    PaymentUpdateSerializer,
    RegistrationUpdateSerializer,
)
from registrations.services import enroll, update_payment, cancel_registration, update_registration


def _get_registration(pk):
    try:
        return Registration.objects.select_related('student', 'cycle').get(id=pk)
    except Registration.DoesNotExist:
        return None


def _not_found(what):
    return Response({'detail': f'{what} not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOperator])
def cycle_registrations_view(request, cycle_id):
    """
    GET /api/cycles/{id}/registrations/?status=&paymentStatus=
    POST /api/cycles/{id}/registrations/ - enroll a student (manager only)
    """
    try:
        cycle = Cycle.objects.get(id=cycle_id)
    except Cycle.DoesNotExist:
        return _not_found('Cycle')

    if request.method == 'POST':
        if not IsManager().has_permission(request, None):
            return Response({'detail': 'Manager role required', 'code': 'permission_denied'},
                            status=status.HTTP_403_FORBIDDEN)
        serializer = RegistrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        student = fields.pop('student')
        registration = enroll(student, cycle, actor=request.user, **fields)
        return Response(RegistrationSerializer(registration).data, status=status.HTTP_201_CREATED)

    qs = Registration.objects.filter(cycle=cycle).select_related('student').order_by('student__full_name')
    reg_status = request.query_params.get('status')
    if reg_status:
        qs = qs.filter(status=reg_status)
    payment_status = request.query_params.get('paymentStatus')
    if payment_status:
        qs = qs.filter(payment_status=payment_status)
    return Response({'registrations': RegistrationSerializer(qs, many=True).data})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsOperator])
def registration_detail_view(request, pk):
    """
    GET /api/registrations/{id}/
    PATCH /api/registrations/{id}/ body: sparse {status, cancellationReason, amount, paymentStatus, ...}
    """
    registration = _get_registration(pk)
    if registration is None:
        return _not_found('Registration')
    if request.method == 'GET':
        return Response(RegistrationSerializer(registration).data)

    if not IsManager().has_permission(request, None):
        return Response({'detail': 'Manager role required', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    serializer = RegistrationUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    registration = update_registration(registration, dict(serializer.validated_data), actor=request.user)
    return Response(RegistrationSerializer(registration).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def registration_payment_view(request, pk):
    """POST /api/registrations/{id}/payment/ body: {amount?, paymentStatus?, paymentMethod?, invoiceLink?, notes?}"""
    registration = _get_registration(pk)
    if registration is None:
        return _not_found('Registration')
    serializer = PaymentUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    registration = update_payment(registration, dict(serializer.validated_data), actor=request.user)
    return Response(RegistrationSerializer(registration).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def registration_cancel_view(request, pk):
    """POST /api/registrations/{id}/cancel/ body: {reason?}"""
    registration = _get_registration(pk)
    if registration is None:
        return _not_found('Registration')
    registration = cancel_registration(
        registration, reason=(request.data.get('reason') or '').strip(), actor=request.user,
    )
    return Response(RegistrationSerializer(registration).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def registrations_bulk_update_view(request):
    """
    POST /api/registrations/bulk-update/
    body: {ids: [..], data: {status?, paymentStatus?, amount?, ...}, cycleId?}
    """
    ids = parse_id_list(request.data.get('ids'))
    if ids is None:
        return Response({'detail': 'ids must be a list of registration ids', 'code': 'validation_error'},
                        status=status.HTTP_400_BAD_REQUEST)
    serializer = RegistrationUpdateSerializer(data=request.data.get('data') or {})
    serializer.is_valid(raise_exception=True)

    cycle = None
    cycle_id = request.data.get('cycleId')
    if cycle_id not in (None, ''):
        cycle = Cycle.objects.filter(id=cycle_id).first() if str(cycle_id).isdigit() else None
        if cycle is None:
            return _not_found('Cycle')

    result = bulk_update_registrations(ids, dict(serializer.validated_data), actor=request.user, cycle=cycle)
    return Response(result.as_dict())
