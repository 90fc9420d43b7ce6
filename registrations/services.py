"""
Registration ledger: enrollment status and payment status per (student, cycle).

- enroll(): ConflictError while the student already holds an open (non-cancelled) registration
  in the cycle; InvalidStateError for cancelled cycles.
- update_payment(): partial update; a payment_status change emits a notification.
- cancel_registration(): stamps cancellation_date/reason; attendance history is kept.
Enrollment and payment are independent axes: neither changes the other.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from core import errors
from cycles.models import Cycle
from registrations.models import Registration
from audit.models import AuditLog
from audit.recorder import record_audit, snapshot
from notifications.dispatch import dispatch_event
from notifications.models import Notification

logger = logging.getLogger(__name__)

PAYMENT_FIELDS = {"amount", "payment_status", "payment_method", "invoice_link", "notes"}
ENROLL_FIELDS = PAYMENT_FIELDS | {"status", "registration_date"}
UPDATABLE_FIELDS = PAYMENT_FIELDS | {"status", "cancellation_reason"}

VALID_STATUSES = {choice for choice, _ in Registration.STATUS_CHOICES}
VALID_PAYMENT_STATUSES = {choice for choice, _ in Registration.PAYMENT_STATUS_CHOICES}
VALID_PAYMENT_METHODS = {choice for choice, _ in Registration.PAYMENT_METHOD_CHOICES} | {""}


def _clean_amount(value):
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise errors.ValidationError(f"Invalid amount '{value}'")
    if amount < 0:
        raise errors.ValidationError("amount cannot be negative")
    return amount.quantize(Decimal("0.01"))


def _apply_payment_fields(registration, changes):
    if "amount" in changes:
        registration.amount = _clean_amount(changes["amount"])
    if "payment_status" in changes:
        if changes["payment_status"] not in VALID_PAYMENT_STATUSES:
            raise errors.ValidationError(f"Invalid payment status '{changes['payment_status']}'")
        registration.payment_status = changes["payment_status"]
    if "payment_method" in changes:
        method = changes["payment_method"] or ""
        if method not in VALID_PAYMENT_METHODS:
            raise errors.ValidationError(f"Invalid payment method '{method}'")
        registration.payment_method = method
    if "invoice_link" in changes:
        registration.invoice_link = changes["invoice_link"] or ""
    if "notes" in changes:
        registration.notes = changes["notes"] or ""


def _open_registration_exists(student_id, cycle_id, exclude_id=None):
    qs = Registration.objects.filter(student_id=student_id, cycle_id=cycle_id).exclude(
        status=Registration.STATUS_CANCELLED
    )
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def _lock(registration):
    try:
        return Registration.objects.select_for_update().get(pk=registration.pk)
    except Registration.DoesNotExist:
        raise errors.NotFoundError(f"Registration {registration.pk} not found")


def enroll(student, cycle, actor=None, **fields):
    """
    Enroll a student in a cycle. Returns the new Registration.
    fields: amount, payment_status, payment_method, invoice_link, notes, status, registration_date
    """
    unknown = set(fields) - ENROLL_FIELDS
    if unknown:
        raise errors.ValidationError(f"Unknown registration fields: {', '.join(sorted(unknown))}")
    status = fields.pop("status", Registration.STATUS_REGISTERED)
    if status not in Registration.ACTIVE_STATUSES:
        raise errors.ValidationError("A new registration must be 'registered' or 'active'")

    with transaction.atomic():
        # Lock the cycle row: enrollments into one cycle are serialized
        cycle = Cycle.objects.select_for_update().get(pk=cycle.pk)
        if cycle.status == Cycle.STATUS_CANCELLED:
            raise errors.InvalidStateError("Cannot enroll in a cancelled cycle")
        if _open_registration_exists(student.pk, cycle.pk):
            raise errors.ConflictError(f"{student} is already registered in {cycle.name}")

        registration = Registration(student=student, cycle=cycle, status=status)
        if fields.get("registration_date"):
            registration.registration_date = fields["registration_date"]
        _apply_payment_fields(registration, fields)
        try:
            with transaction.atomic():
                registration.save()
        except IntegrityError:
            raise errors.ConflictError(f"{student} is already registered in {cycle.name}")

        logger.info(f"[enroll] student_id={student.pk} cycle_id={cycle.pk} registration_id={registration.id}")
        record_audit(AuditLog.ACTION_CREATE, "registration", registration.id, before=None,
                     after=snapshot(registration), actor=actor)
    return registration


def update_payment(registration, changes, actor=None):
    """
    Partial update of amount, payment_status, payment_method, invoice_link, notes.
    Unspecified fields keep their value.
    """
    if not changes:
        raise errors.ValidationError("No changes given")
    unknown = set(changes) - PAYMENT_FIELDS
    if unknown:
        raise errors.ValidationError(f"Unknown payment fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        registration = _lock(registration)
        before = snapshot(registration)
        old_status = registration.payment_status
        _apply_payment_fields(registration, changes)
        registration.save()

        if registration.payment_status != old_status:
            logger.info(
                f"[payment] registration_id={registration.id}: {old_status} -> {registration.payment_status}"
            )
            dispatch_event({
                "type": Notification.TYPE_PAYMENT_STATUS_CHANGED,
                "cycle_id": registration.cycle_id,
                "cycle_name": registration.cycle.name,
                "registration_id": registration.id,
                "student_name": registration.student.full_name,
                "old_status": old_status,
                "new_status": registration.payment_status,
                "amount": registration.amount,
            })
        record_audit(AuditLog.ACTION_UPDATE, "registration", registration.id, before=before,
                     after=snapshot(registration), actor=actor)
    return registration


def cancel_registration(registration, reason="", actor=None):
    """Cancel an enrollment. Attendance already recorded stays in place."""
    with transaction.atomic():
        registration = _lock(registration)
        if registration.status == Registration.STATUS_CANCELLED:
            raise errors.InvalidStateError("Registration is already cancelled")
        before = snapshot(registration)
        registration.status = Registration.STATUS_CANCELLED
        registration.cancellation_date = timezone.localdate()
        registration.cancellation_reason = reason or ""
        registration.save(update_fields=["status", "cancellation_date", "cancellation_reason", "updated_at"])
        logger.info(f"[cancel_registration] registration_id={registration.id} reason={reason!r}")
        record_audit(AuditLog.ACTION_UPDATE, "registration", registration.id, before=before,
                     after=snapshot(registration), actor=actor)
    return registration


def set_registration_status(registration, status, actor=None):
    """
    Direct status set for registered/active/completed.
    Reopening a cancelled registration is a conflict while another open one exists.
    """
    if status not in VALID_STATUSES:
        raise errors.ValidationError(f"Invalid registration status '{status}'")
    if status == Registration.STATUS_CANCELLED:
        return cancel_registration(registration, actor=actor)

    with transaction.atomic():
        registration = _lock(registration)
        if registration.status == status:
            raise errors.InvalidStateError(f"Registration is already {status}")
        if registration.status == Registration.STATUS_CANCELLED and _open_registration_exists(
            registration.student_id, registration.cycle_id, exclude_id=registration.id
        ):
            raise errors.ConflictError("Student already has another open registration in this cycle")
        before = snapshot(registration)
        registration.status = status
        if before["status"] == Registration.STATUS_CANCELLED:
            registration.cancellation_date = None
            registration.cancellation_reason = ""
        registration.save(update_fields=["status", "cancellation_date", "cancellation_reason", "updated_at"])
        record_audit(AuditLog.ACTION_UPDATE, "registration", registration.id, before=before,
                     after=snapshot(registration), actor=actor)
    return registration


def update_registration(registration, changes, actor=None):
    """
    Single-item update used by the API and bulk mutation.
    status goes through set_registration_status / cancel_registration, payment fields through update_payment.
    """
    if not changes:
        raise errors.ValidationError("No changes given")
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise errors.ValidationError(f"Unknown registration fields: {', '.join(sorted(unknown))}")
    if "cancellation_reason" in changes and changes.get("status") != Registration.STATUS_CANCELLED:
        raise errors.ValidationError("cancellation_reason is only accepted with status=cancelled")

    with transaction.atomic():
        payment_changes = {k: v for k, v in changes.items() if k in PAYMENT_FIELDS}
        if payment_changes:
            registration = update_payment(registration, payment_changes, actor=actor)
        if "status" in changes:
            if changes["status"] == Registration.STATUS_CANCELLED:
                registration = cancel_registration(
                    registration, reason=changes.get("cancellation_reason", ""), actor=actor
                )
            else:
                registration = set_registration_status(registration, changes["status"], actor=actor)
    return registration
