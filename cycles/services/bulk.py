"""
Bulk mutation: apply one sparse change set to N meetings or N registrations.

A malformed request (no ids, no changes, too many ids) raises ValidationError before anything
is touched. After that every target is processed sequentially in its own savepoint: a failure
is recorded as that target's outcome and never rolls back the targets already applied.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from core import errors
from core.results import BulkResult
from cycles.models import Meeting
from cycles.services.meetings import update_meeting, recalculate_meeting
from registrations.models import Registration
from registrations.services import update_registration

logger = logging.getLogger(__name__)


def _validate_request(ids, changes, require_changes=True):
    if not ids:
        raise errors.ValidationError("No target ids given")
    if require_changes and not changes:
        raise errors.ValidationError("No changes given")
    limit = settings.BULK_MAX_TARGETS
    if len(ids) > limit:
        raise errors.ValidationError(f"Too many targets ({len(ids)}), the limit is {limit}")
    # dedupe, keep order
    return list(dict.fromkeys(ids))


def _run(tag, model, ids, apply, cycle=None):
    result = BulkResult()
    targets = model.objects.in_bulk(ids)

    for target_id in ids:
        target = targets.get(target_id)
        if target is None:
            result.failed(target_id, errors.NotFoundError.code, f"{model.__name__} {target_id} not found")
            continue
        if cycle is not None and target.cycle_id != cycle.pk:
            result.failed(
                target_id, errors.ValidationError.code,
                f"{model.__name__} {target_id} does not belong to cycle {cycle.pk}",
            )
            continue
        try:
            with transaction.atomic():
                apply(target)
        except errors.LedgerError as e:
            logger.info(f"[{tag}] target {target_id} failed: {e.code} {e.detail}")
            result.failed(target_id, e.code, e.detail)
            continue
        except IntegrityError as e:
            logger.warning(f"[{tag}] target {target_id} integrity error: {e}")
            result.failed(target_id, errors.ConflictError.code, "Conflicting concurrent change")
            continue
        result.succeeded(target_id)

    logger.info(f"[{tag}] {len(ids)} targets: applied={result.applied} failed={len(result.failures)} ({result.status})")
    return result


def bulk_update_meetings(meeting_ids, changes, actor=None, cycle=None, force=False):
    """
    Apply the same sparse change set (status, activity_type, instructor, topic, ...) to each meeting.
    Returns a BulkResult.
    """
    ids = _validate_request(meeting_ids, changes)
    return _run(
        "bulk_meetings", Meeting, ids,
        lambda meeting: update_meeting(meeting, dict(changes), actor=actor, force=force),
        cycle=cycle,
    )


def bulk_recalculate_meetings(meeting_ids, actor=None, cycle=None):
    """Opt-in financial recalculation for a selection of meetings."""
    ids = _validate_request(meeting_ids, None, require_changes=False)
    return _run(
        "bulk_recalculate", Meeting, ids,
        lambda meeting: recalculate_meeting(meeting, actor=actor),
        cycle=cycle,
    )


def bulk_update_registrations(registration_ids, changes, actor=None, cycle=None):
    """
    Apply the same sparse change set (status, payment fields) to each registration.
    Returns a BulkResult.
    """
    ids = _validate_request(registration_ids, changes)
    return _run(
        "bulk_registrations", Registration, ids,
        lambda registration: update_registration(registration, dict(changes), actor=actor),
        cycle=cycle,
    )
