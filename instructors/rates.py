"""
Rate table lookup: hourly rate for an instructor and activity type.
Pure lookup, no persistence. Existing meetings keep the value snapshotted when they were computed.
"""
from decimal import Decimal

# activity type -> rate field; frontal is the fallback for every type
RATE_FIELDS = {
    "frontal": "rate_frontal",
    "online": "rate_online",
    "private_lesson": "rate_private",
    "preparation": "rate_preparation",
}


def hourly_rate(instructor, activity_type) -> Decimal:
    """
    online -> rate_online, else rate_frontal
    private_lesson -> rate_private, else rate_frontal
    preparation -> rate_preparation, else rate_frontal
    frontal (or unknown) -> rate_frontal
    No instructor or no rate at all -> 0.
    """
    if instructor is None:
        return Decimal("0")
    field = RATE_FIELDS.get(activity_type, "rate_frontal")
    rate = getattr(instructor, field, None)
    if rate is None:
        rate = instructor.rate_frontal
    if rate is None:
        return Decimal("0")
    return Decimal(rate)
