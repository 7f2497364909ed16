# ==============================================================================
# Event Parsing
# ==============================================================================
"""
Turn loosely-typed event records into validated RawEvent instances.

Handles two record shapes:
- Tracker payloads (camelCase keys, epoch-millisecond ``timestamp``)
- Event log rows (snake_case keys, ``created_at`` datetime or ISO string)

Records missing a site or visitor id, or carrying an unknown event type or
an unreadable timestamp, are skipped. They are not events.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from pydantic import ValidationError

from insight.core.models import RawEvent

logger = logging.getLogger(__name__)

# Required fields for a valid tracking event (snake_case names)
REQUIRED_EVENT_FIELDS = ["site_id", "visitor_id"]

# Tracker payload key -> RawEvent field
_TRACKER_KEYS = {
    "siteId": "site_id",
    "visitorId": "visitor_id",
    "eventType": "event_type",
    "timeOnPage": "time_on_page",
    "utmSource": "utm_source",
    "utmMedium": "utm_medium",
    "utmCampaign": "utm_campaign",
    "screenWidth": "screen_width",
    "screenHeight": "screen_height",
    "createdAt": "created_at",
}


def _parse_timestamp(value) -> datetime:
    """
    Convert epoch milliseconds, an ISO-8601 string or a datetime to aware UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000.0, tz=UTC)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def normalize_record(record: Mapping) -> dict:
    """Rename tracker keys to RawEvent field names and drop empty values."""
    normalized = {}
    for key, value in record.items():
        if value is None:
            continue
        normalized[_TRACKER_KEYS.get(key, key)] = value
    if "timestamp" in normalized and "created_at" not in normalized:
        normalized["created_at"] = normalized.pop("timestamp")
    normalized.pop("timestamp", None)
    return normalized


def parse_event(record: Mapping, now: datetime | None = None) -> RawEvent | None:
    """
    Validate a single record.

    Args:
        record: Tracker payload or event log row
        now: Time used when the record carries no timestamp (default: now UTC)

    Returns:
        RawEvent, or None if the record is not a valid event
    """
    data = normalize_record(record)

    for field in REQUIRED_EVENT_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            logger.debug("Skipping record without %s: %r", field, record)
            return None

    try:
        if "created_at" in data:
            data["created_at"] = _parse_timestamp(data["created_at"])
        else:
            data["created_at"] = now or datetime.now(UTC)
        if not data.get("path"):
            data["path"] = "/"
        if "referrer" in data and data["referrer"] == "":
            data["referrer"] = "direct"
        return RawEvent.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.debug("Skipping invalid record %r: %s", record, e)
        return None


def parse_events(records: Iterable[Mapping], now: datetime | None = None) -> list[RawEvent]:
    """
    Validate many records, keeping only the valid ones.

    Args:
        records: Tracker payloads or event log rows
        now: Time used for records without a timestamp

    Returns:
        List of RawEvent in input order
    """
    events = []
    skipped = 0
    for record in records:
        event = parse_event(record, now=now)
        if event is None:
            skipped += 1
        else:
            events.append(event)

    if skipped:
        logger.warning("Skipped %d malformed event records", skipped)
    return events
