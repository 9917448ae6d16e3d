"""Validation and reshaping of raw availability payloads."""

from __future__ import annotations

import logging
from typing import Any, Container, Dict, Mapping, Optional

from infrastructure.constants import AVAILABILITY_PAYLOAD_KEY
from infrastructure.errors import MalformedEntryError

AvailabilitySnapshot = Dict[str, bool]

_logger = logging.getLogger("SnapshotNormalizer")


def extract_availability_payload(body: Any) -> Optional[Mapping[str, Any]]:
    """Return ``data.publicParkingAvailability`` from a GraphQL body, if present."""

    if not isinstance(body, Mapping):
        return None
    data = body.get("data")
    if not isinstance(data, Mapping):
        return None
    payload = data.get(AVAILABILITY_PAYLOAD_KEY)
    if not isinstance(payload, Mapping):
        return None
    return payload


def read_sold_out(date: Any, details: Any) -> bool:
    """Return the ``status.sold_out`` flag of one entry or raise MalformedEntryError."""

    if not isinstance(details, Mapping):
        raise MalformedEntryError(date, details, f"expected an object, got {type(details).__name__}")

    status = details.get("status")
    if not isinstance(status, Mapping):
        raise MalformedEntryError(date, details, "missing 'status' object")

    sold_out = status.get("sold_out")
    if not isinstance(sold_out, bool):
        raise MalformedEntryError(date, details, "'status.sold_out' is not a boolean")

    return sold_out


def normalize_snapshot(
    raw_payload: Any,
    monitored_dates: Container[str],
    *,
    logger: Optional[logging.Logger] = None,
) -> AvailabilitySnapshot:
    """Map a raw payload to ``date -> is_available`` for monitored dates only.

    Never raises: unmonitored dates are skipped silently and malformed entries
    are logged and dropped, leaving the rest of the payload intact.
    """

    log = logger or _logger

    if not isinstance(raw_payload, Mapping):
        log.warning(
            "⚠️ Unexpected availability payload type %s - treating as empty",
            type(raw_payload).__name__,
        )
        return {}

    snapshot: AvailabilitySnapshot = {}
    for date, details in raw_payload.items():
        if date not in monitored_dates:
            continue

        try:
            sold_out = read_sold_out(date, details)
        except MalformedEntryError as exc:
            log.warning("⚠️ Unexpected data format for %s: %s (%r)", exc.date, exc.reason, exc.details)
            continue

        snapshot[date] = not sold_out

    log.debug("Normalized %s of %s payload entries", len(snapshot), len(raw_payload))
    return snapshot
