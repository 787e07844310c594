"""
Engagement recorder: best-effort analytics events.

Recording runs in its own (nested) atomic block, never inside a claim
transaction, and never raises: a failed insert is logged and dropped so
the read that triggered it still succeeds.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction

from ..models import EventType, SpecialEvent
from .claimants import Claimant, ClaimMetadata

logger = logging.getLogger(__name__)


def record_event(
    *,
    special_id: UUID,
    event_type: str,
    claimant: Optional[Claimant] = None,
    metadata: Optional[ClaimMetadata] = None,
) -> Optional[SpecialEvent]:
    """
    Store one engagement event, at most once.

    Returns:
        The created SpecialEvent, or None when recording failed
    """
    metadata = metadata or ClaimMetadata()
    identity = claimant.as_fields() if claimant else {}

    try:
        with transaction.atomic():
            return SpecialEvent.objects.create(
                special_id=special_id,
                event_type=event_type,
                **identity,
                **metadata.as_fields(),
            )
    except Exception:
        logger.warning(
            "Failed to record %s event for special %s", event_type, special_id,
            exc_info=True,
        )
        return None


def record_view(
    *,
    special_id: UUID,
    claimant: Optional[Claimant] = None,
    metadata: Optional[ClaimMetadata] = None,
) -> Optional[SpecialEvent]:
    """Record that a special's detail page was viewed."""
    return record_event(
        special_id=special_id,
        event_type=EventType.VIEW,
        claimant=claimant,
        metadata=metadata,
    )
