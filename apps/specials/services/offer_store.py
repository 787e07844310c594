"""Reads of specials and the claim ledger."""

from django.db.models import Count, IntegerField, OuterRef, Subquery, Value
from django.db.models.functions import Coalesce
from uuid import UUID

from ..models import (
    ACTIVE_CLAIM_STATUSES,
    EventType,
    Special,
    SpecialClaim,
    SpecialEvent,
)
from .exceptions import OfferNotFoundError


def get_special_for_claim(special_id: UUID) -> Special:
    """
    Load a special and lock its row for the rest of the transaction.

    Must be called inside ``transaction.atomic()``. On backends without
    row locks the claim scope already serializes callers per special.

    Raises:
        OfferNotFoundError: If special doesn't exist
    """
    try:
        return (
            Special.objects
            .select_for_update(of=('self',))
            .select_related('business')
            .get(id=special_id)
        )
    except Special.DoesNotExist:
        raise OfferNotFoundError(f"Special {special_id} not found")


def count_active_claims(special) -> int:
    return SpecialClaim.objects.filter(special=special).active().count()


def has_active_claim(special, claimant) -> bool:
    return (
        SpecialClaim.objects
        .filter(special=special)
        .for_claimant(claimant)
        .active()
        .exists()
    )


def find_claim_by_idempotency_key(special, idempotency_key):
    return (
        SpecialClaim.objects
        .filter(special=special, idempotency_key=idempotency_key)
        .first()
    )


def _count_subquery(queryset):
    """Correlated COUNT(*) per special, 0 when no rows match."""
    counted = (
        queryset
        .filter(special=OuterRef('pk'))
        .order_by()
        .values('special')
        .annotate(total=Count('id'))
        .values('total')
    )
    return Coalesce(
        Subquery(counted[:1], output_field=IntegerField()),
        Value(0),
    )


def annotated_specials():
    """
    Specials with business data and derived ledger counts.

    Adds ``claims_count`` (active claims) and ``views_count`` (view events).
    Read path only: values may be stale by the time they are rendered.
    """
    return (
        Special.objects
        .select_related('business')
        .annotate(
            claims_count=_count_subquery(
                SpecialClaim.objects.filter(status__in=ACTIVE_CLAIM_STATUSES)
            ),
            views_count=_count_subquery(
                SpecialEvent.objects.filter(event_type=EventType.VIEW)
            ),
        )
    )
