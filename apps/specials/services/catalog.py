"""Special listing, search and detail (read path, no locking)."""

from django.db.models import F, Q, QuerySet
from django.utils import timezone
from typing import Optional
from uuid import UUID

from ..models import Special
from .exceptions import OfferNotFoundError
from .offer_store import annotated_specials

SORT_FIELDS = {
    'priority': 'priority',
    'claims_total': 'claims_count',
    'valid_until': 'valid_until',
    'created_at': 'created_at',
}
DEFAULT_SORT = 'priority'


def _only_claimable(queryset, now=None):
    """Active, inside the validity window and not sold out."""
    now = now or timezone.now()
    return queryset.filter(
        is_active=True,
        valid_from__lte=now,
        valid_until__gte=now,
    ).filter(
        Q(max_claims_total__isnull=True) | Q(max_claims_total__gt=F('claims_count'))
    )


def list_specials(
    *,
    active_only: bool = True,
    sort_by: str = DEFAULT_SORT,
    sort_order: str = 'desc',
) -> QuerySet[Special]:
    """
    List specials with derived claim and view counts.

    Args:
        active_only: Only specials that can be claimed right now
        sort_by: One of priority, claims_total, valid_until, created_at
        sort_order: 'asc' or 'desc'

    Returns:
        QuerySet of Special annotated with claims_count and views_count
    """
    queryset = annotated_specials()

    if active_only:
        queryset = _only_claimable(queryset)

    field = SORT_FIELDS.get(sort_by, SORT_FIELDS[DEFAULT_SORT])
    prefix = '' if sort_order == 'asc' else '-'

    # Stable tie-break for pagination
    return queryset.order_by(f'{prefix}{field}', 'valid_until', 'id')


def search_specials(
    *,
    q: Optional[str] = None,
    category: Optional[str] = None,
    business_id: Optional[UUID] = None,
    active_only: bool = True,
) -> QuerySet[Special]:
    """
    Search specials by text, business category and business.

    Args:
        q: Case-insensitive term matched against title, description and
            business name
        category: Business entity type (restaurant, store, ...)
        business_id: Only specials of this business
        active_only: Only specials that can be claimed right now

    Returns:
        QuerySet of Special ordered by soonest expiry
    """
    queryset = annotated_specials()

    if active_only:
        queryset = _only_claimable(queryset)

    if q:
        queryset = queryset.filter(
            Q(title__icontains=q) |
            Q(description__icontains=q) |
            Q(business__name__icontains=q)
        )

    if category:
        queryset = queryset.filter(business__entity_type=category.lower())

    if business_id:
        queryset = queryset.filter(business_id=business_id)

    return queryset.order_by('valid_until', 'id')


def get_special_detail(special_id: UUID) -> Special:
    """
    Get a single special with its gallery.

    Raises:
        OfferNotFoundError: If special doesn't exist
    """
    try:
        return (
            annotated_specials()
            .prefetch_related('media')
            .get(id=special_id)
        )
    except Special.DoesNotExist:
        raise OfferNotFoundError(f"Special {special_id} not found")
