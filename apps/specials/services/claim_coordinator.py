"""
Claim coordinator: capacity-safe claiming of specials.

The race this module exists to prevent: two requests both read "one claim
left" and both insert, oversubscribing the special. Every claim therefore
runs inside ``claim_transaction`` (exclusive per special), re-reads the
special and ledger counts under that exclusivity, and only then decides.

Example:
    Claiming as a guest::

        from apps.specials.services import Claimant, claim_special

        result = claim_special(
            special_id=special.id,
            claimant=Claimant.for_guest('guest-session-123'),
        )
        print(result.claim.id, result.claims_left)
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import ClaimStatus, SpecialClaim
from .availability import claims_left
from .claimants import Claimant, ClaimMetadata
from .eligibility import check_eligibility
from .exceptions import (
    ClaimNotFoundError,
    IdempotencyConflictError,
    IneligibleClaimError,
    InvalidClaimTransitionError,
    LockTimeoutError,
    StorageError,
)
from .locking import claim_transaction, is_lock_timeout
from .offer_store import (
    count_active_claims,
    find_claim_by_idempotency_key,
    get_special_for_claim,
    has_active_claim,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a successful claim."""
    claim: SpecialClaim
    claims_left: object
    replayed: bool = False


def claim_special(
    *,
    special_id: UUID,
    claimant: Claimant,
    metadata: Optional[ClaimMetadata] = None,
    idempotency_key: Optional[str] = None,
    now=None,
) -> ClaimResult:
    """
    Claim one unit of a special for ``claimant``.

    This operation:
    1. Opens the per-special claim transaction (bounded lock wait)
    2. Locks and re-reads the special
    3. Replays a previous claim carrying the same idempotency key
    4. Counts active claims and the claimant's own active claim
    5. Runs the eligibility checker on that fresh state
    6. Inserts the claim row and commits

    Exactly one row is written on success and none on any rejection.

    Args:
        special_id: Special UUID
        claimant: User or guest session claiming
        metadata: Audit-only request details
        idempotency_key: Optional client token; a retry with the same key
            returns the original claim instead of claiming again
        now: Decision time (defaults to timezone.now())

    Returns:
        ClaimResult with the claim and post-write claims_left

    Raises:
        OfferNotFoundError: Special doesn't exist
        OfferInactiveError, OfferNotYetValidError, OfferExpiredError,
        SoldOutError, AlreadyClaimedError: Claim not allowed
        IdempotencyConflictError: Key already used by another claimant
        LockTimeoutError: Waited too long for the special's lock (retryable)
        StorageError: Database failure, rolled back (retryable)
    """
    metadata = metadata or ClaimMetadata()

    try:
        with claim_transaction(special_id):
            special = get_special_for_claim(special_id)
            now = now or timezone.now()

            if idempotency_key:
                previous = find_claim_by_idempotency_key(special, idempotency_key)
                if previous is not None:
                    return _replay(previous, special, claimant)

            active_count = count_active_claims(special)
            eligibility = check_eligibility(
                special=special,
                active_claim_count=active_count,
                has_active_claim_for_claimant=has_active_claim(special, claimant),
                now=now,
            )
            eligibility.raise_if_ineligible()

            claim = SpecialClaim.objects.create(
                special=special,
                status=ClaimStatus.CLAIMED,
                claimed_at=now,
                status_changed_at=now,
                idempotency_key=idempotency_key or None,
                **claimant.as_fields(),
                **metadata.as_fields(),
            )
            remaining = claims_left(special.max_claims_total, active_count + 1)

    except IneligibleClaimError as e:
        logger.info("Claim on special %s by %s rejected: %s", special_id, claimant, e.kind)
        raise
    except LockTimeoutError:
        logger.warning("Timed out waiting for claim lock on special %s", special_id)
        raise
    except DatabaseError as e:
        if is_lock_timeout(e):
            logger.warning("Timed out waiting for claim lock on special %s", special_id)
            raise LockTimeoutError() from e
        logger.exception("Storage failure while claiming special %s", special_id)
        raise StorageError() from e

    logger.info(
        "Special %s claimed by %s (claim %s, claims left %s)",
        special_id, claimant, claim.id, remaining,
    )
    return ClaimResult(claim=claim, claims_left=remaining)


def _replay(previous, special, claimant):
    """Return an earlier claim made with the same idempotency key."""
    same_claimant = (
        previous.user_id == claimant.user_id
        and previous.guest_session_id == claimant.guest_session_id
    )
    if not same_claimant:
        raise IdempotencyConflictError()

    remaining = claims_left(special.max_claims_total, count_active_claims(special))
    logger.info("Replayed claim %s on special %s for %s", previous.id, special.id, claimant)
    return ClaimResult(claim=previous, claims_left=remaining, replayed=True)


def _transition_claim(claim_id, new_status, *, claimant=None, now=None):
    try:
        claim = (
            SpecialClaim.objects
            .select_for_update()
            .get(id=claim_id)
        )
    except SpecialClaim.DoesNotExist:
        raise ClaimNotFoundError(f"Claim {claim_id} not found")

    # Someone else's claim looks the same as a missing one
    if claimant is not None and (
        claim.user_id != claimant.user_id
        or claim.guest_session_id != claimant.guest_session_id
    ):
        raise ClaimNotFoundError(f"Claim {claim_id} not found")

    if claim.is_terminal:
        raise InvalidClaimTransitionError(
            f"Claim is already {claim.status} and cannot become {new_status}"
        )

    claim.status = new_status
    claim.status_changed_at = now or timezone.now()
    claim.save(update_fields=['status', 'status_changed_at'])

    logger.info("Claim %s moved to %s", claim.id, new_status)
    return claim


@transaction.atomic
def redeem_claim(*, claim_id: UUID, now=None) -> SpecialClaim:
    """
    Mark a claim as used at the business.

    Raises:
        ClaimNotFoundError: If claim doesn't exist
        InvalidClaimTransitionError: If claim is already redeemed/cancelled
    """
    return _transition_claim(claim_id, ClaimStatus.REDEEMED, now=now)


@transaction.atomic
def cancel_claim(
    *,
    claim_id: UUID,
    claimant: Optional[Claimant] = None,
    now=None,
) -> SpecialClaim:
    """
    Void a claim, releasing its unit of capacity.

    Args:
        claim_id: Claim UUID
        claimant: When given, the claim must belong to this claimant
        now: Transition time

    Raises:
        ClaimNotFoundError: If claim doesn't exist or isn't the claimant's
        InvalidClaimTransitionError: If claim is already redeemed/cancelled
    """
    return _transition_claim(claim_id, ClaimStatus.CANCELLED, claimant=claimant, now=now)


def get_claimant_claims(*, claimant: Claimant):
    """All claims of a claimant, newest first."""
    return (
        SpecialClaim.objects
        .for_claimant(claimant)
        .select_related('special', 'special__business')
        .order_by('-claimed_at')
    )
