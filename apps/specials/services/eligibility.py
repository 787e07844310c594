"""
Claim eligibility decision.

Pure function over a special snapshot and ledger counts. It only protects
capacity when the inputs were read inside the claim coordinator's lock;
anywhere else the answer is advisory.

Checks run in a fixed order so overlapping rejections are deterministic:

    inactive -> not yet valid -> expired -> sold out -> already claimed

A claimant who already holds the last unit of a single-use special is
therefore told ``sold_out``, not ``already_claimed``.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from .availability import is_sold_out
from .exceptions import (
    AlreadyClaimedError,
    OfferExpiredError,
    OfferInactiveError,
    OfferNotYetValidError,
    SoldOutError,
)


class IneligibilityReason(enum.Enum):
    OFFER_INACTIVE = 'offer_inactive'
    OFFER_NOT_YET_VALID = 'offer_not_yet_valid'
    OFFER_EXPIRED = 'offer_expired'
    SOLD_OUT = 'sold_out'
    ALREADY_CLAIMED = 'already_claimed'


_REASON_ERRORS = {
    IneligibilityReason.OFFER_INACTIVE: OfferInactiveError,
    IneligibilityReason.OFFER_NOT_YET_VALID: OfferNotYetValidError,
    IneligibilityReason.OFFER_EXPIRED: OfferExpiredError,
    IneligibilityReason.SOLD_OUT: SoldOutError,
    IneligibilityReason.ALREADY_CLAIMED: AlreadyClaimedError,
}


@dataclass(frozen=True)
class Eligibility:
    reason: Optional[IneligibilityReason] = None

    @property
    def is_eligible(self):
        return self.reason is None

    def raise_if_ineligible(self):
        if self.reason is not None:
            raise _REASON_ERRORS[self.reason]()


ELIGIBLE = Eligibility()


def check_eligibility(
    *,
    special,
    active_claim_count: int,
    has_active_claim_for_claimant: bool,
    now,
) -> Eligibility:
    """
    Decide whether a new claim on ``special`` is allowed.

    Args:
        special: Object with is_active, valid_from, valid_until,
            max_claims_total and per_visit
        active_claim_count: Active claims on the special
        has_active_claim_for_claimant: Whether this claimant holds one
        now: Decision time

    Returns:
        ELIGIBLE or an Eligibility carrying the first failing reason
    """
    if not special.is_active:
        return Eligibility(IneligibilityReason.OFFER_INACTIVE)

    if now < special.valid_from:
        return Eligibility(IneligibilityReason.OFFER_NOT_YET_VALID)

    if now > special.valid_until:
        return Eligibility(IneligibilityReason.OFFER_EXPIRED)

    if is_sold_out(special.max_claims_total, active_claim_count):
        return Eligibility(IneligibilityReason.SOLD_OUT)

    if not special.per_visit and has_active_claim_for_claimant:
        return Eligibility(IneligibilityReason.ALREADY_CLAIMED)

    return ELIGIBLE
