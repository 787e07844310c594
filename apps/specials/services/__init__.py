"""Services for the specials claim engine."""

from .exceptions import (
    SpecialsServiceError,
    OfferNotFoundError,
    IneligibleClaimError,
    OfferInactiveError,
    OfferNotYetValidError,
    OfferExpiredError,
    SoldOutError,
    AlreadyClaimedError,
    TransientError,
    LockTimeoutError,
    StorageError,
    ClaimValidationError,
    ClaimNotFoundError,
    InvalidClaimTransitionError,
    IdempotencyConflictError,
)
from .claimants import (
    Claimant,
    ClaimMetadata,
)
from .availability import (
    UNBOUNDED,
    claims_left,
    is_sold_out,
    claims_left_for_display,
)
from .eligibility import (
    ELIGIBLE,
    Eligibility,
    IneligibilityReason,
    check_eligibility,
)
from .claim_coordinator import (
    ClaimResult,
    claim_special,
    redeem_claim,
    cancel_claim,
    get_claimant_claims,
)
from .engagement import (
    record_event,
    record_view,
)
from .catalog import (
    SORT_FIELDS,
    list_specials,
    search_specials,
    get_special_detail,
)

__all__ = [
    # Exceptions
    'SpecialsServiceError',
    'OfferNotFoundError',
    'IneligibleClaimError',
    'OfferInactiveError',
    'OfferNotYetValidError',
    'OfferExpiredError',
    'SoldOutError',
    'AlreadyClaimedError',
    'TransientError',
    'LockTimeoutError',
    'StorageError',
    'ClaimValidationError',
    'ClaimNotFoundError',
    'InvalidClaimTransitionError',
    'IdempotencyConflictError',
    # Claimants
    'Claimant',
    'ClaimMetadata',
    # Availability
    'UNBOUNDED',
    'claims_left',
    'is_sold_out',
    'claims_left_for_display',
    # Eligibility
    'ELIGIBLE',
    'Eligibility',
    'IneligibilityReason',
    'check_eligibility',
    # Claims
    'ClaimResult',
    'claim_special',
    'redeem_claim',
    'cancel_claim',
    'get_claimant_claims',
    # Engagement
    'record_event',
    'record_view',
    # Catalog
    'SORT_FIELDS',
    'list_specials',
    'search_specials',
    'get_special_detail',
]
