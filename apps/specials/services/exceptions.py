"""
Domain exceptions for the specials claim engine.

Every error carries a stable ``kind`` so the UI can tell "fully claimed"
apart from "already claimed by you", plus the HTTP status the API layer
answers with.
"""


class SpecialsServiceError(Exception):
    """Base exception for all specials service errors."""
    kind = 'specials_error'
    status_code = 400
    default_message = 'Specials operation failed.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class OfferNotFoundError(SpecialsServiceError):
    """Special does not exist."""
    kind = 'offer_not_found'
    status_code = 404
    default_message = 'Special not found.'


class IneligibleClaimError(SpecialsServiceError):
    """Base for rejections decided by the eligibility checker."""
    status_code = 409


class OfferInactiveError(IneligibleClaimError):
    """Special has been switched off by the business."""
    kind = 'offer_inactive'
    default_message = 'This special offer is no longer active.'


class OfferNotYetValidError(IneligibleClaimError):
    """Claim attempted before valid_from."""
    kind = 'offer_not_yet_valid'
    default_message = 'This special offer has not started yet.'


class OfferExpiredError(IneligibleClaimError):
    """Claim attempted after valid_until."""
    kind = 'offer_expired'
    default_message = 'This special offer has expired.'


class SoldOutError(IneligibleClaimError):
    """Every unit of capacity is held by an active claim."""
    kind = 'sold_out'
    default_message = 'This special offer has been fully claimed.'


class AlreadyClaimedError(IneligibleClaimError):
    """Claimant already holds an active claim on a single-use special."""
    kind = 'already_claimed'
    default_message = 'You have already claimed this special offer.'


class TransientError(SpecialsServiceError):
    """Retryable failure; nothing was written."""
    kind = 'transient_error'
    status_code = 503
    default_message = 'The claim could not be processed right now. Please retry.'


class LockTimeoutError(TransientError):
    """Waited too long for another claim on the same special to finish."""
    kind = 'lock_timeout'
    default_message = 'This special is busy right now. Please retry.'


class StorageError(TransientError):
    """Database failure inside the claim transaction."""
    kind = 'storage_error'


class ClaimValidationError(SpecialsServiceError):
    """Malformed claim request (missing or conflicting claimant identity)."""
    kind = 'validation_error'
    status_code = 400
    default_message = 'Invalid claim request.'


class ClaimNotFoundError(SpecialsServiceError):
    """Claim does not exist or belongs to someone else."""
    kind = 'claim_not_found'
    status_code = 404
    default_message = 'Claim not found.'


class InvalidClaimTransitionError(SpecialsServiceError):
    """Claim is already redeemed or cancelled."""
    kind = 'invalid_transition'
    status_code = 409
    default_message = 'This claim can no longer change status.'


class IdempotencyConflictError(SpecialsServiceError):
    """Idempotency key was already used by another claimant on this special."""
    kind = 'idempotency_conflict'
    status_code = 409
    default_message = 'This idempotency key has already been used.'
