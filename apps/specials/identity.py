"""Resolve the claimant and audit metadata of an API request."""

from django.conf import settings

from .services import Claimant, ClaimMetadata, ClaimValidationError


def guest_session_from_request(request):
    header = settings.SPECIALS_GUEST_SESSION_HEADER
    return (request.headers.get(header) or '').strip() or None


def optional_claimant_from_request(request):
    """
    Signed-in user first, then guest session header, else None.

    Raises:
        ClaimValidationError: Guest session id too long to store
    """
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return Claimant.for_user(user.id)

    guest_session_id = guest_session_from_request(request)
    if guest_session_id:
        return Claimant.for_guest(guest_session_id)

    return None


def viewer_from_request(request):
    """Claimant to attribute a view to; an unusable guest id counts as anonymous."""
    try:
        return optional_claimant_from_request(request)
    except ClaimValidationError:
        return None


def claimant_from_request(request):
    """
    Claimant for an operation that requires one.

    Raises:
        ClaimValidationError: Neither a signed-in user nor a guest session,
            or a guest session id too long to store
    """
    claimant = optional_claimant_from_request(request)
    if claimant is None:
        raise ClaimValidationError(
            f"Sign in or send the {settings.SPECIALS_GUEST_SESSION_HEADER} header to claim."
        )
    return claimant


def metadata_from_request(request):
    return ClaimMetadata(
        ip_address=request.META.get('REMOTE_ADDR') or None,
        user_agent=request.headers.get('User-Agent', ''),
    )
