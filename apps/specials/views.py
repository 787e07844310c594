import logging
import uuid

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from .identity import claimant_from_request, metadata_from_request, viewer_from_request
from .serializers import (
    ClaimRequestSerializer,
    ClaimResponseSerializer,
    ClaimSerializer,
    ErrorResponseSerializer,
    MyClaimSerializer,
    SpecialDetailSerializer,
    SpecialListQuerySerializer,
    SpecialListSerializer,
    SpecialSearchQuerySerializer,
)
from .services import (
    SpecialsServiceError,
    ClaimValidationError,
    cancel_claim,
    claim_special,
    claims_left_for_display,
    get_claimant_claims,
    get_special_detail,
    list_specials,
    record_view,
    redeem_claim,
    search_specials,
)

logger = logging.getLogger(__name__)


class SpecialPagination(LimitOffsetPagination):
    """limit/offset pagination for specials."""
    default_limit = settings.SPECIALS_DEFAULT_PAGE_SIZE
    max_limit = settings.SPECIALS_MAX_PAGE_SIZE


def _error_response(exc):
    return Response({'error': str(exc), 'kind': exc.kind}, status=exc.status_code)


def _invalid_params_response(errors):
    return Response(
        {'error': 'Invalid request parameters.', 'kind': 'validation_error', 'details': errors},
        status=status.HTTP_400_BAD_REQUEST
    )


def _parse_id(value):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ClaimValidationError(f"'{value}' is not a valid id.")


def _paginated(request, queryset, serializer_class):
    paginator = SpecialPagination()
    page = paginator.paginate_queryset(queryset, request)
    serializer = serializer_class(page, many=True)
    return paginator.get_paginated_response(serializer.data)


@extend_schema(
    parameters=[SpecialListQuerySerializer],
    responses={
        200: SpecialListSerializer(many=True),
        400: ErrorResponseSerializer,
    },
    description="List specials with derived claim counts. Paginated with limit/offset.",
    tags=['specials'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def special_list(request):
    """List specials using service layer."""
    params = SpecialListQuerySerializer(data=request.query_params)
    if not params.is_valid():
        return _invalid_params_response(params.errors)

    specials = list_specials(**params.validated_data)
    return _paginated(request, specials, SpecialListSerializer)


@extend_schema(
    parameters=[SpecialSearchQuerySerializer],
    responses={
        200: SpecialListSerializer(many=True),
        400: ErrorResponseSerializer,
    },
    description="Search specials by text, business category or business.",
    tags=['specials'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def special_search(request):
    """Search specials using service layer."""
    params = SpecialSearchQuerySerializer(data=request.query_params)
    if not params.is_valid():
        return _invalid_params_response(params.errors)

    specials = search_specials(**params.validated_data)
    return _paginated(request, specials, SpecialListSerializer)


@extend_schema(
    responses={
        200: SpecialDetailSerializer,
        404: ErrorResponseSerializer,
    },
    description="Get a special with its gallery. Each call records a view.",
    tags=['specials'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def special_detail(request, special_id):
    """Get special detail and record the view."""
    try:
        special = get_special_detail(_parse_id(special_id))
    except SpecialsServiceError as e:
        return _error_response(e)

    data = SpecialDetailSerializer(special).data

    record_view(
        special_id=special.id,
        claimant=viewer_from_request(request),
        metadata=metadata_from_request(request),
    )
    return Response(data)


@extend_schema(
    request=ClaimRequestSerializer,
    responses={
        201: ClaimResponseSerializer,
        200: ClaimResponseSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
        503: ErrorResponseSerializer,
    },
    description=(
        "Claim one unit of a special as the signed-in user or as the guest "
        "session in the X-Guest-Session header. Returns 200 when the same "
        "idempotency_key is replayed."
    ),
    tags=['specials'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def special_claim(request, special_id):
    """Claim a special using service layer."""
    body = ClaimRequestSerializer(data=request.data)
    if not body.is_valid():
        return _invalid_params_response(body.errors)

    try:
        result = claim_special(
            special_id=_parse_id(special_id),
            claimant=claimant_from_request(request),
            metadata=metadata_from_request(request),
            idempotency_key=body.validated_data.get('idempotency_key') or None,
        )
    except SpecialsServiceError as e:
        return _error_response(e)

    special = result.claim.special
    response = ClaimResponseSerializer({
        'claim': result.claim,
        'special': {
            'id': special.id,
            'title': special.title,
            'business_name': special.business.name,
            'claims_left': claims_left_for_display(result.claims_left),
        },
    })
    return Response(
        response.data,
        status=status.HTTP_200_OK if result.replayed else status.HTTP_201_CREATED
    )


@extend_schema(
    request=None,
    responses={
        200: ClaimSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Cancel your own claim, releasing its unit of capacity.",
    tags=['specials'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def claim_cancel(request, claim_id):
    """Cancel a claim using service layer."""
    try:
        claim = cancel_claim(claim_id=_parse_id(claim_id), claimant=claimant_from_request(request))
    except SpecialsServiceError as e:
        return _error_response(e)

    return Response(ClaimSerializer(claim).data)


@extend_schema(
    request=None,
    responses={
        200: ClaimSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Mark a claim as redeemed at the business. Staff only.",
    tags=['specials'],
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def claim_redeem(request, claim_id):
    """Redeem a claim using service layer."""
    try:
        claim = redeem_claim(claim_id=_parse_id(claim_id))
    except SpecialsServiceError as e:
        return _error_response(e)

    logger.info("Claim %s redeemed by staff user %s", claim.id, request.user.id)
    return Response(ClaimSerializer(claim).data)


@extend_schema(
    responses={
        200: MyClaimSerializer(many=True),
        400: ErrorResponseSerializer,
    },
    description="List the claims of the signed-in user or guest session.",
    tags=['specials'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def my_claims(request):
    """Get claimant's claims using service layer."""
    try:
        claims = get_claimant_claims(claimant=claimant_from_request(request))
    except SpecialsServiceError as e:
        return _error_response(e)

    return Response(MyClaimSerializer(claims, many=True).data)
