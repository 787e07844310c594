from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from apps.directory.models import Business, EntityType
from .models import Special, SpecialClaim, SpecialMedia
from .services import SORT_FIELDS, claims_left, claims_left_for_display


# =============================================================================
# Input Serializers
# =============================================================================

class SpecialListQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the specials list.

    Query Parameters:
        sort_by (str): priority, claims_total, valid_until or created_at
        sort_order (str): asc or desc
        active_only (bool): Only claimable specials (default true)
    """

    sort_by = serializers.ChoiceField(choices=list(SORT_FIELDS), default='priority')
    sort_order = serializers.ChoiceField(choices=['asc', 'desc'], default='desc')
    active_only = serializers.BooleanField(default=True)


class SpecialSearchQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for special search.

    Query Parameters:
        q (str): Text matched against title, description and business name
        category (str): Business entity type
        business_id (UUID): Only this business's specials
        active_only (bool): Only claimable specials (default true)
    """

    q = serializers.CharField(max_length=200, required=False, allow_blank=True)
    category = serializers.CharField(max_length=20, required=False, allow_blank=True)
    business_id = serializers.UUIDField(required=False)
    active_only = serializers.BooleanField(default=True)

    def validate_category(self, value):
        if value and value.lower() not in EntityType.values:
            raise serializers.ValidationError(
                f"Unknown category. Choose one of: {', '.join(EntityType.values)}"
            )
        return value


class ClaimRequestSerializer(serializers.Serializer):
    """
    Validate the claim request body.

    Fields:
        idempotency_key (str): Optional client token for safe retries
    """

    idempotency_key = serializers.CharField(
        max_length=128,
        required=False,
        allow_blank=True,
        help_text="Reuse the same key when retrying a claim",
    )


# =============================================================================
# Output Serializers
# =============================================================================

class BusinessSummarySerializer(serializers.ModelSerializer):
    """Business metadata shown with each special."""

    price_range = serializers.CharField(read_only=True)

    class Meta:
        model = Business
        fields = [
            'id',
            'name',
            'entity_type',
            'address',
            'city',
            'state',
            'zip_code',
            'phone',
            'email',
            'website',
            'facebook_url',
            'instagram_url',
            'whatsapp_url',
            'rating',
            'price_range',
        ]
        read_only_fields = fields


class SpecialMediaSerializer(serializers.ModelSerializer):

    class Meta:
        model = SpecialMedia
        fields = ['id', 'url', 'alt_text', 'position']
        read_only_fields = fields


class SpecialListSerializer(serializers.ModelSerializer):
    """
    Special with derived availability.

    Expects a queryset annotated with claims_count and views_count.
    """

    business = BusinessSummarySerializer(read_only=True)
    claims_count = serializers.IntegerField(read_only=True)
    views_count = serializers.IntegerField(read_only=True)
    claims_left = serializers.SerializerMethodField()
    is_expiring = serializers.SerializerMethodField()

    class Meta:
        model = Special
        fields = [
            'id',
            'business',
            'title',
            'subtitle',
            'description',
            'discount_type',
            'discount_value',
            'discount_label',
            'valid_from',
            'valid_until',
            'max_claims_total',
            'per_visit',
            'priority',
            'requires_code',
            'code_hint',
            'terms',
            'hero_image_url',
            'is_active',
            'claims_count',
            'claims_left',
            'views_count',
            'is_expiring',
            'created_at',
        ]
        read_only_fields = fields

    def get_claims_left(self, obj) -> int | None:
        return claims_left_for_display(claims_left(obj.max_claims_total, obj.claims_count))

    def get_is_expiring(self, obj) -> bool:
        now = timezone.now()
        window = timedelta(days=settings.SPECIALS_EXPIRING_WINDOW_DAYS)
        return now <= obj.valid_until <= now + window


class SpecialDetailSerializer(SpecialListSerializer):
    """Special with its gallery."""

    gallery = SpecialMediaSerializer(source='media', many=True, read_only=True)

    class Meta(SpecialListSerializer.Meta):
        fields = SpecialListSerializer.Meta.fields + ['gallery', 'updated_at']
        read_only_fields = fields


class ClaimSerializer(serializers.ModelSerializer):

    class Meta:
        model = SpecialClaim
        fields = ['id', 'status', 'claimed_at']
        read_only_fields = fields


class ClaimedSpecialSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    business_name = serializers.CharField()
    claims_left = serializers.IntegerField(allow_null=True)


class ClaimResponseSerializer(serializers.Serializer):
    """Body returned by a successful claim."""

    claim = ClaimSerializer()
    special = ClaimedSpecialSerializer()


class MyClaimSerializer(serializers.ModelSerializer):
    """Claim as listed for its claimant."""

    special_id = serializers.UUIDField(source='special.id', read_only=True)
    special_title = serializers.CharField(source='special.title', read_only=True)
    business_name = serializers.CharField(source='special.business.name', read_only=True)
    valid_until = serializers.DateTimeField(source='special.valid_until', read_only=True)

    class Meta:
        model = SpecialClaim
        fields = [
            'id',
            'status',
            'claimed_at',
            'status_changed_at',
            'special_id',
            'special_title',
            'business_name',
            'valid_until',
        ]
        read_only_fields = fields


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    kind = serializers.CharField()
