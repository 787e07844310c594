from django.contrib import admin
from django.utils.html import format_html

from .models import ClaimStatus, Special, SpecialClaim, SpecialEvent, SpecialMedia
from .services import claims_left
from .services.offer_store import annotated_specials


class SpecialMediaInline(admin.TabularInline):
    """Gallery images within a special."""
    model = SpecialMedia
    extra = 0
    fields = ['url', 'alt_text', 'position']


@admin.register(Special)
class SpecialAdmin(admin.ModelAdmin):
    """
    Admin interface for specials.

    Claim counts are derived from the claim ledger, never edited here.
    """

    list_display = [
        'title',
        'business',
        'valid_from',
        'valid_until',
        'max_claims_total',
        'get_claims_count',
        'get_claims_left',
        'priority',
        'is_active',
    ]
    list_filter = ['is_active', 'discount_type', 'per_visit', 'business__entity_type']
    search_fields = ['title', 'description', 'business__name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [SpecialMediaInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'business', 'title', 'subtitle', 'description')
        }),
        ('Discount', {
            'fields': ('discount_type', 'discount_value', 'discount_label')
        }),
        ('Availability', {
            'fields': ('valid_from', 'valid_until', 'max_claims_total', 'per_visit', 'priority', 'is_active')
        }),
        ('Terms', {
            'fields': ('requires_code', 'code_hint', 'terms', 'hero_image_url'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        return annotated_specials()

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.has_claims():
            readonly += [field.removesuffix('_id') for field in Special.FROZEN_ONCE_CLAIMED]
        return readonly

    def get_claims_count(self, obj):
        return obj.claims_count
    get_claims_count.short_description = 'Claims'
    get_claims_count.admin_order_field = 'claims_count'

    def get_claims_left(self, obj):
        left = claims_left(obj.max_claims_total, obj.claims_count)
        return '∞' if obj.max_claims_total is None else left
    get_claims_left.short_description = 'Left'


@admin.register(SpecialClaim)
class SpecialClaimAdmin(admin.ModelAdmin):
    """Read-only view of the claim ledger."""

    list_display = ['id', 'special', 'get_claimant', 'status_badge', 'claimed_at', 'status_changed_at']
    list_filter = ['status', 'claimed_at']
    search_fields = ['special__title', 'user__email', 'guest_session_id', 'idempotency_key']
    list_select_related = ['special', 'special__business', 'user']

    def get_claimant(self, obj):
        return obj.user.email if obj.user_id else f"guest:{obj.guest_session_id}"
    get_claimant.short_description = 'Claimant'

    def status_badge(self, obj):
        colors = {
            ClaimStatus.CLAIMED: '#E5C49A',
            ClaimStatus.REDEEMED: '#6B8E5E',
            ClaimStatus.CANCELLED: '#B85C5C',
        }
        return format_html(
            '<span style="background: {}; padding: 3px 8px; border-radius: 10px; '
            'font-size: 11px;">{}</span>',
            colors.get(obj.status, '#ccc'), obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    # Ledger rows only change through the claim services
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SpecialEvent)
class SpecialEventAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'special', 'user', 'guest_session_id', 'occurred_at']
    list_filter = ['event_type', 'occurred_at']
    search_fields = ['special__title', 'user__email', 'guest_session_id']
    readonly_fields = ['occurred_at']
