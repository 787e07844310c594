from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
import uuid


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED_AMOUNT = 'fixed_amount', 'Fixed Amount'
    BOGO = 'bogo', 'Buy One Get One'
    FREE_ITEM = 'free_item', 'Free Item'
    OTHER = 'other', 'Other'


class ClaimStatus(models.TextChoices):
    CLAIMED = 'claimed', 'Claimed'
    REDEEMED = 'redeemed', 'Redeemed'
    CANCELLED = 'cancelled', 'Cancelled'


# Statuses that hold a unit of capacity and block a repeat claim
ACTIVE_CLAIM_STATUSES = (ClaimStatus.CLAIMED, ClaimStatus.REDEEMED)
TERMINAL_CLAIM_STATUSES = (ClaimStatus.REDEEMED, ClaimStatus.CANCELLED)


class EventType(models.TextChoices):
    VIEW = 'view', 'View'
    SHARE = 'share', 'Share'
    CLICK = 'click', 'Click'
    CLAIM = 'claim', 'Claim'


class Special(models.Model):
    """
    Promotional offer published by a directory business.

    Capacity is never stored as a counter; the number of claims taken is
    always derived from the SpecialClaim ledger.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    business = models.ForeignKey(
        'directory.Business',
        on_delete=models.CASCADE,
        related_name='specials'
    )

    title = models.CharField(max_length=200)
    subtitle = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)

    # Discount
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices, default=DiscountType.OTHER)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    discount_label = models.CharField(max_length=100, blank=True)

    # Validity window (inclusive on both ends)
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()

    # Capacity; null means unbounded
    max_claims_total = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)]
    )
    # When set, a claimant may hold several active claims at once
    per_visit = models.BooleanField(default=False)
    priority = models.IntegerField(default=0)

    # Terms
    requires_code = models.BooleanField(default=False)
    code_hint = models.CharField(max_length=200, blank=True)
    terms = models.TextField(blank=True)
    hero_image_url = models.URLField(blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Terms a claimant relied on; only is_active may change after the first claim
    FROZEN_ONCE_CLAIMED = ('business_id', 'valid_from', 'valid_until', 'max_claims_total', 'per_visit')

    class Meta:
        db_table = 'specials'
        constraints = [
            models.CheckConstraint(
                condition=Q(valid_from__lte=F('valid_until')),
                name='ck_special_valid_window',
            ),
        ]
        indexes = [
            models.Index(fields=['is_active', 'valid_from', 'valid_until'], name='specials_active_window_idx'),
            models.Index(fields=['business', 'is_active'], name='specials_business_idx'),
            models.Index(fields=['priority'], name='specials_priority_idx'),
        ]
        ordering = ['-priority', 'valid_until']

    def __str__(self):
        return f"{self.title} @ {self.business.name}"

    def clean(self):
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValidationError({'valid_until': 'valid_until must not be before valid_from.'})

        changed = self.changed_terms()
        if changed and self.has_claims():
            names = ', '.join(field.removesuffix('_id') for field in changed)
            raise ValidationError(
                f"Cannot change {names} once the special has claims; deactivate it instead."
            )

    def has_claims(self):
        if self._state.adding:
            return False
        return self.claims.exists()

    def changed_terms(self):
        """Claim-relevant fields that differ from the stored row."""
        if self._state.adding:
            return []
        stored = (
            type(self).objects
            .filter(pk=self.pk)
            .values(*self.FROZEN_ONCE_CLAIMED)
            .first()
        )
        if stored is None:
            return []
        return [
            field for field in self.FROZEN_ONCE_CLAIMED
            if getattr(self, field) != stored[field]
        ]

    def is_within_window(self, at=None):
        at = at or timezone.now()
        return self.valid_from <= at <= self.valid_until


class SpecialMedia(models.Model):
    """Gallery image attached to a special."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    special = models.ForeignKey(Special, on_delete=models.CASCADE, related_name='media')
    url = models.URLField()
    alt_text = models.CharField(max_length=200, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'special_media'
        ordering = ['position']

    def __str__(self):
        return f"{self.special.title} #{self.position}"


class SpecialClaimQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status__in=ACTIVE_CLAIM_STATUSES)

    def for_claimant(self, claimant):
        if claimant.user_id is not None:
            return self.filter(user_id=claimant.user_id)
        return self.filter(guest_session_id=claimant.guest_session_id)


class SpecialClaim(models.Model):
    """
    Ledger row: one claimant reserving one unit of a special.

    Rows are only ever inserted by the claim coordinator and only ever move
    from claimed to a terminal status.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    special = models.ForeignKey(Special, on_delete=models.CASCADE, related_name='claims')

    # Claimant: exactly one of user / guest session
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='special_claims'
    )
    guest_session_id = models.CharField(max_length=128, null=True, blank=True)

    status = models.CharField(max_length=20, choices=ClaimStatus.choices, default=ClaimStatus.CLAIMED)
    claimed_at = models.DateTimeField(default=timezone.now, editable=False)
    status_changed_at = models.DateTimeField(default=timezone.now)

    # Audit only, never used for eligibility
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)

    # Client-supplied token that makes retries of the same claim safe
    idempotency_key = models.CharField(max_length=128, null=True, blank=True)

    objects = SpecialClaimQuerySet.as_manager()

    class Meta:
        db_table = 'special_claims'
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(user__isnull=False, guest_session_id__isnull=True)
                    | Q(user__isnull=True, guest_session_id__isnull=False)
                ),
                name='ck_special_claim_one_claimant',
            ),
            models.UniqueConstraint(
                fields=['special', 'idempotency_key'],
                condition=Q(idempotency_key__isnull=False),
                name='uq_special_claim_idempotency_key',
            ),
        ]
        indexes = [
            models.Index(fields=['special', 'status'], name='special_claims_status_idx'),
            models.Index(fields=['special', 'user'], name='special_claims_user_idx'),
            models.Index(fields=['special', 'guest_session_id'], name='special_claims_guest_idx'),
        ]
        ordering = ['-claimed_at']

    def __str__(self):
        who = self.user_id or f"guest:{self.guest_session_id}"
        return f"{self.special_id} claimed by {who} ({self.status})"

    @property
    def is_active(self):
        return self.status in ACTIVE_CLAIM_STATUSES

    @property
    def is_terminal(self):
        return self.status in TERMINAL_CLAIM_STATUSES


class SpecialEvent(models.Model):
    """Engagement event (views, shares, clicks) used for analytics display."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    special = models.ForeignKey(Special, on_delete=models.CASCADE, related_name='events')
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='special_events'
    )
    guest_session_id = models.CharField(max_length=128, null=True, blank=True)
    event_type = models.CharField(max_length=20, choices=EventType.choices)
    occurred_at = models.DateTimeField(default=timezone.now)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = 'special_events'
        indexes = [
            models.Index(fields=['special', 'event_type'], name='special_events_type_idx'),
            models.Index(fields=['occurred_at'], name='special_events_time_idx'),
        ]
        ordering = ['-occurred_at']

    def __str__(self):
        return f"{self.event_type} on {self.special_id}"
