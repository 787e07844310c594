from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class EntityType(models.TextChoices):
    RESTAURANT = 'restaurant', 'Restaurant'
    SYNAGOGUE = 'synagogue', 'Synagogue'
    MIKVAH = 'mikvah', 'Mikvah'
    STORE = 'store', 'Store'


class Business(models.Model):
    """
    Directory listing that specials belong to.

    Listings are maintained by the directory service; specials only read
    the contact and location fields for display.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    entity_type = models.CharField(max_length=20, choices=EntityType.choices, default=EntityType.RESTAURANT)

    # Location
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)

    # Contact
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    website = models.URLField(blank=True)
    facebook_url = models.URLField(blank=True)
    instagram_url = models.URLField(blank=True)
    whatsapp_url = models.URLField(blank=True)

    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('5.00'))]
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'businesses'
        indexes = [
            models.Index(fields=['entity_type'], name='businesses_type_idx'),
            models.Index(fields=['name'], name='businesses_name_idx'),
        ]
        ordering = ['name']
        verbose_name_plural = 'businesses'

    def __str__(self):
        return f"{self.name} ({self.get_entity_type_display()})"

    @property
    def price_range(self):
        """Rough price tier derived from the listing rating."""
        if self.rating is None:
            return '$'
        if self.rating >= Decimal('4.5'):
            return '$$$'
        if self.rating >= Decimal('3.5'):
            return '$$'
        return '$'
