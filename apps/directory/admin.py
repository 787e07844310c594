from django.contrib import admin
from apps.directory.models import Business


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """Admin interface for directory listings."""

    list_display = ['name', 'entity_type', 'city', 'state', 'rating', 'is_active']
    list_filter = ['entity_type', 'is_active', 'state']
    search_fields = ['name', 'city', 'address']
    readonly_fields = ['created_at', 'updated_at']
