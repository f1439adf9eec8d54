from django.contrib import admin

from route_engine.models import GeocodeCacheEntry


@admin.register(GeocodeCacheEntry)
class GeocodeCacheEntryAdmin(admin.ModelAdmin):
    list_display = (
        "location_key",
        "latitude",
        "longitude",
        "hit_count",
        "updated_at",
    )
    list_filter = ("state",)
    search_fields = ("location_key", "city", "state")
    ordering = ("location_key",)
    readonly_fields = ("hit_count", "created_at", "updated_at")
