from __future__ import annotations

from django.db import models


class GeocodeCacheEntry(models.Model):
    objects = models.Manager["GeocodeCacheEntry"]()

    # Canonical lower-cased "city, state"
    location_key = models.CharField(max_length=255, unique=True)
    latitude = models.FloatField()
    longitude = models.FloatField()
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    hit_count = models.PositiveIntegerField(default=0)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("location_key",)
        verbose_name_plural = "geocode cache entries"

    def __str__(self) -> str:
        return f"{self.location_key} ({self.latitude:.5f}, {self.longitude:.5f})"
