from __future__ import annotations

from rest_framework import serializers

from geoverify.location_engine.countries import normalize_country
from geoverify.location_engine.types import BrowserGeolocation


class BrowserLocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(min_value=0)
    timestamp = serializers.FloatField(required=False, allow_null=True, default=None)


class LocationVerifyRequestSerializer(serializers.Serializer):
    registered_country = serializers.CharField(max_length=64)
    ip_address = serializers.IPAddressField(required=False, allow_null=True, allow_blank=True, default=None)
    browser_location = BrowserLocationSerializer(required=False, allow_null=True, default=None)

    def validate_registered_country(self, value: str) -> str:
        normalized = normalize_country(value)
        if not normalized:
            raise serializers.ValidationError('A valid country code or country name is required.')
        return normalized

    def get_browser_location(self) -> BrowserGeolocation | None:
        data = self.validated_data.get('browser_location')
        if not data:
            return None
        return BrowserGeolocation.from_mapping(data)
