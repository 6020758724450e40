import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from geoverify.auth import ApiTokenPermission
from geoverify.location_engine import (
    get_country_from_ip,
    get_ip_from_request,
    is_detected_country_supported,
    recommended_action,
    verify_hybrid_location,
)
from geoverify.location_engine.countries import country_name
from geoverify.serializers import LocationVerifyRequestSerializer

logger = logging.getLogger(__name__)


def _client_ip(request) -> str | None:
    return get_ip_from_request(request) or request.META.get('REMOTE_ADDR') or None


class HealthAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'status': 'ok', 'timestamp': timezone.now(), 'version': settings.APP_VERSION})


class GeolocationAPIView(APIView):
    throttle_scope = 'lookup'
    authentication_classes = []
    permission_classes = [ApiTokenPermission]

    def get(self, request):
        ip_address = _client_ip(request)
        result = async_to_sync(get_country_from_ip)(ip_address)

        detected_country = result.country_code if result.success else None
        if detected_country is None:
            logger.info('Country detection unavailable for %s: %s', ip_address, result.error)

        return Response(
            {
                'ip': ip_address,
                'detected_country': detected_country,
                'country_name': result.country_name or country_name(detected_country),
                'is_supported': is_detected_country_supported(detected_country),
                'error': result.error,
            },
            status=status.HTTP_200_OK,
        )


class LocationVerifyAPIView(APIView):
    throttle_scope = 'verify'
    authentication_classes = []
    permission_classes = [ApiTokenPermission]

    def post(self, request):
        serializer = LocationVerifyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registered_country = serializer.validated_data['registered_country']
        ip_address = serializer.validated_data.get('ip_address') or _client_ip(request)
        location = serializer.get_browser_location()

        result = async_to_sync(verify_hybrid_location)(ip_address, location, registered_country)
        action = recommended_action(result.risk_score)
        logger.info(
            'Location verification for %s: method=%s verified=%s risk=%s action=%s flags=%s',
            registered_country,
            result.verification_method,
            result.verified,
            result.risk_score,
            action,
            ','.join(result.flags) or '-',
        )

        payload = result.to_dict()
        payload['recommendedAction'] = action
        return Response(payload, status=status.HTTP_200_OK)
