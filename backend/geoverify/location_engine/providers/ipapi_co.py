from geoverify.location_engine.providers.base import BaseGeolocationProvider


class IpapiCoProvider(BaseGeolocationProvider):
    name = 'ipapi.co'
    url_template = 'https://ipapi.co/{ip}/json/'
    self_lookup_url = 'https://ipapi.co/json/'

    def parse(self, payload):
        if payload.get('error'):
            raise self.fail(str(payload.get('reason') or 'IP lookup failed'))

        return self.success(
            country_code=payload.get('country_code'),
            country_name=payload.get('country_name'),
            ip=payload.get('ip'),
        )
