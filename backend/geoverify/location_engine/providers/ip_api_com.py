from geoverify.location_engine.providers.base import BaseGeolocationProvider


class IpApiComProvider(BaseGeolocationProvider):
    name = 'ip-api.com'
    # The free tier is HTTP only.
    url_template = 'http://ip-api.com/json/{ip}'
    self_lookup_url = 'http://ip-api.com/json/'

    def build_params(self, ip):
        return {'fields': 'status,message,country,countryCode,query'}

    def parse(self, payload):
        if payload.get('status') == 'fail':
            raise self.fail(str(payload.get('message') or 'IP lookup failed'))

        return self.success(
            country_code=payload.get('countryCode'),
            country_name=payload.get('country'),
            ip=payload.get('query'),
        )
