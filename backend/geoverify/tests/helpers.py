from geoverify.location_engine.engine import LocationVerifier
from geoverify.location_engine.tables import load_tables
from geoverify.location_engine.types import BrowserGeolocation, GeolocationResult


class StubResolver:
    def __init__(self, result: GeolocationResult):
        self.result = result
        self.calls = []

    async def resolve(self, ip=None):
        self.calls.append(ip)
        return self.result


def resolves_to(country_code, ip='41.0.0.1'):
    return StubResolver(GeolocationResult(success=True, country_code=country_code, ip=ip, provider='stub'))


def lookup_fails():
    return StubResolver(GeolocationResult.failure('All geolocation services failed.'))


def verifier_for(resolver, **overrides):
    return LocationVerifier(tables=load_tables(), resolver=resolver, **overrides)


def location(latitude, longitude, accuracy=25.0):
    return BrowserGeolocation(latitude=latitude, longitude=longitude, accuracy=accuracy, timestamp=1700000000000)


# Inside the South Africa box, nowhere near an edge.
JOHANNESBURG = (-26.2041, 28.0473)
# North of the South Africa box by 0.3 degrees.
JUST_NORTH_OF_ZA = (-21.8, 28.3)
# Well north of the South Africa box and away from every edge line.
FAR_NORTH_OF_ZA = (-15.5, 28.3)
