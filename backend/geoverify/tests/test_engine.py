from asgiref.sync import async_to_sync
from django.test import SimpleTestCase, override_settings

from geoverify.location_engine.engine import (
    LocationVerifier,
    get_verifier,
    recommended_action,
    verify_browser_location,
    verify_hybrid_location,
    verify_ip_location,
)
from geoverify.location_engine.tables import GeoTables, get_tables, load_tables
from geoverify.location_engine.types import BrowserGeolocation, Flag, RecommendedAction
from geoverify.tests.helpers import (
    FAR_NORTH_OF_ZA,
    JOHANNESBURG,
    JUST_NORTH_OF_ZA,
    location,
    lookup_fails,
    resolves_to,
    verifier_for,
)


class IpVerificationTests(SimpleTestCase):
    async def test_missing_ip_address(self):
        resolver = resolves_to('KE')
        result = await verifier_for(resolver).verify_ip_location(None, 'KE')

        self.assertFalse(result.verified)
        self.assertEqual(result.risk_score, 50)
        self.assertIn(Flag.NO_IP_ADDRESS, result.flags)
        self.assertEqual(result.verification_method, 'ip')
        self.assertEqual(resolver.calls, [])

    async def test_matching_country_is_clean(self):
        result = await verifier_for(resolves_to('ZA')).verify_ip_location('41.0.0.1', 'ZA')

        self.assertTrue(result.verified)
        self.assertEqual(result.risk_score, 0)
        self.assertEqual(result.flags, ())
        self.assertEqual(result.verification_method, 'ip')
        self.assertEqual(result.detected_country, 'ZA')
        self.assertEqual(result.ip_address, '41.0.0.1')
        self.assertEqual(result.message, 'Location verified')

    async def test_country_mismatch(self):
        result = await verifier_for(resolves_to('KE')).verify_ip_location('41.90.1.10', 'NG')

        self.assertFalse(result.verified)
        self.assertGreaterEqual(result.risk_score, 40)
        self.assertIn(Flag.COUNTRY_MISMATCH, result.flags)
        self.assertNotIn(Flag.NEIGHBORING_COUNTRY, result.flags)
        self.assertEqual(result.message, 'Location mismatch: detected KE, expected NG')

    async def test_neighbor_relief_lowers_but_does_not_clear_risk(self):
        neighbor = await verifier_for(resolves_to('ZA')).verify_ip_location('41.0.0.1', 'NA')
        stranger = await verifier_for(resolves_to('KE')).verify_ip_location('41.0.0.1', 'NA')

        self.assertIn(Flag.NEIGHBORING_COUNTRY, neighbor.flags)
        self.assertIn(Flag.COUNTRY_MISMATCH, neighbor.flags)
        self.assertLess(neighbor.risk_score, stranger.risk_score)
        self.assertEqual(neighbor.risk_score, 30)
        self.assertFalse(neighbor.verified)

    async def test_suspicious_prefix_adds_risk(self):
        result = await verifier_for(resolves_to('ZA')).verify_ip_location('104.16.0.1', 'ZA')

        self.assertEqual(result.flags, (Flag.SUSPICIOUS_IP_PATTERN,))
        self.assertEqual(result.risk_score, 20)
        self.assertTrue(result.verified)

    async def test_registered_country_is_normalized(self):
        result = await verifier_for(resolves_to('ZA')).verify_ip_location('41.0.0.1', ' za ')

        self.assertEqual(result.registered_country, 'ZA')
        self.assertTrue(result.verified)

    async def test_lookup_failure_discards_earlier_signals_by_default(self):
        result = await verifier_for(lookup_fails()).verify_ip_location('10.1.2.3', 'ZA')

        self.assertFalse(result.verified)
        self.assertEqual(result.risk_score, 60)
        self.assertEqual(result.flags, (Flag.GEOLOCATION_FAILED,))
        self.assertEqual(result.ip_address, '10.1.2.3')

    async def test_lookup_failure_can_accumulate_risk(self):
        verifier = verifier_for(lookup_fails(), accumulate_risk_on_lookup_failure=True)
        result = await verifier.verify_ip_location('10.1.2.3', 'ZA')

        self.assertEqual(result.risk_score, 90)
        self.assertEqual(result.flags, (Flag.VPN_DETECTED, Flag.GEOLOCATION_FAILED))

    async def test_vpn_signal_when_lookup_succeeds(self):
        tables = GeoTables.from_mapping({'version': 'test', 'vpn_networks': ['41.0.0.0/8']})
        verifier = LocationVerifier(tables=tables, resolver=resolves_to('ZA'))

        result = await verifier.verify_ip_location('41.0.0.1', 'ZA')

        self.assertEqual(result.flags, (Flag.VPN_DETECTED,))
        self.assertEqual(result.risk_score, 30)
        self.assertTrue(result.verified)

    async def test_malformed_address_is_an_error_without_a_lookup(self):
        for address in ('8.8.8.8/../../8.8.8.8/json/?x=', 'not-an-ip', '   '):
            with self.subTest(address=address):
                resolver = resolves_to('US')
                result = await verifier_for(resolver).verify_ip_location(address, 'ZA')

                self.assertFalse(result.verified)
                self.assertEqual(result.risk_score, 70)
                self.assertEqual(result.flags, (Flag.VERIFICATION_ERROR,))
                self.assertEqual(result.message, 'Invalid IP address')
                self.assertIsNone(result.ip_address)
                self.assertEqual(resolver.calls, [])

    async def test_private_address_still_goes_through_lookup(self):
        resolver = lookup_fails()
        result = await verifier_for(resolver).verify_ip_location('localhost', 'ZA')

        self.assertEqual(result.flags, (Flag.GEOLOCATION_FAILED,))
        self.assertEqual(result.risk_score, 60)
        self.assertEqual(resolver.calls, ['localhost'])

    async def test_unexpected_error_becomes_result(self):
        class ExplodingTables:
            vpn_networks = None

        verifier = LocationVerifier(tables=ExplodingTables(), resolver=resolves_to('ZA'))
        result = await verifier.verify_ip_location('41.0.0.1', 'ZA')

        self.assertFalse(result.verified)
        self.assertEqual(result.risk_score, 70)
        self.assertEqual(result.flags, (Flag.VERIFICATION_ERROR,))


class BrowserVerificationTests(SimpleTestCase):
    def setUp(self):
        self.verifier = verifier_for(resolves_to('ZA'))

    async def test_inside_country(self):
        result = await self.verifier.verify_browser_location(location(*JOHANNESBURG), 'ZA')

        self.assertTrue(result.verified)
        self.assertEqual(result.risk_score, 0)
        self.assertEqual(result.flags, ())
        self.assertEqual(result.verification_method, 'browser')

    async def test_unknown_country_boundaries(self):
        result = await self.verifier.verify_browser_location(location(*JOHANNESBURG), 'FR')

        self.assertFalse(result.verified)
        self.assertEqual(result.risk_score, 50)
        self.assertEqual(result.flags, (Flag.COUNTRY_BOUNDARIES_UNKNOWN,))

    async def test_whole_degree_latitude_is_spoofing(self):
        for accuracy in (0.5, 20.0, 5000.0):
            with self.subTest(accuracy=accuracy):
                result = await self.verifier.verify_browser_location(location(1.0, 36.8172, accuracy), 'KE')
                self.assertIn(Flag.LOCATION_SPOOFING_DETECTED, result.flags)

    async def test_near_border_lowers_risk(self):
        near = await self.verifier.verify_browser_location(location(*JUST_NORTH_OF_ZA), 'ZA')
        far = await self.verifier.verify_browser_location(location(*FAR_NORTH_OF_ZA), 'ZA')

        self.assertIn(Flag.NEAR_BORDER, near.flags)
        self.assertNotIn(Flag.NEAR_BORDER, far.flags)
        self.assertIn(Flag.OUTSIDE_COUNTRY_BOUNDS, far.flags)
        self.assertEqual(near.risk_score, 35)
        self.assertEqual(far.risk_score, 50)
        self.assertFalse(near.verified)
        self.assertEqual(far.message, 'Location outside registered country')

    async def test_low_accuracy(self):
        result = await self.verifier.verify_browser_location(location(*JOHANNESBURG, accuracy=1500), 'ZA')

        self.assertEqual(result.flags, (Flag.LOW_ACCURACY,))
        self.assertEqual(result.risk_score, 10)
        self.assertTrue(result.verified)

    async def test_risk_is_capped(self):
        # Outside, far from edges, imprecise, and on a whole degree.
        result = await self.verifier.verify_browser_location(location(-10.0, 28.3, 5000), 'ZA')

        self.assertEqual(result.risk_score, 100)
        self.assertFalse(result.verified)

    async def test_malformed_location_becomes_error_result(self):
        bad = BrowserGeolocation(latitude='north', longitude=28.0, accuracy=10.0)

        result = await self.verifier.verify_browser_location(bad, 'ZA')

        self.assertEqual(result.risk_score, 70)
        self.assertEqual(result.flags, (Flag.VERIFICATION_ERROR,))
        self.assertEqual(result.verification_method, 'browser')


class HybridVerificationTests(SimpleTestCase):
    async def test_without_browser_location_returns_ip_result(self):
        verifier = verifier_for(resolves_to('ZA'))

        hybrid = await verifier.verify_hybrid_location('41.0.0.1', None, 'ZA')
        ip_only = await verifier.verify_ip_location('41.0.0.1', 'ZA')

        self.assertEqual(hybrid, ip_only)
        self.assertEqual(hybrid.verification_method, 'ip')

    async def test_agreement_lowers_risk_below_average(self):
        verifier = verifier_for(resolves_to('ZA'))
        ip_result = await verifier.verify_ip_location('104.16.0.1', 'ZA')
        browser_result = await verifier.verify_browser_location(location(*JOHANNESBURG, accuracy=1500), 'ZA')

        result = await verifier.verify_hybrid_location('104.16.0.1', location(*JOHANNESBURG, accuracy=1500), 'ZA')

        self.assertTrue(ip_result.verified and browser_result.verified)
        self.assertTrue(result.verified)
        self.assertLess(result.risk_score, (ip_result.risk_score + browser_result.risk_score) / 2)
        self.assertEqual(result.risk_score, 5)
        self.assertEqual(result.flags, (Flag.SUSPICIOUS_IP_PATTERN, Flag.LOW_ACCURACY))
        self.assertEqual(result.verification_method, 'hybrid')
        self.assertEqual(result.detected_country, 'ZA')

    async def test_ip_verified_browser_not(self):
        verifier = verifier_for(resolves_to('ZA'))

        result = await verifier.verify_hybrid_location('41.0.0.1', location(*FAR_NORTH_OF_ZA), 'ZA')

        # Average alone would be 25.
        self.assertFalse(result.verified)
        self.assertIn(Flag.VERIFICATION_MISMATCH, result.flags)
        self.assertEqual(result.risk_score, 45)
        self.assertEqual(result.verification_method, 'hybrid')

    async def test_browser_verified_ip_not(self):
        verifier = verifier_for(resolves_to('KE'))

        result = await verifier.verify_hybrid_location('41.0.0.1', location(*JOHANNESBURG), 'ZA')

        self.assertFalse(result.verified)
        self.assertEqual(result.flags, (Flag.COUNTRY_MISMATCH, Flag.VERIFICATION_MISMATCH))
        self.assertEqual(result.risk_score, 40)
        self.assertEqual(result.detected_country, 'KE')

    async def test_both_unverified(self):
        verifier = verifier_for(lookup_fails())

        result = await verifier.verify_hybrid_location('41.0.0.1', location(*FAR_NORTH_OF_ZA), 'ZA')

        self.assertFalse(result.verified)
        self.assertEqual(result.risk_score, 55)
        self.assertNotIn(Flag.VERIFICATION_MISMATCH, result.flags)
        self.assertEqual(result.flags, (Flag.GEOLOCATION_FAILED, Flag.OUTSIDE_COUNTRY_BOUNDS))
        self.assertEqual(result.message, 'Location could not be verified')

    async def test_repeated_calls_are_identical(self):
        verifier = verifier_for(resolves_to('KE'))
        loc = location(*JUST_NORTH_OF_ZA, accuracy=1200)

        for _ in range(2):
            first_ip = await verifier.verify_ip_location('45.1.2.3', 'ZA')
            second_ip = await verifier.verify_ip_location('45.1.2.3', 'ZA')
            first = await verifier.verify_hybrid_location('45.1.2.3', loc, 'ZA')
            second = await verifier.verify_hybrid_location('45.1.2.3', loc, 'ZA')
            first_browser = await verifier.verify_browser_location(loc, 'ZA')
            second_browser = await verifier.verify_browser_location(loc, 'ZA')

            self.assertEqual(first_ip, second_ip)
            self.assertEqual(first, second)
            self.assertEqual(first.to_dict(), second.to_dict())
            self.assertEqual(first_browser, second_browser)

    async def test_to_dict_uses_wire_names(self):
        verifier = verifier_for(resolves_to('ZA'))

        payload = (await verifier.verify_hybrid_location('41.0.0.1', location(*JOHANNESBURG), 'ZA')).to_dict()

        self.assertEqual(
            payload,
            {
                'verified': True,
                'registeredCountry': 'ZA',
                'detectedCountry': 'ZA',
                'ipAddress': '41.0.0.1',
                'verificationMethod': 'hybrid',
                'riskScore': 0,
                'flags': [],
                'message': 'Location verified by multiple methods',
            },
        )


class DefaultVerifierTests(SimpleTestCase):
    @override_settings(GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE=True)
    def test_policy_comes_from_settings(self):
        verifier = get_verifier(resolver=lookup_fails())

        self.assertTrue(verifier.accumulate_risk_on_lookup_failure)
        self.assertEqual(verifier.tables.version, load_tables().version)

    def test_unreadable_tables_become_error_results(self):
        get_tables.cache_clear()
        self.addCleanup(get_tables.cache_clear)

        async def verify_all():
            return (
                await verify_ip_location('41.0.0.1', 'za'),
                await verify_browser_location(location(*JOHANNESBURG), 'ZA'),
                await verify_hybrid_location('41.0.0.1', location(*JOHANNESBURG), 'ZA'),
            )

        with override_settings(GEOVERIFY_TABLES_FILE='/nonexistent/geo-tables.json'):
            ip_result, browser_result, hybrid_result = async_to_sync(verify_all)()

        self.assertEqual(ip_result.verification_method, 'ip')
        self.assertEqual(ip_result.registered_country, 'ZA')
        self.assertEqual(browser_result.verification_method, 'browser')
        self.assertEqual(hybrid_result.verification_method, 'hybrid')
        for result in (ip_result, browser_result, hybrid_result):
            self.assertFalse(result.verified)
            self.assertEqual(result.risk_score, 70)
            self.assertEqual(result.flags, (Flag.VERIFICATION_ERROR,))


class RecommendedActionTests(SimpleTestCase):
    def test_thresholds(self):
        cases = [
            (0, RecommendedAction.NONE),
            (49, RecommendedAction.NONE),
            (50, RecommendedAction.MONITOR),
            (69, RecommendedAction.MONITOR),
            (70, RecommendedAction.VERIFY),
            (89, RecommendedAction.VERIFY),
            (90, RecommendedAction.BLOCK),
            (100, RecommendedAction.BLOCK),
        ]
        for risk_score, action in cases:
            with self.subTest(risk_score=risk_score):
                self.assertEqual(recommended_action(risk_score), action)
