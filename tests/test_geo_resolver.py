"""
Tests du résolveur de géolocalisation.

Couvre la chaîne principal → secondaire → repli local: chaque échec (réseau, échéance, statut,
JSON invalide, sentinelle) fait passer à l'étape suivante, et le résultat n'est jamais une erreur.
"""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from howdoihelp.core.settings import Settings
from howdoihelp.services import geo_resolver
from howdoihelp.services.geo_resolver import GeoResolver, resolve_visitor_geo
from tests.fakes import (
    CN_PAYLOAD,
    US_PAYLOAD,
    connect_error,
    make_resolver,
    make_transport,
    ok,
    raw,
    slow,
    status,
)


@pytest.mark.asyncio
async def test_primary_success_skips_secondary():
    calls: list[str] = []
    resolver = make_resolver(ok(US_PAYLOAD), ok(CN_PAYLOAD), calls=calls)
    geo, source = await resolver.resolve_with_source()
    assert (geo.country, geo.country_code, geo.is_authoritarian) == ("United States", "US", False)
    assert geo.city == "New York"
    assert geo.timezone == "America/New_York"
    assert source == "ipapi.co"
    assert calls == ["ipapi.co"]


@pytest.mark.asyncio
async def test_undefined_sentinel_falls_through_to_secondary():
    calls: list[str] = []
    primary = ok({"country_name": "Undefined", "country_code": "Undefined"})
    resolver = make_resolver(primary, ok(CN_PAYLOAD), calls=calls)
    geo, source = await resolver.resolve_with_source()
    assert geo.country_code == "CN"
    assert source == "ip-api.com"
    assert calls == ["ipapi.co", "ip-api.com"]


@pytest.mark.asyncio
async def test_missing_country_code_falls_through():
    resolver = make_resolver(ok({"country_name": "France"}), ok(CN_PAYLOAD))
    geo = await resolver.resolve()
    assert geo.country_code == "CN"


@pytest.mark.asyncio
async def test_primary_timeout_then_authoritarian_secondary():
    calls: list[str] = []
    resolver = make_resolver(slow(US_PAYLOAD), ok(CN_PAYLOAD), calls=calls, timeout_s=0.05)
    geo = await resolver.resolve()
    assert geo.country == "China"
    assert geo.country_code == "CN"
    assert geo.region == "Beijing"
    assert geo.is_authoritarian is True
    assert calls == ["ipapi.co", "ip-api.com"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "primary",
    [status(500), status(429), raw("not json"), raw("[1, 2]"), connect_error],
    ids=["http-500", "http-429", "invalid-json", "json-array", "network"],
)
async def test_primary_failures_use_secondary(primary):
    resolver = make_resolver(primary, ok(CN_PAYLOAD))
    geo, source = await resolver.resolve_with_source()
    assert geo.country_code == "CN"
    assert source == "ip-api.com"


@pytest.mark.asyncio
async def test_secondary_defaults_missing_fields():
    resolver = make_resolver(connect_error, ok({"status": "fail"}))
    geo = await resolver.resolve()
    assert (geo.country, geo.country_code) == ("Unknown", "XX")
    assert geo.is_authoritarian is False


@pytest.mark.asyncio
async def test_both_fail_with_local_timezone():
    resolver = make_resolver(connect_error, status(503), timezone="Europe/Paris")
    geo, source = await resolver.resolve_with_source()
    assert (geo.country, geo.country_code, geo.is_authoritarian) == ("Unknown", "XX", False)
    assert geo.timezone == "Europe/Paris"
    assert source == "fallback"


@pytest.mark.asyncio
async def test_both_time_out_without_local_timezone():
    resolver = make_resolver(slow(US_PAYLOAD), slow(CN_PAYLOAD), timeout_s=0.05)
    geo = await resolver.resolve()
    assert (geo.country, geo.country_code, geo.is_authoritarian) == ("Unknown", "XX", False)
    assert geo.timezone is None


@pytest.mark.asyncio
async def test_timezone_lookup_error_still_falls_back():
    def broken():
        raise RuntimeError("no zoneinfo")

    resolver = GeoResolver(
        providers=[],
        transport=make_transport(connect_error, connect_error),
        timezone_lookup=broken,
    )
    geo = await resolver.resolve()
    assert geo.country_code == "XX"
    assert geo.timezone is None


@pytest.mark.asyncio
async def test_each_call_resolves_again():
    calls: list[str] = []
    resolver = make_resolver(ok(US_PAYLOAD), ok(CN_PAYLOAD), calls=calls)
    await resolver.resolve()
    await resolver.resolve()
    assert calls == ["ipapi.co", "ipapi.co"]


@pytest.mark.asyncio
async def test_resolve_visitor_geo_counts_outcome():
    before = REGISTRY.get_sample_value("geo_resolutions_total", {"outcome": "fallback"}) or 0.0
    resolver = make_resolver(connect_error, connect_error)
    geo = await resolve_visitor_geo(resolver)
    after = REGISTRY.get_sample_value("geo_resolutions_total", {"outcome": "fallback"})
    assert geo.country_code == "XX"
    assert after == before + 1


@pytest.mark.asyncio
async def test_resolve_visitor_geo_logs_whether_a_country_was_found(monkeypatch):
    events: list[dict] = []

    class RecordingLog:
        def debug(self, event, **kw):
            events.append({"event": event, **kw})

    monkeypatch.setattr(geo_resolver, "log", RecordingLog())
    await resolve_visitor_geo(make_resolver(ok(US_PAYLOAD), connect_error), "8.8.8.8")
    await resolve_visitor_geo(make_resolver(connect_error, connect_error))
    assert [(e["source"], e["ip_known"], e["resolved"]) for e in events] == [
        ("ipapi.co", True, True),
        ("fallback", False, False),
    ]


@pytest.mark.asyncio
async def test_visitor_ip_goes_into_provider_urls():
    urls: list[str] = []
    resolver = make_resolver(connect_error, ok(CN_PAYLOAD), urls=urls)
    geo = await resolver.resolve("1.2.3.4")
    assert geo.country_code == "CN"
    assert urls[0] == "https://ipapi.co/1.2.3.4/json/"
    assert urls[1].startswith("http://ip-api.com/json/1.2.3.4?fields=")


@pytest.mark.asyncio
async def test_without_ip_providers_locate_the_caller():
    urls: list[str] = []
    resolver = make_resolver(connect_error, ok(CN_PAYLOAD), urls=urls)
    await resolver.resolve()
    assert urls[0] == "https://ipapi.co/json/"
    assert urls[1].startswith("http://ip-api.com/json/?fields=")


def test_from_settings_uses_configured_urls_and_timeout():
    settings = Settings(
        GEO_PRIMARY_URL="https://geo.example/a",
        GEO_SECONDARY_URL="http://geo.example/b",
        GEO_TIMEOUT_S=1.5,
    )
    resolver = GeoResolver.from_settings(settings)
    primary, secondary = resolver._providers
    assert (primary.name, primary.url, primary.timeout_s) == ("ipapi.co", "https://geo.example/a", 1.5)
    assert (secondary.name, secondary.url, secondary.timeout_s) == ("ip-api.com", "http://geo.example/b", 1.5)


def test_default_provider_urls_take_the_visitor_ip():
    settings = Settings()
    assert settings.GEO_PRIMARY_URL == "https://ipapi.co/{ip}/json/"
    assert settings.GEO_SECONDARY_URL.startswith("http://ip-api.com/json/{ip}?fields=")
