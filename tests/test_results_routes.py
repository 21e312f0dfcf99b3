"""
Tests du parcours visiteur: géolocalisation, catalogue public, résultats et clics.
"""

import asyncio

from sqlalchemy import select

from howdoihelp.core.container import container
from howdoihelp.core.http_constants import HTTP_ACCEPTED, HTTP_OK, HTTP_UNPROCESSABLE_ENTITY
from howdoihelp.infra.repo.db import session_scope
from howdoihelp.infra.repo.models import ResourceClickORM
from tests.fakes import (
    CN_PAYLOAD,
    US_PAYLOAD,
    connect_error,
    fixed_resolver,
    make_resolver,
    make_resource,
    ok,
)


def _seed():
    for resource in [
        make_resource(id="letter", category="letters", ev_general=0.9, url="https://example.org/l"),
        make_resource(id="program", category="programs", ev_general=0.6, source_org="Lab"),
        make_resource(id="other", category="other", ev_general=0.5, source_org="News"),
        make_resource(id="nyc", category="communities", location="New York, NY", ev_general=0.7),
        make_resource(id="hidden", category="programs", enabled=False),
        make_resource(id="pending", category="programs", status="pending"),
    ]:
        container.catalog.save(resource)


def test_geo_endpoint(client):
    r = client.get("/geo")
    assert r.status_code == HTTP_OK
    assert r.json() == {
        "country": "United States",
        "countryCode": "US",
        "city": "New York",
        "region": "New York",
        "timezone": "America/New_York",
        "isAuthoritarian": False,
    }


def test_geo_endpoint_never_fails(client, monkeypatch):
    monkeypatch.setattr(
        container, "geo_resolver", make_resolver(connect_error, connect_error, timezone="UTC")
    )
    r = client.get("/geo")
    assert r.status_code == HTTP_OK
    assert r.json() == {
        "country": "Unknown",
        "countryCode": "XX",
        "timezone": "UTC",
        "isAuthoritarian": False,
    }


def test_geo_looks_up_the_forwarded_visitor_ip(client, monkeypatch):
    urls: list[str] = []
    monkeypatch.setattr(container, "geo_resolver", fixed_resolver(US_PAYLOAD, urls=urls))
    r = client.get("/geo", headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})
    assert r.json()["countryCode"] == "US"
    assert urls == ["https://ipapi.co/1.2.3.4/json/"]


def test_geo_without_public_ip_looks_up_the_caller(client, monkeypatch):
    urls: list[str] = []
    monkeypatch.setattr(container, "geo_resolver", fixed_resolver(US_PAYLOAD, urls=urls))
    client.get("/geo")
    client.get("/geo", headers={"X-Forwarded-For": "192.168.1.20"})
    assert urls == ["https://ipapi.co/json/", "https://ipapi.co/json/"]

def test_public_category_listing(client):
    _seed()
    r = client.get("/resources/programs")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert [x["id"] for x in body] == ["program"]
    assert "ev_general" not in body[0]
    assert client.get("/resources/petitions").status_code == HTTP_UNPROCESSABLE_ENTITY


def test_results_assigns_variant_and_tracks_urls(client):
    _seed()
    r = client.post("/results", json={"answers": {"time": "minutes"}})
    assert r.status_code == HTTP_OK
    body = r.json()
    variant = body["variant"]
    assert variant in {"A", "B", "D"}
    assert f"hdih_variant={variant}" in r.headers["set-cookie"]
    assert "Max-Age=7776000" in r.headers["set-cookie"]

    ids = [item["resource"]["id"] for item in body["resources"]]
    assert ids[0] == "letter"
    assert set(ids) == {"letter", "program", "other"}
    first = body["resources"][0]
    assert first["tracked_url"] == (
        f"https://example.org/l?utm_source=howdoihelp&utm_campaign={variant}&utm_content=letter"
    )
    assert first["time_label"] == "10 min"
    assert body["geo"]["countryCode"] == "US"
    assert body["local_card"]["anchor"]["resource"]["id"] == "nyc"
    assert body["local_card"]["anchor"]["match_reasons"] == ["Near you"]


def test_results_keeps_existing_variant(client):
    _seed()
    client.cookies.set("hdih_variant", "D")
    r = client.post("/results", json={"answers": {"time": "hours", "intent": "understand"}})
    assert r.json()["variant"] == "D"
    assert "set-cookie" not in r.headers
    assert r.json()["resources"][0]["resource"]["id"] == "program"


def test_results_hide_letters_for_authoritarian_location(client, monkeypatch):
    _seed()
    monkeypatch.setattr(container, "geo_resolver", make_resolver(connect_error, ok(CN_PAYLOAD)))
    body = client.post("/results", json={"answers": {"time": "minutes"}}).json()
    assert body["geo"]["isAuthoritarian"] is True
    assert "letter" not in [item["resource"]["id"] for item in body["resources"]]
    assert body["local_card"] is None


def test_results_geo_override_skips_resolution(client, monkeypatch):
    _seed()
    monkeypatch.setattr(container, "geo_resolver", None)
    r = client.post(
        "/results",
        json={"answers": {"time": "minutes"}, "geo": {"country": "Russia", "countryCode": "RU"}},
    )
    assert r.status_code == HTTP_OK
    assert r.json()["geo"] == {"country": "Russia", "countryCode": "RU", "isAuthoritarian": True}


def test_click_is_recorded(client):
    _seed()
    r = client.post(
        "/clicks",
        json={
            "resource_id": "letter",
            "variant": "B",
            "answers": {"time": "minutes", "intents": ["impact", "connect"]},
            "geo_country": "US",
        },
    )
    assert r.status_code == HTTP_ACCEPTED
    assert r.json() == {"accepted": True}
    with session_scope(container.engine) as s:
        click = s.execute(select(ResourceClickORM)).scalar_one()
        assert (click.resource_id, click.variant, click.user_time) == ("letter", "B", "minutes")
        assert click.user_intents == ["impact", "connect"]
        assert click.geo_country == "US"


def test_click_storage_failure_is_swallowed(client, monkeypatch):
    class BrokenClicks:
        def __init__(self, session):
            pass

        def add(self, **kwargs):
            raise RuntimeError("database unavailable")

    monkeypatch.setattr("howdoihelp.services.catalog.ClickRepo", BrokenClicks)
    r = client.post("/clicks", json={"resource_id": "letter", "variant": "A"})
    assert r.status_code == HTTP_ACCEPTED
    assert container.catalog.track_click("letter", "A") is False


def test_results_resolves_geo_from_forwarded_ip(client, monkeypatch):
    urls: list[str] = []
    monkeypatch.setattr(container, "geo_resolver", fixed_resolver(US_PAYLOAD, urls=urls))
    client.post(
        "/results",
        json={"answers": {"time": "minutes"}},
        headers={"X-Forwarded-For": "8.8.8.8"},
    )
    assert urls == ["https://ipapi.co/8.8.8.8/json/"]


def test_results_geo_override_is_normalized(client, monkeypatch):
    _seed()
    monkeypatch.setattr(container, "geo_resolver", None)
    body = client.post(
        "/results",
        json={"answers": {"time": "minutes"}, "geo": {"country": "China", "countryCode": "cn"}},
    ).json()
    assert body["geo"] == {"country": "China", "countryCode": "CN", "isAuthoritarian": True}
    assert "letter" not in [item["resource"]["id"] for item in body["resources"]]


def test_results_blank_geo_override_is_unknown(client, monkeypatch):
    monkeypatch.setattr(container, "geo_resolver", None)
    body = client.post(
        "/results",
        json={"answers": {"time": "minutes"}, "geo": {"country": "", "countryCode": ""}},
    ).json()
    assert body["geo"] == {"country": "Unknown", "countryCode": "XX", "isAuthoritarian": False}


def test_results_reads_catalog_outside_the_event_loop(client, monkeypatch):
    _seed()
    original = container.catalog.public_resources
    seen: list[str] = []

    def recording(category=None):
        try:
            asyncio.get_running_loop()
            seen.append("event_loop")
        except RuntimeError:
            seen.append("worker_thread")
        return original(category)

    monkeypatch.setattr(container.catalog, "public_resources", recording)
    r = client.post("/results", json={"answers": {"time": "minutes"}})
    assert r.status_code == HTTP_OK
    assert len(r.json()["resources"]) == 3
    assert seen == ["worker_thread"]
