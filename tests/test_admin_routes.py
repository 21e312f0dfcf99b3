"""
Tests des opérations d'administration du catalogue (ressources et candidats).
"""

from sqlalchemy import func, select

from howdoihelp.core.container import container
from howdoihelp.core.http_constants import HTTP_NOT_FOUND, HTTP_OK
from howdoihelp.infra.repo.db import session_scope
from howdoihelp.infra.repo.models import ResourceClickORM
from tests.fakes import make_resource


def _seed():
    for resource in [
        make_resource(id="p-low", category="programs", ev_general=0.2),
        make_resource(id="p-high", category="programs", ev_general=0.9),
        make_resource(id="l-1", category="letters", ev_general=0.5),
        make_resource(id="o-pending", category="other", status="pending", enabled=False),
    ]:
        container.catalog.save(resource)


def test_list_orders_by_category_then_value(admin_client):
    _seed()
    r = admin_client.get("/admin/resources")
    assert r.status_code == HTTP_OK
    assert [x["id"] for x in r.json()] == ["l-1", "o-pending", "p-high", "p-low"]

    r = admin_client.get("/admin/resources", params={"category": "programs"})
    assert [x["id"] for x in r.json()] == ["p-high", "p-low"]


def test_save_applies_verification_defaults(admin_client):
    payload = make_resource(id="new").model_dump(mode="json")
    r = admin_client.put("/admin/resources", json=payload)
    assert r.status_code == HTTP_OK
    saved = container.catalog.all_resources()[0]
    assert saved.activity_score == 0.5
    assert saved.url_status == "unknown"

    payload["title"] = "Updated"
    admin_client.put("/admin/resources", json=payload)
    resources = container.catalog.all_resources()
    assert [r.title for r in resources] == ["Updated"]


def test_toggle_approve_reject(admin_client):
    _seed()
    admin_client.post("/admin/resources/p-high/toggle", json={"enabled": False})
    assert "p-high" not in {r.id for r in container.catalog.public_resources()}

    r = admin_client.post("/admin/resources/o-pending/approve")
    assert r.json()["status"] == "approved"
    assert "o-pending" in {r.id for r in container.catalog.public_resources()}

    admin_client.post("/admin/resources/o-pending/reject")
    rejected = [r for r in container.catalog.all_resources() if r.id == "o-pending"][0]
    assert (rejected.status, rejected.enabled) == ("rejected", False)


def test_delete_removes_clicks_first(admin_client):
    _seed()
    container.catalog.track_click("l-1", "A")
    r = admin_client.delete("/admin/resources/l-1")
    assert r.status_code == HTTP_OK
    with session_scope(container.engine) as s:
        assert s.execute(select(func.count()).select_from(ResourceClickORM)).scalar_one() == 0
    assert "l-1" not in {r.id for r in container.catalog.all_resources()}


def test_unknown_ids_are_not_found(admin_client):
    for method, path in [
        ("post", "/admin/resources/missing/approve"),
        ("post", "/admin/resources/missing/reject"),
        ("delete", "/admin/resources/missing"),
        ("post", "/admin/candidates/missing/promote"),
        ("post", "/admin/candidates/missing/reject"),
    ]:
        r = getattr(admin_client, method)(path)
        assert r.status_code == HTTP_NOT_FOUND, path
        assert r.json()["detail"] == "not_found"
    r = admin_client.post("/admin/resources/missing/toggle", json={"enabled": True})
    assert r.status_code == HTTP_NOT_FOUND


def _submit_event(client, title="Meetup"):
    r = client.post(
        "/submit",
        json={
            "title": title,
            "url": "https://example.org/e",
            "category": "events",
            "location": "Berlin, Germany",
            "event_date": "2026-11-02",
            "submitted_by": "Ada",
        },
    )
    return r.json()["id"]


def test_promote_candidate(admin_client):
    candidate_id = _submit_event(admin_client)
    r = admin_client.get("/admin/candidates", params={"status": "pending"})
    assert [c["id"] for c in r.json()] == [candidate_id]

    r = admin_client.post(f"/admin/candidates/{candidate_id}/promote")
    assert r.status_code == HTTP_OK
    resource_id = r.json()["resource_id"]
    assert resource_id.startswith("eval-submission-")

    event = [x for x in container.catalog.public_resources("events") if x.id == resource_id][0]
    assert event.title == "Meetup"
    assert event.location == "Berlin, Germany"
    assert event.event_date == "2026-11-02"

    candidate = container.catalog.candidates("promoted")[0]
    assert candidate.promoted_resource_id == resource_id
    assert candidate.promoted_at is not None


def test_reject_candidate_and_overview(admin_client):
    first = _submit_event(admin_client, "One")
    _submit_event(admin_client, "Two")
    _seed()
    admin_client.post(f"/admin/candidates/{first}/reject")

    assert [c.title for c in container.catalog.candidates("rejected")] == ["One"]
    overview = admin_client.get("/admin").json()
    assert overview["pending_candidates"] == 1
    programs = [c for c in overview["categories"] if c["category"] == "programs"][0]
    assert programs == {"category": "programs", "total": 2, "pending": 0, "enabled": 2}
    other = [c for c in overview["categories"] if c["category"] == "other"][0]
    assert (other["pending"], other["enabled"]) == (1, 0)
