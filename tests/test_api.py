"""Tests for the Behavior Insights API endpoints."""

import pytest

from api.services import get_services


def base(client_id):
    return f"/api/v1/clients/{client_id}"


def test_root_endpoint(client):
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["service"] == "Behavior Insights"
    assert "version" in data


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] in ("healthy", "degraded")
    assert data["services"]["lead_scoring"] is True


# ── Tracking ──────────────────────────────────────────

def test_record_action(client, client_id):
    resp = client.post(
        f"{base(client_id)}/actions",
        json={"type": "service_view", "details": {"serviceName": "SEO Services"}, "page": "/services"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["action"]["type"] == "service_view"
    assert data["action"]["page"] == "/services"
    assert data["action"]["session_id"] == data["session_id"]
    assert data["engagement_score"] == 15


def test_unknown_action_type_rejected(client, client_id):
    resp = client.post(f"{base(client_id)}/actions", json={"type": "teleport"})
    assert resp.status_code == 422


def test_invalid_client_id_rejected(client):
    resp = client.post("/api/v1/clients/bad$id/actions", json={"type": "page_view"})
    assert resp.status_code == 422


def test_current_session(client, client_id):
    client.post(f"{base(client_id)}/actions", json={"type": "page_view", "page": "/"})
    resp = client.get(f"{base(client_id)}/session")
    assert resp.status_code == 200
    session = resp.json()["session"]
    assert len(session["actions"]) == 1
    assert session["end_time"] is None


def test_visibility_lifecycle(client, client_id):
    client.post(f"{base(client_id)}/actions", json={"type": "page_view"})

    hidden = client.post(f"{base(client_id)}/visibility", json={"hidden": True}).json()
    assert hidden["session_id"] is None
    assert client.get(f"{base(client_id)}/session").json()["session"] is None

    sessions = client.get(f"{base(client_id)}/sessions").json()
    assert sessions["total"] == 1
    assert sessions["sessions"][0]["end_time"] is not None

    visible = client.post(f"{base(client_id)}/visibility", json={"hidden": False}).json()
    assert visible["session_id"] is not None


def test_activity_feed_newest_first(client, client_id):
    for page in ("/one", "/two", "/three"):
        client.post(f"{base(client_id)}/actions", json={"type": "page_view", "page": page})
    actions = client.get(f"{base(client_id)}/activity").json()["actions"]
    assert [a["page"] for a in actions] == ["/three", "/two", "/one"]


def test_clear_data(client, client_id):
    client.post(f"{base(client_id)}/actions", json={"type": "page_view"})
    client.post(f"{base(client_id)}/visibility", json={"hidden": True})

    resp = client.delete(f"{base(client_id)}/data")
    assert resp.json() == {"cleared": True}
    assert client.get(f"{base(client_id)}/sessions").json()["total"] == 0
    assert client.get(f"{base(client_id)}/activity").json()["actions"] == []


def test_clients_are_isolated(client, client_id):
    client.post(f"{base(client_id)}/actions", json={"type": "page_view"})
    other = client.get(f"{base(client_id + '-other')}/session").json()["session"]
    assert other["actions"] == []


# ── Insights ──────────────────────────────────────────

def test_predictions(client, client_id):
    resp = client.get(f"{base(client_id)}/predictions")
    assert resp.status_code == 200
    predictions = resp.json()["predictions"]
    assert [p["type"] for p in predictions] == [
        "next_service",
        "conversion_likelihood",
        "exit_intent",
        "peak_activity",
        "content_interest",
    ]


def test_actionable_predictions(client, client_id):
    for _ in range(2):
        client.post(
            f"{base(client_id)}/actions",
            json={"type": "service_view", "details": {"serviceName": "Digital Marketing"}},
        )
    predictions = client.get(
        f"{base(client_id)}/predictions", params={"min_confidence": 90}
    ).json()["predictions"]
    assert predictions
    assert all(p["confidence"] >= 90 for p in predictions)
    assert predictions[0]["type"] == "next_service"
    assert predictions[0]["action"]["cta_link"] == "/services#seo-services"


def test_min_confidence_out_of_range(client, client_id):
    resp = client.get(f"{base(client_id)}/predictions", params={"min_confidence": 150})
    assert resp.status_code == 422


def test_single_prediction(client, client_id):
    resp = client.get(f"{base(client_id)}/predictions/content_interest")
    assert resp.status_code == 200
    assert resp.json()["type"] == "content_interest"


def test_unknown_prediction_type(client, client_id):
    resp = client.get(f"{base(client_id)}/predictions/weather")
    assert resp.status_code == 404


def test_metrics(client, client_id):
    client.post(f"{base(client_id)}/actions", json={"type": "page_view", "page": "/pricing"})
    client.post(f"{base(client_id)}/actions", json={"type": "form_submit", "page": "/contact"})
    metrics = client.get(f"{base(client_id)}/metrics").json()
    assert metrics["total_sessions"] == 1
    assert metrics["conversion_rate"] == 100
    assert metrics["top_pages"] == [{"page": "/pricing", "visits": 1}]


def test_patterns_refresh(client, client_id):
    for page in ("/", "/services", "/"):
        client.post(f"{base(client_id)}/actions", json={"type": "page_view", "page": page})
    data = client.get(f"{base(client_id)}/patterns", params={"refresh": True}).json()
    assert data["runs"] >= 1
    keys = {p["pattern"] for p in data["patterns"]}
    assert "page_view:/" in keys


# ── Leads ─────────────────────────────────────────────

def test_score_lead(client, enterprise_fintech_lead):
    resp = client.post(
        "/api/v1/leads/score",
        json=enterprise_fintech_lead,
        params={"now": "2025-10-25T12:00:00Z"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["lead_quality"] == "Hot"
    assert data["urgency"] == "Medium"
    assert data["conversion_probability"] == pytest.approx(96.5)
    assert data["cac_reduction"] == 45


def test_score_lead_requires_id(client):
    resp = client.post("/api/v1/leads/score", json={"name": "Anonymous"})
    assert resp.status_code == 422


def test_batch_score(client, sample_leads):
    resp = client.post(
        "/api/v1/leads/score/batch",
        json={"leads": sample_leads, "now": "2025-10-25T12:00:00Z"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["scores"]) == 5
    assert data["insights"]["hot_leads"] == 4
    assert data["insights"]["warm_leads"] == 1


def test_batch_score_empty(client):
    data = client.post("/api/v1/leads/score/batch", json={"leads": []}).json()
    assert data["scores"] == []
    assert data["insights"]["avg_clv"] == 0


def test_attribution(client, enterprise_fintech_lead):
    resp = client.post(
        "/api/v1/leads/attribution",
        json={"touchpoints": enterprise_fintech_lead["touchpoints"]},
    )
    assert resp.status_code == 200
    models = resp.json()["attribution"]
    assert len(models) == 6
    assert sum(m["attribution_value"] for m in models) == pytest.approx(100, abs=0.05)


# ── Real-time ─────────────────────────────────────────

def test_websocket_streams_actions(client, client_id):
    with client.websocket_connect(f"/api/v1/ws/clients/{client_id}/actions") as ws:
        ws.send_json({"type": "page_view", "page": "/live"})
        message = ws.receive_json()
        assert message["type"] == "action"
        assert message["data"]["page"] == "/live"

        ws.send_json({"type": "teleport"})
        assert ws.receive_json()["type"] == "error"

    session = client.get(f"{base(client_id)}/session").json()["session"]
    assert [a["page"] for a in session["actions"]] == ["/live"]


def test_websocket_reports_bad_frames_and_keeps_streaming(client, client_id):
    with client.websocket_connect(f"/api/v1/ws/clients/{client_id}/actions") as ws:
        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "page_view", "details": "x"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json(["page_view"])
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "page_view", "page": "/after-errors"})
        message = ws.receive_json()
        assert message["type"] == "action"
        assert message["data"]["page"] == "/after-errors"

    assert not get_services().connection_manager.is_connected(client_id)
