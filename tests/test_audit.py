import json

from models.audit_log import AuditLog


def test_booking_create_is_audited(app, client, booking_payload):
    booking_id = client.post(
        "/api/bookings", json=booking_payload(), headers={"User-Agent": "repairdesk-tests"}
    ).get_json()["booking"]["id"]

    with app.app_context():
        row = AuditLog.query.filter_by(action="BOOKING_CREATE").one()
        assert row.entity_id == booking_id
        assert row.actor == "cust-1"
        assert row.user_agent == "repairdesk-tests"
        assert json.loads(row.metadata_json)["provider_id"] == "prov-1"


def test_status_update_records_branch(app, client, booking_payload):
    booking_id = client.post("/api/bookings", json=booking_payload()).get_json()["booking"]["id"]
    client.put(f"/api/bookings?id={booking_id}", json={"status": "completed"})

    with app.app_context():
        row = AuditLog.query.filter_by(action="BOOKING_UPDATE").one()
        meta = json.loads(row.metadata_json)
    assert meta["previous_status"] == "pending"
    assert meta["status"] == "completed"
    assert meta["branch"] == "cod_in_store"
    assert meta["side_effects"]["create_commission"] == "ok"
