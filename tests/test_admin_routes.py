import pytest

from models import db
from models.booking import Booking
from models.commission_collection import CommissionCollection
from models.payment import Payment


@pytest.fixture
def create_booking(client, booking_payload):
    def _create(**overrides):
        return client.post("/api/bookings", json=booking_payload(**overrides)).get_json()["booking"]["id"]
    return _create


@pytest.fixture
def in_store_commission(app, client, create_booking):
    booking_id = create_booking()
    client.put(f"/api/bookings?id={booking_id}", json={"status": "completed"})
    with app.app_context():
        return CommissionCollection.query.filter_by(booking_id=booking_id).one().id


@pytest.fixture
def doorstep_booking(client, create_booking):
    booking_id = create_booking(location_type="doorstep", customer_address="12 MG Road, Pune")
    client.post("/api/payments/cod-confirm", json={"booking_id": booking_id})
    client.put(f"/api/bookings?id={booking_id}", json={"status": "completed"})
    return booking_id


# ---------- access ----------

@pytest.mark.parametrize(
    "headers, status",
    [({}, 401), ({"X-Admin-Token": "wrong"}, 403)],
)
def test_admin_token_required(client, headers, status):
    assert client.get("/admin/commission-collections", headers=headers).status_code == status


def test_admin_disabled_without_configured_token(app, client, admin_headers):
    app.config["ADMIN_API_TOKEN"] = None

    assert client.get("/admin/cash-collections", headers=admin_headers).status_code == 503


# ---------- commission ledger ----------

def test_list_commission_collections_with_stats(client, admin_headers, in_store_commission):
    resp = client.get("/admin/commission-collections", headers=admin_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert [c["id"] for c in body["collections"]] == [in_store_commission]
    assert body["stats"]["total_pending"] == 1
    assert body["stats"]["pending_amount"] == 100.0


def test_status_filter_keeps_whole_ledger_stats(client, admin_headers, in_store_commission):
    resp = client.get("/admin/commission-collections?status=completed", headers=admin_headers)

    body = resp.get_json()
    assert body["collections"] == []
    assert body["stats"]["total_pending"] == 1


def test_invalid_status_filter(client, admin_headers):
    resp = client.get("/admin/commission-collections?status=lost", headers=admin_headers)

    assert resp.status_code == 400


def test_confirm_commission_collection(app, client, admin_headers, in_store_commission):
    resp = client.post(f"/admin/commission-collections/{in_store_commission}/confirm", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Commission collection confirmed"
    assert resp.get_json()["collection"]["status"] == "completed"

    again = client.post(f"/admin/commission-collections/{in_store_commission}/confirm", headers=admin_headers)
    assert again.get_json()["message"] == "Commission already collected"


def test_confirm_unknown_commission(client, admin_headers):
    resp = client.post("/admin/commission-collections/missing/confirm", headers=admin_headers)

    assert resp.status_code == 404


# ---------- cash collection ----------

def test_cash_collections_lists_pending_doorstep_bookings(client, admin_headers, doorstep_booking, create_booking):
    create_booking(customer_id="cust-2")

    resp = client.get("/admin/cash-collections", headers=admin_headers)

    assert [b["id"] for b in resp.get_json()] == [doorstep_booking]


def test_confirm_cash_collection_completes_booking(app, client, admin_headers, doorstep_booking):
    resp = client.post(f"/admin/cash-collections/{doorstep_booking}/confirm", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == "completed"
    with app.app_context():
        booking = db.session.get(Booking, doorstep_booking)
        assert booking.payment_status == "completed"
        assert Payment.query.filter_by(booking_id=doorstep_booking).one().status == "completed"
        # doorstep cash goes to the provider in person; no ledger entry
        assert CommissionCollection.query.filter_by(booking_id=doorstep_booking).count() == 0


def test_confirm_cash_collection_requires_pending_collection(client, admin_headers, create_booking):
    booking_id = create_booking()

    resp = client.post(f"/admin/cash-collections/{booking_id}/confirm", headers=admin_headers)

    assert resp.status_code == 409


def test_confirm_cash_collection_unknown_booking(client, admin_headers):
    assert client.post("/admin/cash-collections/missing/confirm", headers=admin_headers).status_code == 404


# ---------- provider view ----------

def test_provider_commissions_with_outstanding_total(client, in_store_commission, create_booking):
    other = create_booking(customer_id="cust-2", total_amount=500)
    client.put(f"/api/bookings?id={other}", json={"status": "completed"})

    resp = client.get("/api/providers/prov-1/commissions")

    body = resp.get_json()
    assert len(body["commissions"]) == 2
    assert body["outstanding_amount"] == 150.0


def test_provider_commissions_status_filter(client, admin_headers, in_store_commission):
    client.post(f"/admin/commission-collections/{in_store_commission}/confirm", headers=admin_headers)

    body = client.get("/api/providers/prov-1/commissions?status=pending").get_json()

    assert body["commissions"] == []
    assert body["outstanding_amount"] == 0.0


def test_other_provider_sees_nothing(client, in_store_commission):
    body = client.get("/api/providers/prov-9/commissions").get_json()

    assert body == {"commissions": [], "outstanding_amount": 0.0}


def test_cash_confirm_refuses_in_store_booking(app, client, admin_headers, create_booking):
    booking_id = create_booking()
    with app.app_context():
        # a stale row parked in the cash queue without going through doorstep branching
        db.session.get(Booking, booking_id).status = "pending_cod_collection"
        db.session.commit()

    resp = client.post(f"/admin/cash-collections/{booking_id}/confirm", headers=admin_headers)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Cash collection applies to doorstep bookings only"
    with app.app_context():
        assert db.session.get(Booking, booking_id).status == "pending_cod_collection"


def test_in_store_cod_cannot_bypass_commission_through_cash_queue(app, client, admin_headers, create_booking):
    booking_id = create_booking(location_type="provider_location")
    client.post("/api/payments/cod-confirm", json={"booking_id": booking_id})

    parked = client.put(f"/api/bookings?id={booking_id}", json={"status": "pending_cod_collection"})
    assert parked.status_code == 409

    client.put(f"/api/bookings?id={booking_id}", json={"status": "completed"})

    with app.app_context():
        assert db.session.get(Booking, booking_id).status == "completed"
        assert CommissionCollection.query.filter_by(booking_id=booking_id).count() == 1
