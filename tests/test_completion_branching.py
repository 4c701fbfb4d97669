from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from models import db
from models.booking import Booking
from models.commission_collection import CommissionCollection
from models.payment import Payment
from services import booking_lifecycle


def _entries(booking_id):
    return CommissionCollection.query.filter_by(booking_id=booking_id).all()


def test_in_store_cod_completes_and_opens_commission(make_booking, make_payment):
    booking = make_booking(status="in_progress")
    payment = make_payment(booking, payment_method="COD", commission_amount=Decimal("120.00"))

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.COD_IN_STORE
    assert outcome.booking.status == "completed"
    assert outcome.booking.payment_status == "completed"

    entries = _entries(booking.id)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.commission_amount == Decimal("120.00")
    assert entry.provider_id == "prov-1"
    assert entry.status == "pending"
    assert entry.collection_method == "upi"
    assert abs(entry.due_date - (datetime.utcnow() + timedelta(days=7))) < timedelta(minutes=1)

    assert db.session.get(Payment, payment.id).is_commission_settled is False


def test_in_store_without_payment_record_infers_cod_and_uses_ten_percent(make_booking):
    booking = make_booking(status="confirmed", total_amount=1000)

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.booking.status == "completed"
    entry = _entries(booking.id)[0]
    assert entry.commission_amount == Decimal("100.00")


def test_zero_stored_commission_falls_back_to_rate(make_booking, make_payment):
    booking = make_booking(total_amount=2500)
    make_payment(booking, payment_method="COD", commission_amount=0)

    booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert _entries(booking.id)[0].commission_amount == Decimal("250.00")


def test_doorstep_cod_defers_to_cash_collection(make_booking, make_payment):
    booking = make_booking(location_type="doorstep", customer_address="12 MG Road, Pune")
    make_payment(booking, payment_method="COD")

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.COD_DOORSTEP
    assert outcome.booking.status == "pending_cod_collection"
    assert outcome.booking.payment_status == "pending"
    assert _entries(booking.id) == []


def test_doorstep_completion_retry_stays_pending_collection(make_booking):
    booking = make_booking(location_type="doorstep", customer_address="12 MG Road, Pune")
    booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.booking.status == "pending_cod_collection"
    assert not outcome.status_changed


def test_prepaid_completion_is_honored_without_commission(make_booking, make_payment):
    booking = make_booking(payment_status="completed")
    make_payment(booking, payment_method="online", status="completed")

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.PREPAID
    assert outcome.booking.status == "completed"
    assert _entries(booking.id) == []


def test_inferred_prepaid_when_booking_already_paid(make_booking):
    booking = make_booking(payment_status="completed")

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.PREPAID
    assert _entries(booking.id) == []


def test_payment_lookup_failure_keeps_requested_status(make_booking, monkeypatch):
    booking = make_booking()

    def _fail(booking_id):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr("services.commission.find_payment", _fail)

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.UNCLASSIFIED
    assert outcome.booking.status == "completed"
    assert _entries(booking.id) == []


def test_repeat_completion_does_not_duplicate_commission(make_booking, make_payment):
    booking = make_booking()
    make_payment(booking, payment_method="COD", commission_amount=Decimal("100.00"))

    booking_lifecycle.update_booking(booking.id, {"status": "completed"})
    second = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert second.branch is None
    assert len(_entries(booking.id)) == 1


def test_raced_completion_hits_ledger_uniqueness(make_booking, make_payment):
    booking = make_booking()
    payment = make_payment(booking, payment_method="COD", commission_amount=Decimal("100.00"))
    # a concurrent request already wrote the ledger row but our read saw the old status
    db.session.add(CommissionCollection(
        booking_id=booking.id, provider_id=booking.provider_id, commission_amount=Decimal("100.00"),
        collection_method="upi", status="pending", due_date=datetime.utcnow() + timedelta(days=7),
    ))
    db.session.commit()

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    results = {r.name: r for r in outcome.side_effects}
    assert results["create_commission"].ok is False
    assert results["start_commission_tracking"].ok is True
    assert db.session.get(Booking, booking.id).status == "completed"
    assert len(_entries(booking.id)) == 1
    assert db.session.get(Payment, payment.id).is_commission_settled is False


def test_end_to_end_in_store_cod_over_http(app, client, booking_payload):
    created = client.post(
        "/api/bookings", json=booking_payload(total_amount=1000, location_type="provider_location")
    ).get_json()["booking"]
    assert client.post("/api/payments/cod-confirm", json={"booking_id": created["id"]}).status_code == 200

    resp = client.put(f"/api/bookings?id={created['id']}", json={"status": "completed"})

    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == "completed"
    assert resp.get_json()["booking"]["payment_status"] == "completed"
    with app.app_context():
        payment = Payment.query.filter_by(booking_id=created["id"]).one()
        assert payment.is_commission_settled is False
        entries = _entries(created["id"])
        assert len(entries) == 1
        assert entries[0].commission_amount == 100
        assert entries[0].status == "pending"


def test_cod_without_location_is_treated_as_in_store(make_booking, make_payment):
    booking = make_booking(location_type=None)
    make_payment(booking, payment_method="COD", commission_amount=Decimal("100.00"))

    outcome = booking_lifecycle.update_booking(booking.id, {"status": "completed"})

    assert outcome.branch == booking_lifecycle.COD_IN_STORE
    assert outcome.booking.status == "completed"
    assert outcome.booking.payment_status == "completed"
    assert [e.commission_amount for e in _entries(booking.id)] == [Decimal("100.00")]
