from utils.money import as_float


def _iso(value):
    return value.isoformat() if value else None


def booking_to_dict(b) -> dict:
    return {
        "id": b.id,
        "customer_id": b.customer_id,
        "provider_id": b.provider_id,
        "device_id": b.device_id,
        "service_id": b.service_id,
        "issue_description": b.issue_description,
        "selected_issues": b.selected_issues or [],
        "part_quality": b.part_quality,
        "total_amount": as_float(b.total_amount),
        "payment_status": b.payment_status,
        "status": b.status,
        "appointment_time": _iso(b.appointment_time),
        "location_type": b.location_type,
        "serviceMode": b.service_mode,
        "customer_address": b.customer_address,
        "rating": b.rating,
        "review": b.review,
        "cancellation_reason": b.cancellation_reason,
        "created_at": _iso(b.created_at),
        "updated_at": _iso(b.updated_at),
    }


def booking_summary(b) -> dict:
    return {
        "id": b.id,
        "total_amount": as_float(b.total_amount),
        "status": b.status,
        "payment_status": b.payment_status,
    }


def payment_to_dict(p) -> dict:
    return {
        "id": p.id,
        "booking_id": p.booking_id,
        "payment_method": p.payment_method,
        "amount": as_float(p.amount),
        "commission_amount": as_float(p.commission_amount),
        "provider_payout": as_float(p.provider_payout),
        "is_commission_settled": p.is_commission_settled,
        "status": p.status,
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
    }


def commission_to_dict(c) -> dict:
    return {
        "id": c.id,
        "booking_id": c.booking_id,
        "provider_id": c.provider_id,
        "commission_amount": as_float(c.commission_amount),
        "collection_method": c.collection_method,
        "status": c.status,
        "due_date": _iso(c.due_date),
        "collected_at": _iso(c.collected_at),
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }
