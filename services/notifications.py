from services.side_effects import SideEffect, Skip
from utils.emailer import STATUS_TEMPLATES, booking_email_data, send_booking_email
from utils.notifier import dispatch_notification

# status -> (customer title, customer message, provider title, provider message)
STATUS_MESSAGES = {
    "confirmed": (
        "Booking Confirmed",
        "Your repair booking has been confirmed by the provider.",
        "Booking Confirmed",
        "You confirmed a repair booking. Please be ready at the appointment time.",
    ),
    "in_progress": (
        "Repair Started",
        "Your technician has started working on your device.",
        "Service In Progress",
        "The repair has been marked as in progress.",
    ),
    "pending_cod_collection": (
        "Service Completed",
        "Your repair is complete. Please pay the technician in cash to close the booking.",
        "Service Completed",
        "Service marked complete. Cash collection is pending confirmation.",
    ),
    "completed": (
        "Service Completed",
        "Your repair has been completed. Thank you! Please leave a review.",
        "Booking Completed",
        "The booking has been completed.",
    ),
    "cancelled": (
        "Booking Cancelled",
        "Your booking has been cancelled.",
        "Booking Cancelled",
        "A booking assigned to you has been cancelled.",
    ),
    "disputed": (
        "Booking Disputed",
        "Your booking has been flagged for review. Our support team will contact you.",
        "Booking Disputed",
        "A booking has been disputed. Our support team will contact you.",
    ),
}

URGENT_STATUSES = ("cancelled", "disputed")


def status_copy(status: str):
    if status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    generic = f"Your booking status has been updated to {status}."
    return ("Booking Status Updated", generic, "Booking Status Updated", generic)


def status_change_tasks(booking, previous_status: str) -> list:
    status = booking.status
    customer_title, customer_msg, provider_title, provider_msg = status_copy(status)
    if status == "cancelled" and booking.cancellation_reason:
        customer_msg = f"{customer_msg} Reason: {booking.cancellation_reason}"
        provider_msg = f"{provider_msg} Reason: {booking.cancellation_reason}"

    priority = "high" if status in URGENT_STATUSES else "medium"
    metadata = {"previous_status": previous_status, "status": status}

    tasks = [
        SideEffect("notify_customer", lambda: dispatch_notification(
            type="booking", category="business", priority=priority,
            title=customer_title, message=customer_msg,
            user_id=booking.customer_id, user_type="customer",
            related_id=booking.id, metadata=metadata,
        )),
        SideEffect("notify_provider", lambda: dispatch_notification(
            type="booking", category="business", priority=priority,
            title=provider_title, message=provider_msg,
            user_id=booking.provider_id, user_type="provider",
            related_id=booking.id, metadata=metadata,
        )),
    ]

    template = STATUS_TEMPLATES.get(status)
    if template:
        tasks.append(SideEffect(f"email_{template}", lambda: _send(template, booking)))
    return tasks


def new_booking_tasks(booking) -> list:
    metadata = {"status": booking.status, "appointment_time": booking.appointment_time}
    return [
        SideEffect("notify_customer", lambda: dispatch_notification(
            type="booking", category="business", priority="medium",
            title="Booking Submitted",
            message="Your repair booking has been submitted. The provider will confirm it shortly.",
            user_id=booking.customer_id, user_type="customer",
            related_id=booking.id, metadata=metadata,
        )),
        SideEffect("notify_provider", lambda: dispatch_notification(
            type="booking", category="business", priority="high",
            title="New Booking Request",
            message="You have a new repair booking request.",
            user_id=booking.provider_id, user_type="provider",
            related_id=booking.id, metadata=metadata,
        )),
        SideEffect("email_new_booking", lambda: _send("new_booking", booking)),
    ]


def _send(template: str, booking):
    data = booking_email_data(booking)
    if not data.get("provider_email" if template == "new_booking" else "customer_email"):
        raise Skip("no recipient email")
    sent, error = send_booking_email(template, data)
    if not sent:
        raise RuntimeError(error or "email not sent")
