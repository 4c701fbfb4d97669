import smtplib
from email.message import EmailMessage

from flask import current_app

# template -> (recipient side, subject prefix)
BOOKING_TEMPLATES = {
    "new_booking": ("provider", "New Booking Request"),
    "confirmed": ("customer", "Booking Confirmed"),
    "started": ("customer", "Service Started"),
    "completed": ("customer", "Service Completed"),
    "cancelled": ("customer", "Booking Cancelled"),
}

# booking status that triggers each customer template
STATUS_TEMPLATES = {
    "confirmed": "confirmed",
    "in_progress": "started",
    "completed": "completed",
    "cancelled": "cancelled",
}


def send_email(to_email: str, subject: str, body: str):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, "Email not configured"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except Exception as exc:
        return False, str(exc)


def booking_email_data(booking) -> dict:
    issues = ", ".join(
        (i.get("name") or "").strip()
        for i in (booking.selected_issues or [])
        if isinstance(i, dict) and i.get("name")
    )
    return {
        "booking_id": booking.id,
        "customer_email": booking.customer_email,
        "provider_email": booking.provider_email,
        "device": booking.device_id,
        "service": booking.service_id,
        "issues": issues or booking.issue_description or "-",
        "appointment_time": booking.appointment_time.isoformat() if booking.appointment_time else "-",
        "total_amount": f"{booking.total_amount:.2f}",
        "location": "Doorstep" if booking.location_type == "doorstep" else "Provider location",
        "address": booking.customer_address or "-",
        "reason": booking.cancellation_reason,
    }


def render_booking_email(template: str, data: dict):
    side, prefix = BOOKING_TEMPLATES[template]
    subject = f"{prefix} - {data['booking_id']}"

    details = (
        f"Booking: {data['booking_id']}\n"
        f"Device: {data['device']}\n"
        f"Service: {data['service']}\n"
        f"Issues: {data['issues']}\n"
        f"Appointment: {data['appointment_time']}\n"
        f"Location: {data['location']}\n"
        f"Amount: {data['total_amount']}\n"
    )

    if template == "new_booking":
        intro = "You have a new repair booking request. Please review and accept it from your dashboard."
    elif template == "confirmed":
        intro = "Great news! Your booking has been confirmed. Here are the details:"
    elif template == "started":
        intro = "Your technician has started working on your device."
    elif template == "completed":
        intro = "Your repair has been completed. Thank you for choosing us, we'd love a review."
    else:
        intro = "Your booking has been cancelled.\nReason: " + (data.get("reason") or "No reason provided")

    body = f"Hello,\n\n{intro}\n\n{details}\nThank you,\nRepairDesk"
    return side, subject, body


def send_booking_email(template: str, data: dict):
    """Render and send one booking template; returns (sent, error) like send_email."""
    side, subject, body = render_booking_email(template, data)
    to_email = data.get(f"{side}_email")
    if not to_email:
        return False, f"No {side} email on booking"
    return send_email(to_email, subject, body)
