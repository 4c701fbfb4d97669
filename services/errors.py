class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(BookingError):
    """Input rejected before any write; `field` names the offending key."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class BookingNotFoundError(BookingError):
    status_code = 404

    def __init__(self, booking_id=None):
        super().__init__("Booking not found")
        self.booking_id = booking_id


class BookingConflictError(BookingError):
    status_code = 409


class InvalidTransitionError(BookingConflictError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from {current} to {requested}")
        self.current = current
        self.requested = requested


class CommissionError(BookingError):
    pass


class CommissionNotFoundError(CommissionError):
    status_code = 404
