class OtpError(Exception):
    """Base class for all OTP-level errors."""

    pass


class InvalidConfig(OtpError):
    """Code format or length configuration cannot produce a code."""

    pass


class StoreUnavailable(OtpError):
    """The store medium could not be reached, read or written."""

    pass


class DeliveryFailed(OtpError):
    """The notification carrying the code could not be dispatched."""

    pass


class UnknownAction(OtpError):
    """An action payload has no registered type (on dump or on load)."""

    pass


class MissingIdentifier(OtpError, ValueError):
    """No identifier was given and none could be derived from the request."""

    pass
