"""
Custom exception classes for the relay.

Every failure in the relay is scoped to a single message or a single
connection. These exceptions are raised at the point of failure and caught
by the connection handler, which logs them and reports a RelayOutcome.
"""


class RelayError(Exception):
    """
    Base class for relay errors.

    Carries the user id of the connection the failure belongs to, when known.
    """

    def __init__(self, message: str, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class TransportError(RelayError):
    """
    Outbound frame could not be delivered.

    Raised by the send primitive when the underlying channel is closed or
    otherwise unable to write the frame.
    """

    pass


class MalformedPayloadError(RelayError):
    """
    Inbound payload is not a valid relay record.

    Raised when a text frame cannot be parsed as a JSON object with the
    expected field types.
    """

    pass


class UnknownRecipientError(RelayError):
    """
    Recipient is blank or not connected to this server.
    """

    pass


class DeliveryFailureError(RelayError):
    """
    Recipient was found but the forwarded frame could not be sent.
    """

    pass
