from typing import Optional

from openrtb_client.bidding.schema import OutcomeKind


class OpenRTBClientError(Exception):
    """
    Base class for every failure an exchange can end in.

    Callers can branch on ``kind`` instead of on the exception class.
    """

    kind: OutcomeKind = OutcomeKind.UNEXPECTED
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class NoBidResponseError(OpenRTBClientError):
    """The exchange answered 204: no bid for this request."""

    kind = OutcomeKind.NO_BID
    default_message = "No bid response received from the auction."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=204)


class InvalidBidRequestError(OpenRTBClientError):
    """The exchange answered 400; ``detail`` holds the body text, if any."""

    kind = OutcomeKind.INVALID_REQUEST
    default_message = "Invalid bid request: required parameters are missing or malformed."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or None
        message = self.default_message
        if self.detail:
            message = f"{message}: {self.detail}"
        super().__init__(message, status_code=400)


class UnexpectedError(OpenRTBClientError):
    """Any other status code, or a fault while performing the exchange."""

    kind = OutcomeKind.UNEXPECTED
