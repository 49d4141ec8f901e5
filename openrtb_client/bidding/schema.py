from enum import Enum
from typing import Any, Dict

# OpenRTB payloads stay opaque to the client: any JSON-representable value.
BidRequestV25 = Dict[str, Any]
BidResponseV25 = Dict[str, Any]
BidRequestV26 = Dict[str, Any]
BidResponseV26 = Dict[str, Any]
# 3.0 wraps request and response in the same top-level "openrtb" message.
OpenrtbV30 = Dict[str, Any]


class OpenRTBVersion(str, Enum):
    """Values sent in the ``x-openrtb-version`` header."""

    V25 = "2.5"
    V26 = "2.6"
    V30 = "3.0"


class OutcomeKind(str, Enum):
    """
    Terminal results of one request/response exchange.

    SUCCESS is returned as the decoded payload; the other kinds are raised.
    """

    SUCCESS = "success"
    NO_BID = "no_bid"
    INVALID_REQUEST = "invalid_request"
    UNEXPECTED = "unexpected"


VERSION_HEADER = "x-openrtb-version"
