import logging
from typing import Any, Dict, Optional

import httpx

from openrtb_client.bidding.config import ClientSettings
from openrtb_client.bidding.exceptions import (
    InvalidBidRequestError,
    NoBidResponseError,
    UnexpectedError,
)
from openrtb_client.bidding.schema import VERSION_HEADER
from openrtb_client.utils.codec import PayloadCodec

logger = logging.getLogger(__name__)


class OpenRTBClient:
    """
    Performs one OpenRTB request/response exchange and classifies the result.

    Responsibilities:
        1. Payload serialization (UTF-8 JSON)
        2. Header composition (custom headers, then fixed protocol headers)
        3. Ambient credential policy (cookie jar only on opt-in)
        4. Status classification into a bid response or a typed failure

    Attributes:
        settings (ClientSettings): Fully resolved configuration for the exchange.
    """

    def __init__(self, settings: ClientSettings, http_client: Optional[httpx.Client] = None):
        """
        Args:
            settings (ClientSettings): Endpoint, version marker and header options.
            http_client (httpx.Client): Optional shared client. When omitted a
                short-lived client is opened and closed around each request.
        """
        self.settings = settings
        self._http_client = http_client

    def build_headers(self) -> Dict[str, str]:
        """
        Compose outbound headers.

        Fixed protocol headers win over custom headers with the same name.
        Header names are case-insensitive on the wire, so a custom
        ``content-type`` is dropped in favour of ``Content-Type`` as well.
        """
        fixed = {
            "Content-Type": self.settings.data_format,
            "Accept-Encoding": self.settings.accept_encoding,
            "Content-Encoding": self.settings.content_encoding,
            VERSION_HEADER: self.settings.version,
            "Cache-Control": self.settings.cache_control,
        }
        fixed_names = {name.lower() for name in fixed}

        headers = {
            name: value
            for name, value in (self.settings.custom_headers or {}).items()
            if name.lower() not in fixed_names
        }
        headers.update(fixed)
        return headers

    def build_request(self, bid_request: Any, http_client: httpx.Client) -> httpx.Request:
        try:
            body = PayloadCodec.encode(bid_request)
        except (TypeError, ValueError) as e:
            raise UnexpectedError(f"Failed to serialize bid request: {e}") from e

        try:
            request = httpx.Request(
                "POST",
                self.settings.endpoint,
                content=body,
                headers=self.build_headers(),
            )
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise UnexpectedError(f"Could not build request for {self.settings.endpoint!r}: {e}") from e

        # Built outside the client so its cookie jar is only read on opt-in.
        if self.settings.with_credentials:
            http_client.cookies.set_cookie_header(request)
        return request

    def request(self, bid_request: Any) -> Any:
        """
        Send ``bid_request`` and return the decoded bid response.

        Raises:
            NoBidResponseError: The exchange answered 204.
            InvalidBidRequestError: The exchange answered 400.
            UnexpectedError: Any other status, or a transport/codec fault.
        """
        if self._http_client is not None:
            return self._exchange(self._http_client, bid_request)

        with httpx.Client() as http_client:
            return self._exchange(http_client, bid_request)

    def _exchange(self, http_client: httpx.Client, bid_request: Any) -> Any:
        request = self.build_request(bid_request, http_client)
        logger.debug(f"POST {self.settings.endpoint} (OpenRTB {self.settings.version})")

        try:
            response = http_client.send(request)
        except httpx.HTTPError as e:
            logger.warning(f"Transport failure for {self.settings.endpoint}: {e}")
            raise UnexpectedError(f"Transport failure: {e}") from e

        return self._classify(response)

    def _classify(self, response: httpx.Response) -> Any:
        status = response.status_code

        if status == 200:
            try:
                return PayloadCodec.decode(response.content)
            except ValueError as e:
                logger.warning(f"Malformed bid response from {self.settings.endpoint}: {e}")
                raise UnexpectedError(f"Malformed bid response body: {e}", status_code=status) from e

        if status == 204:
            logger.debug(f"No bid from {self.settings.endpoint}")
            raise NoBidResponseError()

        if status == 400:
            logger.warning(f"Bid request rejected by {self.settings.endpoint}")
            raise InvalidBidRequestError(response.text)

        logger.warning(f"Unexpected status {status} from {self.settings.endpoint}")
        raise UnexpectedError(
            f"Unexpected HTTP response: received status code {status}",
            status_code=status,
        )
