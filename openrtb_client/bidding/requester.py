import logging
from typing import Any, Optional

import httpx

from openrtb_client.bidding.client import OpenRTBClient
from openrtb_client.bidding.config import DEFAULT_OPTIONS, RequesterOptions
from openrtb_client.bidding.schema import (
    BidRequestV25,
    BidRequestV26,
    BidResponseV25,
    BidResponseV26,
    OpenRTBVersion,
    OpenrtbV30,
)

logger = logging.getLogger(__name__)


class BidRequester:
    """
    One entry point per OpenRTB version on top of OpenRTBClient.

    Each call builds a fresh OpenRTBClient with the version marker fixed by
    the method and the options resolved per key (per-call, then constructor,
    then built-in defaults). The constructor options are never mutated, so
    one instance can be shared across threads.
    """

    def __init__(
        self,
        options: Optional[RequesterOptions] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.options = options or DEFAULT_OPTIONS
        self._http_client = http_client

    def client_for(
        self,
        endpoint: str,
        version: OpenRTBVersion,
        options: Optional[RequesterOptions] = None,
    ) -> OpenRTBClient:
        merged = self.options.merged_with(options)
        settings = merged.to_settings(endpoint, version.value)
        return OpenRTBClient(settings, http_client=self._http_client)

    def _request(
        self,
        endpoint: str,
        version: OpenRTBVersion,
        payload: Any,
        options: Optional[RequesterOptions],
    ) -> Any:
        logger.debug(f"Requesting OpenRTB {version.value} bid from {endpoint}")
        return self.client_for(endpoint, version, options).request(payload)

    def request_v25(
        self,
        endpoint: str,
        bid_request: BidRequestV25,
        options: Optional[RequesterOptions] = None,
    ) -> BidResponseV25:
        return self._request(endpoint, OpenRTBVersion.V25, bid_request, options)

    def request_v26(
        self,
        endpoint: str,
        bid_request: BidRequestV26,
        options: Optional[RequesterOptions] = None,
    ) -> BidResponseV26:
        return self._request(endpoint, OpenRTBVersion.V26, bid_request, options)

    def request_v30(
        self,
        endpoint: str,
        openrtb: OpenrtbV30,
        options: Optional[RequesterOptions] = None,
    ) -> OpenrtbV30:
        return self._request(endpoint, OpenRTBVersion.V30, openrtb, options)
