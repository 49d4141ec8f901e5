import json
import threading

import httpx

from openrtb_client.bidding.config import RequesterOptions
from openrtb_client.bidding.requester import BidRequester

ENDPOINT = "https://exchange.example.com/openrtb2/auction"


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Answer with the request id and the headers the exchange saw."""
    body = json.loads(request.content)
    return httpx.Response(200, json={
        "id": body["id"],
        "version": request.headers["x-openrtb-version"],
        "seat": request.headers.get("x-seat"),
    })


def test_shared_requester_across_threads():
    """
    32 threads share one requester, each with its own version and per-call
    headers. Every thread must see its own request reflected back, and the
    shared defaults must come out unchanged.
    """
    http_client = httpx.Client(transport=httpx.MockTransport(echo_handler))
    defaults = RequesterOptions(custom_headers={"x-seat": "default"})
    requester = BidRequester(defaults, http_client=http_client)
    methods = [requester.request_v25, requester.request_v26, requester.request_v30]
    versions = ["2.5", "2.6", "3.0"]

    threads = []
    results = {}
    errors = []

    def worker(i):
        try:
            options = RequesterOptions(custom_headers={"x-seat": f"seat-{i}"}) if i % 2 else None
            results[i] = methods[i % 3](ENDPOINT, {"id": f"req-{i}"}, options)
        except Exception as e:
            errors.append(e)

    for i in range(32):
        t = threading.Thread(target=worker, args=(i,))
        threads.append(t)
        t.start()

    for t in threads:
        t.join()

    assert errors == []
    assert len(results) == 32
    for i, response in results.items():
        assert response["id"] == f"req-{i}"
        assert response["version"] == versions[i % 3]
        assert response["seat"] == (f"seat-{i}" if i % 2 else "default")

    assert dict(requester.options.custom_headers) == {"x-seat": "default"}
