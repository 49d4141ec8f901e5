import argparse
import json
import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError
import uvicorn
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import JSONResponse, PlainTextResponse, Response

from openrtb_client.bidding.schema import VERSION_HEADER, OpenRTBVersion

# --- Metrics ---
AUCTION_COUNT = Counter('stub_exchange_auctions_total', 'Auctions handled by outcome', ['outcome'])
LATENCY = Histogram('stub_exchange_latency_seconds', 'Auction handling latency in seconds', buckets=[0.0005, 0.001, 0.002, 0.005, 0.010, 0.025])

# Auction id that makes the stub answer 500
FORCE_ERROR_ID = "force-error"
STUB_SEAT = "stub-exchange"
DEFAULT_PRICE = 0.01


# --- Permissive request models: only what the stub needs to answer ---
class AuctionRequest(BaseModel):
    """OpenRTB 2.x BidRequest: id is required, everything else passes through."""
    model_config = ConfigDict(extra="allow")

    id: str
    imp: List[Dict[str, Any]] = Field(default_factory=list)


class Request30(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    item: List[Dict[str, Any]] = Field(default_factory=list)


class Openrtb30(BaseModel):
    model_config = ConfigDict(extra="allow")

    ver: Optional[str] = None
    request: Request30


class Envelope30(BaseModel):
    """OpenRTB 3.0 top-level message."""
    openrtb: Openrtb30


app = FastAPI(title="OpenRTB Stub Exchange", version="1.0.0")


@app.on_event("startup")
async def startup_event():
    logging.info("Starting up OpenRTB stub exchange...")


@app.on_event("shutdown")
async def shutdown_event():
    logging.info("Shutting down...")


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    AUCTION_COUNT.labels(outcome="invalid").inc()
    return PlainTextResponse(str(exc), status_code=400)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "openrtb-stub-exchange"}


def build_seatbid(auction_id: str, slots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One bid per impression (2.x) or item (3.0), priced at the slot floor."""
    bids = []
    for i, slot in enumerate(slots):
        slot_id = str(slot.get("id", i + 1))
        bids.append({
            "id": f"{auction_id}-{slot_id}",
            "impid": slot_id,
            "item": slot_id,
            "price": slot.get("bidfloor", slot.get("flr", DEFAULT_PRICE)),
        })
    return [{"seat": STUB_SEAT, "bid": bids}]


@app.post("/openrtb2/auction")
async def auction(request: Request):
    """
    Stub auction endpoint.

    204 when there is nothing to bid on, 400 for malformed requests, 500 for
    the force-error id, otherwise 200 echoing the original request under ext.
    """
    start_time = time.perf_counter()
    version = request.headers.get(VERSION_HEADER, OpenRTBVersion.V26.value)

    try:
        payload = json.loads(await request.body())
    except ValueError as e:
        AUCTION_COUNT.labels(outcome="invalid").inc()
        return PlainTextResponse(f"malformed JSON body: {e}", status_code=400)

    # ValidationError is turned into a 400 by validation_error_handler
    if version == OpenRTBVersion.V30.value:
        envelope = Envelope30.model_validate(payload)
        auction_id, slots = envelope.openrtb.request.id, envelope.openrtb.request.item
    else:
        bid_request = AuctionRequest.model_validate(payload)
        auction_id, slots = bid_request.id, bid_request.imp

    try:
        if auction_id == FORCE_ERROR_ID:
            raise RuntimeError("forced failure")

        if not slots:
            AUCTION_COUNT.labels(outcome="no_bid").inc()
            return Response(status_code=204, headers={VERSION_HEADER: version})

        bid_response = {
            "id": auction_id,
            "seatbid": build_seatbid(auction_id, slots),
            "ext": {"echo": payload},
        }
        if version == OpenRTBVersion.V30.value:
            bid_response = {"openrtb": {"ver": version, "response": bid_response}}

        AUCTION_COUNT.labels(outcome="bid").inc()
        return JSONResponse(bid_response, headers={VERSION_HEADER: version})

    except Exception as e:
        AUCTION_COUNT.labels(outcome="error").inc()
        logging.error(f"Auction error: {e}", exc_info=True)
        return PlainTextResponse("internal_error", status_code=500)
    finally:
        LATENCY.observe(time.perf_counter() - start_time)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the OpenRTB stub exchange")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    uvicorn.run(app, host=args.host, port=args.port)
