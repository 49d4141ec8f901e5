import json
from dataclasses import dataclass, field
from typing import List, Optional

import pytest
from pydantic import BaseModel

from openrtb_client.utils.codec import PayloadCodec


@dataclass
class Imp:
    id: str
    bidfloor: float = 0.0


@dataclass
class DataclassRequest:
    id: str
    imp: List[Imp] = field(default_factory=list)


class Banner(BaseModel):
    w: int
    h: int


class ModelRequest(BaseModel):
    id: str
    banner: Banner
    tagid: Optional[str] = None


def test_dict_round_trip():
    payload = {
        "id": "req-1",
        "imp": [{"id": "1", "bidfloor": 0.1 + 0.2, "banner": {"w": 300, "h": 250}}],
        "tmax": 120,
        "test": 0,
        "bcat": ["IAB25", "IAB26"],
        "ext": {"nested": {"big": 2 ** 53, "tiny": 5e-324, "null": None, "flag": True}},
    }
    assert PayloadCodec.decode(PayloadCodec.encode(payload)) == payload


def test_key_order_does_not_matter():
    a = PayloadCodec.decode(PayloadCodec.encode({"id": "1", "tmax": 100}))
    b = PayloadCodec.decode(PayloadCodec.encode({"tmax": 100, "id": "1"}))
    assert a == b


def test_non_ascii_is_utf8():
    body = PayloadCodec.encode({"site": {"name": "Café ☕"}})
    assert "Café ☕".encode("utf-8") in body


def test_dataclass_payload():
    payload = DataclassRequest(id="req-1", imp=[Imp(id="1", bidfloor=1.5)])
    assert json.loads(PayloadCodec.encode(payload)) == {
        "id": "req-1",
        "imp": [{"id": "1", "bidfloor": 1.5}],
    }


def test_pydantic_payload_drops_unset_optionals():
    payload = ModelRequest(id="req-1", banner=Banner(w=300, h=250))
    assert json.loads(PayloadCodec.encode(payload)) == {
        "id": "req-1",
        "banner": {"w": 300, "h": 250},
    }


def test_pydantic_payload_keeps_explicit_null():
    payload = ModelRequest(id="req-1", banner=Banner(w=300, h=250), tagid=None)
    decoded = PayloadCodec.decode(PayloadCodec.encode(payload))
    assert decoded == {"id": "req-1", "banner": {"w": 300, "h": 250}, "tagid": None}


def test_dataclass_and_model_agree_on_null():
    @dataclass
    class Tagged:
        id: str
        tagid: Optional[str] = None

    from_dataclass = PayloadCodec.decode(PayloadCodec.encode(Tagged(id="req-1")))
    from_model = PayloadCodec.decode(PayloadCodec.encode(
        ModelRequest(id="req-1", banner=Banner(w=1, h=1), tagid=None)
    ))
    assert from_dataclass["tagid"] is None
    assert from_model["tagid"] is None


def test_nested_models_are_flattened():
    payload = {
        "id": "req-1",
        "imp": [{"id": "1", "banner": Banner(w=300, h=250)}],
        "ext": (Imp(id="x", bidfloor=0.5),),
    }
    assert json.loads(PayloadCodec.encode(payload)) == {
        "id": "req-1",
        "imp": [{"id": "1", "banner": {"w": 300, "h": 250}}],
        "ext": [{"id": "x", "bidfloor": 0.5}],
    }


def test_too_deep_is_value_error():
    payload = []
    for _ in range(100000):
        payload = [payload]
    with pytest.raises(ValueError):
        PayloadCodec.encode(payload)
    with pytest.raises(ValueError):
        PayloadCodec.decode(b"[" * 100000 + b"]" * 100000)


@pytest.mark.parametrize("payload, error", [
    ({"id": {1, 2}}, TypeError),
    ({"price": float("inf")}, ValueError),
])
def test_unserializable(payload, error):
    with pytest.raises(error):
        PayloadCodec.encode(payload)


@pytest.mark.parametrize("body", [b"", b"{", b"\xff\xfe"])
def test_decode_malformed(body):
    with pytest.raises(ValueError):
        PayloadCodec.decode(body)
