import dataclasses
import json
from typing import Any

from pydantic import BaseModel


class PayloadCodec:
    """
    JSON encoding for OpenRTB payloads.

    The client never looks inside a payload. The only conversion applied is
    turning dataclass instances and pydantic models, at any depth, into their
    plain structured form so they serialize like the dicts they stand for.
    """

    @staticmethod
    def to_plain(payload: Any) -> Any:
        # exclude_unset keeps fields explicitly set to None as JSON null
        if isinstance(payload, BaseModel):
            return payload.model_dump(mode="json", exclude_unset=True)
        if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
            return {
                f.name: PayloadCodec.to_plain(getattr(payload, f.name))
                for f in dataclasses.fields(payload)
            }
        if isinstance(payload, dict):
            return {key: PayloadCodec.to_plain(value) for key, value in payload.items()}
        if isinstance(payload, (list, tuple)):
            return [PayloadCodec.to_plain(value) for value in payload]
        return payload

    @staticmethod
    def encode(payload: Any) -> bytes:
        """
        Serialize a payload to UTF-8 JSON.

        Raises:
            TypeError: payload holds values JSON cannot represent.
            ValueError: payload holds NaN/Infinity, a circular reference, or
                is nested too deeply to serialize.
        """
        try:
            text = json.dumps(
                PayloadCodec.to_plain(payload),
                ensure_ascii=False,
                allow_nan=False,
                separators=(",", ":"),
            )
        except RecursionError as e:
            raise ValueError(f"payload is nested too deeply: {e}") from e
        return text.encode("utf-8")

    @staticmethod
    def decode(body: bytes) -> Any:
        """
        Parse a UTF-8 JSON body.

        Raises:
            ValueError: body is not UTF-8 JSON, or is nested too deeply to parse.
        """
        try:
            return json.loads(body.decode("utf-8"))
        except RecursionError as e:
            raise ValueError(f"body is nested too deeply: {e}") from e
