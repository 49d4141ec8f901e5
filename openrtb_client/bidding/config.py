from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_DATA_FORMAT = "application/json"
DEFAULT_ACCEPT_ENCODING = "gzip"
# Historical clients disagreed between "gzip" and "*"; gzip is the documented default.
DEFAULT_CONTENT_ENCODING = "gzip"
DEFAULT_CACHE_CONTROL = "no-store"


def _frozen_headers(headers: Optional[Mapping[str, str]]) -> Optional[Mapping[str, str]]:
    if headers is None:
        return None
    return MappingProxyType(dict(headers))


@dataclass(frozen=True)
class ClientSettings:
    """
    Everything one outbound OpenRTB request depends on.

    Optional fields left as None or "" resolve to the built-in defaults, so
    ``ClientSettings(endpoint=url, version="2.6", data_format=None)`` is the
    same as omitting ``data_format``.
    """

    endpoint: str
    version: str
    data_format: Optional[str] = DEFAULT_DATA_FORMAT
    accept_encoding: Optional[str] = DEFAULT_ACCEPT_ENCODING
    content_encoding: Optional[str] = DEFAULT_CONTENT_ENCODING
    cache_control: Optional[str] = DEFAULT_CACHE_CONTROL
    custom_headers: Optional[Mapping[str, str]] = None
    # Attach ambient cookies only on explicit opt-in.
    with_credentials: Optional[bool] = False

    def __post_init__(self):
        # Frozen dataclass: resolve defaults through object.__setattr__.
        # Empty strings count as absent, same as None.
        if not self.data_format:
            object.__setattr__(self, "data_format", DEFAULT_DATA_FORMAT)
        if not self.accept_encoding:
            object.__setattr__(self, "accept_encoding", DEFAULT_ACCEPT_ENCODING)
        if not self.content_encoding:
            object.__setattr__(self, "content_encoding", DEFAULT_CONTENT_ENCODING)
        if not self.cache_control:
            object.__setattr__(self, "cache_control", DEFAULT_CACHE_CONTROL)
        object.__setattr__(self, "with_credentials", bool(self.with_credentials))
        object.__setattr__(self, "custom_headers", _frozen_headers(self.custom_headers))


@dataclass(frozen=True)
class RequesterOptions:
    """
    Option bundle for the versioned requester.

    Every field defaults to None, meaning "not set here"; an empty string
    means the same. Merging is shallow and per key: a set value in the
    per-call bundle wins over the
    constructor bundle, which wins over the ClientSettings defaults.
    ``custom_headers`` is a single key, so a per-call mapping replaces the
    default mapping rather than being merged into it.
    """

    data_format: Optional[str] = None
    accept_encoding: Optional[str] = None
    content_encoding: Optional[str] = None
    custom_headers: Optional[Mapping[str, str]] = None
    cache_control: Optional[str] = None
    with_credentials: Optional[bool] = None

    def __post_init__(self):
        object.__setattr__(self, "custom_headers", _frozen_headers(self.custom_headers))

    def merged_with(self, overrides: Optional["RequesterOptions"]) -> "RequesterOptions":
        """Return a copy where every key set in ``overrides`` wins."""
        if overrides is None:
            return self
        changes = {
            f.name: getattr(overrides, f.name)
            for f in fields(overrides)
            if getattr(overrides, f.name) not in (None, "")
        }
        return replace(self, **changes)

    def to_settings(self, endpoint: str, version: str) -> ClientSettings:
        return ClientSettings(
            endpoint=endpoint,
            version=version,
            data_format=self.data_format,
            accept_encoding=self.accept_encoding,
            content_encoding=self.content_encoding,
            cache_control=self.cache_control,
            custom_headers=self.custom_headers,
            with_credentials=self.with_credentials,
        )


# Shared, read-only default bundle
DEFAULT_OPTIONS = RequesterOptions()
