"""Upstream transports: the stream-source contract and its HTTP implementation."""

from .interfaces import StreamTransport
from .sse import DONE, decode_line, iter_events
from .client import close_all_clients, get_httpx_client
from .http_transport import HttpStreamTransport, build_http_request

__all__ = [
    "StreamTransport",
    "DONE",
    "decode_line",
    "iter_events",
    "close_all_clients",
    "get_httpx_client",
    "HttpStreamTransport",
    "build_http_request",
]
