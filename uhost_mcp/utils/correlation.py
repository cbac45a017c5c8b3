"""Request correlation ids for log records.

A ContextVar holds the id of the request being served so that adapter calls
made on its behalf log the same ``req_id`` as the transport layer.
"""

from __future__ import annotations

from contextvars import ContextVar

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def set_request_id(request_id: str) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str:
    """Return the current request correlation id, or empty string."""
    return _request_id_var.get()
