"""
Failure classification for registry calls
-----------------------------------------
Every phase normalizes its failures into exactly one of:

- RegistryError  : the registry answered with a rejection we could decode
- TransportError : no response was obtained (connect/reset/protocol failure);
                   LocalError is the variant whose cause is on this machine
                   (unreadable payload, receive link that cannot be rendered)
- AbortedError   : the flow was abandoned before the call completed

All three share the ClassifiedError shape (status_code, status_text, message).
The long-poll "504 keep waiting" answer is not an error and never reaches here.
"""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx

GENERIC_MESSAGE = "The transfer service returned an unexpected response"
TRANSPORT_MESSAGE = "Request failed"
ABORTED_MESSAGE = "Aborted"

_MISSING = object()


class TransferError(Exception):
    status_code: Optional[int] = None
    status_text: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RegistryError(TransferError):
    def __init__(self, status_code: Optional[int], status_text: Optional[str], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text

    def __str__(self) -> str:
        return f"{self.status_code} {self.status_text or ''} - {self.message}"


class TransportError(TransferError):
    def __init__(self, message: str = TRANSPORT_MESSAGE):
        super().__init__(message)


class LocalError(TransportError):
    """The request could not be produced on this machine; presented with its own message."""


class AbortedError(TransferError):
    def __init__(self, message: str = ABORTED_MESSAGE):
        super().__init__(message)


def _is_json(resp: httpx.Response) -> bool:
    ctype = (resp.headers.get("content-type") or "").strip().lower()
    return ctype.startswith("application/json")


def decode_body(resp: httpx.Response) -> Any:
    """
    JSON when the content-type declares it, raw text otherwise.
    A JSON-declared body that does not parse is itself a RegistryError.
    """
    if not _is_json(resp):
        return resp.text
    try:
        return resp.json()
    except ValueError:
        raise RegistryError(resp.status_code, resp.reason_phrase, resp.text or GENERIC_MESSAGE)


def error_message(body: Any) -> str:
    """Prefer a `message` field, then the raw text, then the JSON encoding."""
    if isinstance(body, str):
        return body or GENERIC_MESSAGE
    if isinstance(body, dict) and body.get("message") is not None:
        return str(body["message"])
    if body is None:
        return GENERIC_MESSAGE
    return json.dumps(body, ensure_ascii=False)


def registry_error(resp: httpx.Response, body: Any = _MISSING) -> RegistryError:
    if body is _MISSING:
        body = decode_body(resp)
    return RegistryError(resp.status_code, resp.reason_phrase, error_message(body))


def failure_message(err: TransferError) -> str:
    """Human-readable text for the presenter."""
    if isinstance(err, RegistryError):
        return str(err)
    if isinstance(err, LocalError):
        return err.message
    if isinstance(err, TransportError):
        return TRANSPORT_MESSAGE
    if isinstance(err, AbortedError):
        return ABORTED_MESSAGE
    raise TypeError(f"unclassified transfer error: {type(err).__name__}")
