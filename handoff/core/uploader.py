import io
import os
import time
from typing import AsyncIterator, BinaryIO, Callable, Optional, Union

from handoff.observability import metrics
from handoff.observability.logging import log
from handoff.registry.client import RegistryClient
from handoff.registry.errors import LocalError, RegistryError, registry_error
from handoff.registry.schemas import TransferHandle
from handoff.settings import settings
from handoff.utils.cancel import CancelToken, guarded

ProgressCallback = Callable[[float], None]
Payload = Union[bytes, bytearray, memoryview, BinaryIO]


class ProgressTracker:
    """Turns (loaded, total) byte counts into a clamped, non-decreasing fraction."""

    def __init__(self, on_progress: Optional[ProgressCallback]):
        self._on_progress = on_progress
        self.last = 0.0
        self.finished = False

    def report(self, loaded: int, total: int) -> None:
        if total <= 0:
            fraction = 1.0
        else:
            fraction = max(0.0, min(1.0, loaded / total))
        if fraction < self.last or self.finished:
            return
        self.last = fraction
        self.finished = fraction >= 1.0
        if self._on_progress is not None:
            self._on_progress(fraction)


def _as_stream(payload: Payload) -> BinaryIO:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(payload))
    return payload


def _measure(stream: BinaryIO) -> int:
    try:
        return os.fstat(stream.fileno()).st_size - stream.tell()
    except (AttributeError, OSError):
        pos = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(pos)
        return end - pos


def _remaining_size(stream: BinaryIO) -> int:
    """Bytes between the current position and EOF. Pipes and closed files are rejected."""
    try:
        return _measure(stream)
    except (OSError, ValueError) as e:
        raise LocalError(f"Could not determine the file size: {e}") from e


async def _iter_body(
    stream: BinaryIO,
    total: int,
    tracker: ProgressTracker,
    chunk_size: int,
) -> AsyncIterator[bytes]:
    loaded = 0
    if total == 0:
        tracker.report(0, 0)
        return
    while True:
        try:
            chunk = stream.read(chunk_size)
        except OSError as e:
            raise LocalError(f"Could not read the file: {e}") from e
        if not chunk:
            break
        yield chunk
        # Resumed only once the transport asked for the next chunk
        loaded += len(chunk)
        metrics.add_bytes_uploaded(len(chunk))
        tracker.report(loaded, total)


async def upload(
    client: RegistryClient,
    handle: TransferHandle,
    file_bytes: Payload,
    on_progress: Optional[ProgressCallback] = None,
    *,
    cancel: Optional[CancelToken] = None,
    chunk_size: Optional[int] = None,
) -> None:
    """
    Stream the payload to the registry in a single request.

    2xx returns. Any other status raises RegistryError; a lost connection
    raises TransportError and abandonment raises AbortedError. A payload that
    cannot be sized or read raises LocalError. Never retried.
    """
    stream = _as_stream(file_bytes)
    total = _remaining_size(stream)
    tracker = ProgressTracker(on_progress)
    size = int(chunk_size or settings.UPLOAD_CHUNK_SIZE or 65536)

    log(event="upload_start", transferId=handle.id, totalBytes=total)
    start = time.monotonic()

    body = _iter_body(stream, total, tracker, size)
    try:
        resp = await guarded(cancel, client.send_payload(body, total))
    except Exception as e:
        log(event="upload_failed", transferId=handle.id, errorType=type(e).__name__)
        raise
    elapsed_ms = int((time.monotonic() - start) * 1000)

    if resp.is_success:
        # Some transports drain the body without resuming the generator past its last chunk
        tracker.report(total, total)
        metrics.record_upload_latency(elapsed_ms)
        log(event="upload_success", transferId=handle.id, statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        return

    try:
        err = registry_error(resp)
    except RegistryError as e:
        err = e
    log(
        event="upload_failed",
        transferId=handle.id,
        statusCode=int(resp.status_code),
        elapsedMs=elapsed_ms,
        error=err.message[:300],
    )
    raise err
