from typing import Optional

from handoff.observability import metrics
from handoff.observability.logging import log
from handoff.registry.client import RegistryClient
from handoff.registry.errors import RegistryError, decode_body, registry_error
from handoff.registry.schemas import TransferHandle, TransferRequest
from handoff.utils.cancel import CancelToken, guarded


def _extract_id(body) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    transfer_id = body.get("id")
    if isinstance(transfer_id, str) and transfer_id:
        return transfer_id
    return None


async def initiate(
    client: RegistryClient,
    request: TransferRequest,
    *,
    cancel: Optional[CancelToken] = None,
) -> TransferHandle:
    """
    Create the transfer record and return its handle.

    Accepted only on 2xx with a non-empty `id` in the decoded body; anything
    else (including a 2xx without an id) raises RegistryError.

    A registry that cannot be reached at all raises TransportError, not
    RegistryError: no response came back, so there is no status to report.
    """
    metrics.increment_create_attempt()
    log(event="transfer_create_attempt", filename=request.filename, contentType=request.contentType)

    resp = await guarded(cancel, client.create_transfer(request))
    try:
        body = decode_body(resp)
    except RegistryError as e:
        log(event="transfer_create_failed", statusCode=e.status_code, reason="malformed_json")
        raise

    transfer_id = _extract_id(body)
    if not resp.is_success or transfer_id is None:
        err = registry_error(resp, body)
        log(
            event="transfer_create_failed",
            statusCode=int(resp.status_code),
            reason="missing_id" if resp.is_success else "non_2xx",
            error=err.message[:300],
        )
        raise err

    log(event="transfer_create_success", transferId=transfer_id)
    return TransferHandle(id=transfer_id)
