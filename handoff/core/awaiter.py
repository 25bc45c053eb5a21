from typing import Optional

from handoff.observability import metrics
from handoff.observability.logging import log
from handoff.registry.client import RegistryClient
from handoff.registry.errors import registry_error
from handoff.registry.schemas import TransferHandle
from handoff.utils.cancel import CancelToken, guarded

# The registry's "no receiver joined within the server-side wait" answer.
# It is the only status that means "ask again".
WAIT_TIMEOUT_STATUS = 504


async def await_peer(
    client: RegistryClient,
    handle: TransferHandle,
    *,
    cancel: Optional[CancelToken] = None,
) -> None:
    """
    Long-poll until the registry reports that a receiver joined.

    2xx returns, 504 re-issues the wait immediately (no cap, no backoff),
    anything else raises RegistryError. Polls are strictly sequential and
    none is issued once `cancel` has fired.
    """
    attempt = 0
    while True:
        if cancel is not None:
            cancel.raise_if_cancelled()

        attempt += 1
        metrics.increment_poll()
        log(event="peer_wait_poll", transferId=handle.id, attempt=attempt)

        resp = await guarded(cancel, client.wait_for_peer())

        if resp.is_success:
            log(event="peer_joined", transferId=handle.id, attempts=attempt)
            return

        if resp.status_code == WAIT_TIMEOUT_STATUS:
            metrics.increment_poll_timeout()
            log(event="peer_wait_timeout", transferId=handle.id, attempt=attempt)
            continue

        err = registry_error(resp)
        log(
            event="peer_wait_failed",
            transferId=handle.id,
            attempt=attempt,
            statusCode=int(resp.status_code),
            error=err.message[:300],
        )
        raise err
