from typing import AsyncIterable, Optional

import httpx

from handoff.registry.errors import TransportError
from handoff.registry.schemas import TransferRequest
from handoff.observability.logging import log

TOKEN_HEADER = "x-transfer-token"

CREATE_PATH = "/api/transfers"
WAIT_PATH = "/api/transfer/wait"
SEND_PATH = "/api/transfer/send"


class RegistryClient:
    """Thin async wrapper over the transfer registry endpoints.

    One instance serves one flow: the registry answers the create call with a
    per-transfer session cookie, and the shared cookie jar carries it into the
    wait and send calls. Status codes are returned untouched; only failures to
    obtain a response are turned into TransportError here.

    No client-side timeout is applied. The registry bounds every wait call.
    """

    def __init__(
        self,
        origin: str,
        token: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.origin = origin.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.origin,
            timeout=httpx.Timeout(None),
            transport=transport,
        )

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, extra: Optional[dict] = None) -> dict:
        h = {}
        if self.token:
            h[TOKEN_HEADER] = self.token
        if extra:
            h.update(extra)
        return h

    def receive_url(self, transfer_id: str) -> str:
        return f"{self.origin}/api/receive/{transfer_id}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            log(
                event="registry_transport_error",
                method=method,
                path=path,
                errorType=type(e).__name__,
                error=str(e)[:300],
            )
            raise TransportError() from e

    async def create_transfer(self, request: TransferRequest) -> httpx.Response:
        """PUT /api/transfers with JSON {filename, contentType}."""
        return await self._request(
            "PUT",
            CREATE_PATH,
            json=request.model_dump(),
            headers=self._headers({"Content-Type": "application/json"}),
        )

    async def wait_for_peer(self) -> httpx.Response:
        """GET /api/transfer/wait; 504 means the server-side wait elapsed."""
        return await self._request("GET", WAIT_PATH, headers=self._headers())

    async def send_payload(self, body: AsyncIterable[bytes], length: int) -> httpx.Response:
        """POST /api/transfer/send streaming `body`; Content-Length is forwarded to the receiver."""
        return await self._request(
            "POST",
            SEND_PATH,
            content=body,
            headers=self._headers({
                "Content-Type": "application/octet-stream",
                "Content-Length": str(int(length)),
            }),
        )
