import importlib
from typing import Callable, List, Optional

from handoff.core.awaiter import await_peer
from handoff.core.initiator import initiate
from handoff.core.presenter import Presenter, Stage
from handoff.core.state_machine import TransferState, check_transition
from handoff.core.uploader import Payload, upload
from handoff.observability import metrics
from handoff.observability.logging import log
from handoff.registry.client import RegistryClient
from handoff.registry.errors import AbortedError, LocalError, TransferError, failure_message
from handoff.registry.schemas import TransferHandle, TransferRequest
from handoff.utils.cancel import CancelToken

StateListener = Callable[[TransferState], None]


def load_renderer(kind: str = "text") -> Callable[[str], str]:
    """Import the visual-code renderer on first use; only needed once a handle exists."""
    qr = importlib.import_module("handoff.render.qr")
    return qr.RENDERERS[kind]


class TransferFlow:
    """
    One send attempt: initiate -> await peer -> upload, strictly in order.

    The first failure of any phase ends the flow in FAILED; there is no
    recovery and no way back out of a terminal state. Presenter calls stop
    as soon as the flow is cancelled.
    """

    def __init__(
        self,
        client: RegistryClient,
        presenter: Presenter,
        *,
        renderer: str = "text",
    ):
        self.client = client
        self.presenter = presenter
        self.renderer = renderer
        self.cancel_token = CancelToken()

        self.state: Optional[TransferState] = None
        self.history: List[TransferState] = []
        self.handle: Optional[TransferHandle] = None
        self.error: Optional[TransferError] = None

        self._listeners: List[StateListener] = []
        self._started = False

    def on_state(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def cancel(self) -> None:
        """Abandon the flow; no request or presenter call follows."""
        if not self.cancel_token.cancelled:
            log(event="flow_cancel_requested", state=self.state.value if self.state else None)
        self.cancel_token.cancel()

    def _advance(self, state: TransferState) -> None:
        check_transition(self.state, state)
        self.state = state
        self.history.append(state)
        log(event="flow_state", state=state.value, transferId=self.handle.id if self.handle else None)
        for listener in self._listeners:
            listener(state)

    def _present(self, method: str, *args) -> None:
        if self.cancel_token.cancelled:
            return
        getattr(self.presenter, method)(*args)

    def _on_progress(self, fraction: float) -> None:
        self._present("update", Stage.transferring(fraction))

    def _fail(self, err: TransferError) -> None:
        self.error = err
        self._advance(TransferState.FAILED)
        metrics.increment_flow_failed()
        if isinstance(err, AbortedError):
            log(event="flow_aborted", transferId=self.handle.id if self.handle else None)
            return
        message = failure_message(err)
        log(
            event="flow_failed",
            transferId=self.handle.id if self.handle else None,
            errorType=type(err).__name__,
            statusCode=err.status_code,
            error=message[:500],
        )
        self._present("update", Stage.error(message))

    def _render(self, url: str) -> str:
        try:
            return load_renderer(self.renderer)(url)
        except Exception as e:
            raise LocalError(f"Could not render the receive link: {e}") from e

    async def run(self, request: TransferRequest, file_bytes: Payload) -> TransferState:
        if self._started:
            raise RuntimeError("a TransferFlow runs only once; start a new flow to retry")
        self._started = True
        cancel = self.cancel_token

        self._present("show", Stage.loading("Creating Transfer..."))
        try:
            self.handle = await initiate(self.client, request, cancel=cancel)
            self._advance(TransferState.CREATED)

            url = self.client.receive_url(self.handle.id)
            visual = self._render(url)
            self._advance(TransferState.AWAITING_PEER)
            self._present("update", Stage.waiting(url, visual))

            await await_peer(self.client, self.handle, cancel=cancel)
            self._advance(TransferState.PEER_JOINED)
            self._present("update", Stage.transferring(None))

            self._advance(TransferState.UPLOADING)
            await upload(self.client, self.handle, file_bytes, self._on_progress, cancel=cancel)
        except TransferError as e:
            self._fail(e)
            return self.state

        self._advance(TransferState.SUCCEEDED)
        metrics.increment_flow_succeeded()
        self._present("dismiss")
        return self.state
