from enum import Enum
from typing import Optional


class TransferState(str, Enum):
    # Registry allocated an id; receive URL can be derived
    CREATED = "Created"
    # Long-polling the registry for the receiver
    AWAITING_PEER = "AwaitingPeer"
    # A wait call returned 2xx
    PEER_JOINED = "PeerJoined"
    # Send call issued, bytes streaming
    UPLOADING = "Uploading"
    # Terminal
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


# Forward path; a flow never skips a step and never goes back
ORDER = (
    TransferState.CREATED,
    TransferState.AWAITING_PEER,
    TransferState.PEER_JOINED,
    TransferState.UPLOADING,
    TransferState.SUCCEEDED,
)

TERMINAL = frozenset({TransferState.SUCCEEDED, TransferState.FAILED})


class InvalidTransition(RuntimeError):
    pass


def can_transition(current: Optional[TransferState], nxt: TransferState) -> bool:
    """
    None -> CREATED | FAILED (initiation may fail before anything exists)
    X -> successor of X on ORDER
    any non-terminal -> FAILED
    """
    if current in TERMINAL:
        return False
    if nxt is TransferState.FAILED:
        return True
    if current is None:
        return nxt is TransferState.CREATED
    idx = ORDER.index(current)
    return idx + 1 < len(ORDER) and ORDER[idx + 1] is nxt


def check_transition(current: Optional[TransferState], nxt: TransferState) -> None:
    if not can_transition(current, nxt):
        cur = current.value if current is not None else "None"
        raise InvalidTransition(f"illegal transfer state transition {cur} -> {nxt.value}")
