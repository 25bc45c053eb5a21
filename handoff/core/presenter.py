from dataclasses import dataclass
from typing import Optional, Protocol

# Stage kinds
LOADING = "loading"
WAITING = "waiting"
TRANSFERRING = "transferring"
ERROR = "error"


@dataclass(frozen=True)
class Stage:
    kind: str
    title: str
    # WAITING: receive URL and its rendered visual code
    url: Optional[str] = None
    visual: Optional[str] = None
    # TRANSFERRING: None while indeterminate, else 0..1
    progress: Optional[float] = None
    # ERROR: human-readable failure text
    message: Optional[str] = None

    @classmethod
    def loading(cls, title: str) -> "Stage":
        return cls(kind=LOADING, title=title)

    @classmethod
    def waiting(cls, url: str, visual: Optional[str]) -> "Stage":
        return cls(kind=WAITING, title="Waiting for peer...", url=url, visual=visual)

    @classmethod
    def transferring(cls, progress: Optional[float]) -> "Stage":
        return cls(kind=TRANSFERRING, title="Sending...", progress=progress)

    @classmethod
    def error(cls, message: str) -> "Stage":
        return cls(kind=ERROR, title="Error", message=message)


class Presenter(Protocol):
    def show(self, stage: Stage) -> None: ...

    def update(self, stage: Stage) -> None: ...

    def dismiss(self) -> None: ...
