import httpx
import pytest

from handoff.observability import metrics
from handoff.settings import settings


@pytest.fixture(autouse=True)
def quiet_logs_and_fresh_metrics(monkeypatch):
    monkeypatch.setattr(settings, "LOG_ENABLED", False)
    metrics.reset()
    yield
    metrics.reset()


class Script:
    """
    Scripted registry: each (method, path) pops its next response in order.
    Responses may be httpx.Response objects, exceptions to raise, or callables
    taking the request. A callable may be a coroutine function; MockTransport
    awaits its result.
    """

    def __init__(self, routes):
        self.routes = {k: list(v) for k, v in routes.items()}
        self.requests = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(f"unexpected request {request.method} {request.url.path}")
        nxt = queue.pop(0)
        if callable(nxt) and not isinstance(nxt, httpx.Response):
            nxt = nxt(request)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @property
    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def script():
    return Script
