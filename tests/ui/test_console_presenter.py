import io
from unittest.mock import patch

from rich.console import Console

from handoff.core.presenter import Stage
from handoff.ui.console import ConsolePresenter


def _presenter(interactive=False):
    out = io.StringIO()
    console = Console(file=out, force_terminal=False, width=100)
    return ConsolePresenter(console, interactive=interactive), out


def test_waiting_stage_prints_url_and_code():
    p, out = _presenter()
    p.show(Stage.loading("Creating Transfer..."))
    p.update(Stage.waiting("http://reg.test/api/receive/abc123", "##QR##"))
    p.dismiss()
    text = out.getvalue()
    assert "http://reg.test/api/receive/abc123" in text
    assert "##QR##" in text
    assert p.visible is False


def test_transferring_tracks_progress():
    p, _ = _presenter()
    p.show(Stage.loading("Creating Transfer..."))
    p.update(Stage.transferring(None))
    p.update(Stage.transferring(0.5))
    task = p._progress.tasks[0]
    assert task.completed == 50
    p.update(Stage.transferring(1.0))
    assert p._progress.tasks[0].completed == 100
    p.dismiss()
    assert p._progress is None


def test_error_stage_prints_message_and_dismisses():
    p, out = _presenter()
    p.show(Stage.loading("Creating Transfer..."))
    p.update(Stage.error("500 Internal Server Error - disk full"))
    assert "disk full" in out.getvalue()
    assert p.visible is False


def test_error_stage_waits_for_ok_when_interactive():
    p, _ = _presenter(interactive=True)
    with patch.object(p.console, "input", return_value="") as mock_input:
        p.update(Stage.error("Request failed"))
    mock_input.assert_called_once()
    assert p.visible is False
