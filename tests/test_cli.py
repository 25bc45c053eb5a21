from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from handoff import cli as cli_mod
from handoff.registry.client import RegistryClient
from handoff.settings import settings


@pytest.fixture
def token_file(monkeypatch, tmp_path):
    path = tmp_path / "token"
    monkeypatch.setattr(settings, "HANDOFF_TOKEN_FILE", str(path))
    monkeypatch.setattr(settings, "HANDOFF_REDIS_URL", "")
    monkeypatch.setattr(settings, "HANDOFF_TOKEN", "")
    return path


def test_token_set_show_clear(token_file):
    runner = CliRunner()
    res = runner.invoke(cli_mod.cli, ["token", "set", "supersecret"])
    assert res.exit_code == 0
    assert token_file.read_text() == "supersecret"

    res = runner.invoke(cli_mod.cli, ["token", "show"])
    assert res.exit_code == 0
    assert "su*******et" in res.output
    assert "supersecret" not in res.output

    res = runner.invoke(cli_mod.cli, ["token", "clear"])
    assert res.exit_code == 0
    assert not token_file.exists()

    res = runner.invoke(cli_mod.cli, ["token", "show"])
    assert res.exit_code == 1


def test_send_requires_token(token_file, tmp_path):
    f = tmp_path / "a.txt"
    f.write_text("hi")
    res = CliRunner().invoke(cli_mod.cli, ["send", str(f)])
    assert res.exit_code == 1
    assert "No token set" in res.output


def _client_factory(s):
    def make(origin, token):
        return RegistryClient(origin, token, transport=s.transport)
    return make


def test_send_end_to_end(token_file, tmp_path, script):
    token_file.write_text("tok")
    f = tmp_path / "notes.txt"
    f.write_bytes(b"some file body")

    s = script({
        ("PUT", "/api/transfers"): [httpx.Response(200, json={"id": "abc123"})],
        ("GET", "/api/transfer/wait"): [httpx.Response(504, json={"message": "try again"}), httpx.Response(204)],
        ("POST", "/api/transfer/send"): [httpx.Response(204)],
    })
    with patch.object(cli_mod, "RegistryClient", _client_factory(s)), \
         patch("handoff.core.orchestrator.load_renderer", lambda kind="text": (lambda url: "QR")):
        res = CliRunner().invoke(cli_mod.cli, ["send", str(f), "--origin", "http://reg.test", "--stats"])

    assert res.exit_code == 0, res.output
    assert "http://reg.test/api/receive/abc123" in res.output
    assert "Sent notes.txt" in res.output
    assert "polls_issued" in res.output
    assert s.calls("POST", "/api/transfer/send")[0].content == b"some file body"
    assert s.requests[0].headers["x-transfer-token"] == "tok"


def test_send_failure_exits_nonzero(token_file, tmp_path, script):
    token_file.write_text("tok")
    f = tmp_path / "notes.txt"
    f.write_bytes(b"x")

    s = script({
        ("PUT", "/api/transfers"): [httpx.Response(401, json={"message": "Invalid or missing token"})],
    })
    with patch.object(cli_mod, "RegistryClient", _client_factory(s)):
        res = CliRunner().invoke(cli_mod.cli, ["send", str(f), "--origin", "http://reg.test"])

    assert res.exit_code == 1
    assert "Invalid or missing token" in res.output
