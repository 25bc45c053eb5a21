import os
import stat
from unittest.mock import MagicMock, patch

import pytest

from handoff.settings import settings
from handoff.store.token_store import (
    FileTokenStore,
    RedisTokenStore,
    get_token_store,
    resolve_token,
)


def test_file_store_round_trip(tmp_path):
    store = FileTokenStore(tmp_path / "cfg" / "token")
    assert store.get_token() is None
    store.set_token("  secret-token\n")
    assert store.get_token() == "secret-token"
    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode & 0o077 == 0


def test_file_store_rejects_empty_token(tmp_path):
    store = FileTokenStore(tmp_path / "token")
    with pytest.raises(ValueError):
        store.set_token("   ")
    assert not store.path.exists()


def test_file_store_clear(tmp_path):
    store = FileTokenStore(tmp_path / "token")
    store.set_token("abc")
    store.clear_token()
    assert store.get_token() is None
    store.clear_token()  # already gone


def test_blank_file_means_no_token(tmp_path):
    p = tmp_path / "token"
    p.write_text("\n")
    assert FileTokenStore(p).get_token() is None


@patch("handoff.store.token_store.Redis")
def test_redis_store(mock_redis_cls):
    r = MagicMock()
    mock_redis_cls.from_url.return_value = r
    store = RedisTokenStore("redis://localhost:6379/0", "handoff:token")

    r.get.return_value = None
    assert store.get_token() is None

    store.set_token("tok")
    r.set.assert_called_with("handoff:token", "tok")

    r.get.return_value = "tok"
    assert store.get_token() == "tok"

    store.clear_token()
    r.delete.assert_called_with("handoff:token")


@patch("handoff.store.token_store.Redis")
def test_get_token_store_picks_backend(mock_redis_cls, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "HANDOFF_REDIS_URL", "")
    monkeypatch.setattr(settings, "HANDOFF_TOKEN_FILE", str(tmp_path / "token"))
    assert isinstance(get_token_store(), FileTokenStore)

    monkeypatch.setattr(settings, "HANDOFF_REDIS_URL", "redis://localhost:6379/0")
    assert isinstance(get_token_store(), RedisTokenStore)


def test_env_token_overrides_store(monkeypatch, tmp_path):
    store = FileTokenStore(tmp_path / "token")
    store.set_token("stored")
    monkeypatch.setattr(settings, "HANDOFF_TOKEN", "")
    assert resolve_token(store) == "stored"
    monkeypatch.setattr(settings, "HANDOFF_TOKEN", "from-env")
    assert resolve_token(store) == "from-env"
