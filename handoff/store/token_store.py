import os
from pathlib import Path
from typing import Optional, Union

from redis import Redis

from handoff.settings import settings
from handoff.observability.logging import log


class FileTokenStore:
    """Bearer token persisted in a single file readable only by its owner."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def get_token(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set_token(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("token must not be empty")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self.path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(token)
        log(event="token_saved", store="file", path=str(self.path))

    def clear_token(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        log(event="token_cleared", store="file", path=str(self.path))


class RedisTokenStore:
    """Bearer token shared through redis, for hosts where several clients reuse one credential."""

    def __init__(self, url: str, key: str):
        self.key = key
        self._r = Redis.from_url(url, decode_responses=True)

    def get_token(self) -> Optional[str]:
        token = self._r.get(self.key)
        return (token or "").strip() or None

    def set_token(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("token must not be empty")
        self._r.set(self.key, token)
        log(event="token_saved", store="redis", key=self.key)

    def clear_token(self) -> None:
        self._r.delete(self.key)
        log(event="token_cleared", store="redis", key=self.key)


def get_token_store():
    if settings.HANDOFF_REDIS_URL:
        return RedisTokenStore(settings.HANDOFF_REDIS_URL, settings.HANDOFF_TOKEN_KEY)
    return FileTokenStore(settings.HANDOFF_TOKEN_FILE)


def resolve_token(store) -> Optional[str]:
    """Environment override first, then whatever the store holds."""
    if settings.HANDOFF_TOKEN:
        return settings.HANDOFF_TOKEN
    return store.get_token()
