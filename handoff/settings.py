import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Registry origin; also the prefix of the receive URL handed to the peer
    HANDOFF_ORIGIN: str = os.getenv("HANDOFF_ORIGIN", "http://localhost:8080").rstrip("/")

    # Bearer token override. Takes precedence over the credential store.
    HANDOFF_TOKEN: str = os.getenv("HANDOFF_TOKEN", "")

    # Credential store
    HANDOFF_TOKEN_FILE: str = os.getenv(
        "HANDOFF_TOKEN_FILE", os.path.join(os.path.expanduser("~"), ".config", "handoff", "token")
    )
    # When set, the token lives in redis instead of the token file
    HANDOFF_REDIS_URL: str = os.getenv("HANDOFF_REDIS_URL", "")
    HANDOFF_TOKEN_KEY: str = os.getenv("HANDOFF_TOKEN_KEY", "handoff:token")

    # Upload body is streamed in chunks of this size; one progress event per chunk
    UPLOAD_CHUNK_SIZE: int = int(os.getenv("UPLOAD_CHUNK_SIZE", "65536"))

    # Logging
    ENABLE_TOKEN_REDACTION: bool = os.getenv("ENABLE_TOKEN_REDACTION", "true").lower() == "true"
    LOG_TO_STDERR: bool = os.getenv("LOG_TO_STDERR", "true").lower() == "true"
    LOG_ENABLED: bool = os.getenv("LOG_ENABLED", "true").lower() == "true"

settings = Settings()
