import json
import sys
import time
from handoff.settings import settings

# Credentials must never reach the log stream
SENSITIVE_KEYS = {"token", "x-transfer-token", "authorization", "cookie"}

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    return v

def log(event: str, **fields):
    if not settings.LOG_ENABLED:
        return

    payload = {"ts": int(time.time()), "event": event}

    if settings.ENABLE_TOKEN_REDACTION:
        clean_fields = {}
        for k, v in fields.items():
            if k.lower() in SENSITIVE_KEYS:
                clean_fields[k] = _redact_value(v)
            elif isinstance(v, dict):
                # Header maps and similar: redact only the sensitive entries
                clean_fields[k] = {
                    sk: (_redact_value(sv) if str(sk).lower() in SENSITIVE_KEYS else sv)
                    for sk, sv in v.items()
                }
            else:
                clean_fields[k] = v
        payload.update(clean_fields)
    else:
        payload.update(fields)

    out = sys.stderr if settings.LOG_TO_STDERR else sys.stdout
    print(json.dumps(payload, ensure_ascii=False, default=str), file=out)
