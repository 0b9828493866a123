import json
import os
from datetime import datetime, timezone
from pathlib import Path

from conjuga.config import settings


def _get_log_path() -> Path:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"interactions_{today}.jsonl"


def log_interaction(
    event: str,
    form_id: int | None = None,
    correct: bool | None = None,
    latency_ms: int | None = None,
    context: str | None = None,
    session_id: str | None = None,
    **extra,
) -> None:
    if os.environ.get("TESTING"):
        return

    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "form_id": form_id,
        "correct": correct,
        "latency_ms": latency_ms,
        "context": context,
        "session_id": session_id,
        **extra,
    }
    entry = {k: v for k, v in entry.items() if v is not None}

    log_path = _get_log_path()
    with open(log_path, "a") as f:
        f.write(json.dumps(entry, ensure_ascii=False) + "\n")
