"""Structured event logging for the panel and CLI.

Every event lands twice under ``runtime/logs``: as a ``key=value`` line for
``courierdesk log tail`` and as a JSON object for tooling.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any

from .metrics import METRICS

LOG_DIR = Path("runtime") / "logs"
TEXT_LOG = LOG_DIR / "courierdesk.log"
JSON_LOG = LOG_DIR / "courierdesk.jsonl"

LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 3
_LOG_LOCK = Lock()

LEVEL_ORDER = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "CRITICAL": 50}


def ensure_runtime_dirs() -> None:
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def normalise_level(level: str) -> str:
    """Map ``level`` onto :data:`LEVEL_ORDER`; unknown levels log as INFO."""

    upper = level.upper()
    if upper == "WARNING":
        return "WARN"
    return upper if upper in LEVEL_ORDER else "INFO"


def _rotate(path: Path) -> None:
    if not path.exists() or path.stat().st_size < LOG_MAX_BYTES:
        return
    # courierdesk.log.1 is the newest backup; the oldest falls off the end.
    for idx in range(LOG_BACKUP_COUNT, 0, -1):
        backup = path.with_name(f"{path.name}.{idx}")
        if not backup.exists():
            continue
        if idx == LOG_BACKUP_COUNT:
            backup.unlink()
        else:
            backup.rename(path.with_name(f"{path.name}.{idx + 1}"))
    path.rename(path.with_name(f"{path.name}.1"))


def _text_line(event: dict[str, Any]) -> str:
    parts = [f"[{event['ts']}]", f"level={event['level']}", f"svc={event['svc']}", f"topic={event['topic']}"]
    if "order_id" in event:
        parts.append(f"order_id={event['order_id']}")
    parts.extend(f"{key}={value}" for key, value in event.get("extra", {}).items())
    parts.append(f'msg="{event["msg"]}"')
    return " ".join(parts)


def _append(path: Path, line: str) -> None:
    _rotate(path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line + "\n")


def log_event(
    svc: str,
    topic: str,
    message: str,
    *,
    level: str = "INFO",
    order_id: str | None = None,
    **fields: Any,
) -> None:
    """Append one event to the plaintext and JSONL logs.

    ``order_id`` is promoted to a top-level key so a single order can be
    followed across poll cycles and transitions. ERROR and above count
    towards the ``errors_1m`` KPI.
    """

    level_norm = normalise_level(level)
    event: dict[str, Any] = {
        "ts": datetime.now().isoformat(timespec="seconds"),
        "level": level_norm,
        "svc": svc,
        "topic": topic,
        "msg": message,
        "pid": os.getpid(),
    }
    if order_id:
        event["order_id"] = order_id
    if fields:
        event["extra"] = fields

    ensure_runtime_dirs()
    with _LOG_LOCK:
        _append(TEXT_LOG, _text_line(event))
        _append(JSON_LOG, json.dumps(event, separators=(",", ":"), ensure_ascii=False, default=str))

    if LEVEL_ORDER[level_norm] >= LEVEL_ORDER["ERROR"]:
        METRICS.record_error()
