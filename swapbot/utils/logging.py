from __future__ import annotations

import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_EXCLUDE = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


def _extract_extras(record: logging.LogRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for k, v in record.__dict__.items():
        if k in DEFAULT_EXCLUDE:
            continue
        if k.startswith("_"):
            continue
        data[k] = v
    return data


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter with extra fields under 'extra'."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "ts": record.created,
        }
        extras = _extract_extras(record)
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # amounts are ints/Decimals; str() keeps big values exact
        return json.dumps(payload, ensure_ascii=True, default=str)


class HumanFormatter(logging.Formatter):
    """Console-friendly formatter with concise summaries for engine events."""

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created))
        logger_name = record.name
        msg = record.getMessage()
        extras = _extract_extras(record)
        summary = self._summarize(msg, extras)
        if summary:
            line = f"[{ts}] ({logger_name}) {msg} | {summary}"
        else:
            parts = []
            for k, v in extras.items():
                text = json.dumps(v, ensure_ascii=False, default=str)
                if len(text) > 120:
                    text = text[:117] + "..."
                parts.append(f"{k}={text}")
            tail = " ".join(parts)
            line = f"[{ts}] ({logger_name}) {msg}{(' | ' + tail) if tail else ''}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _summarize(self, msg: str, extras: Dict[str, Any]) -> str:
        if msg == "swap_submitted":
            path = extras.get("path") or []
            route = "->".join(str(p) for p in path) or "?"
            return (
                f"{extras.get('kind')} {route} amount={extras.get('amount')} "
                f"bound={extras.get('bound')} deadline={extras.get('deadline')}"
            )

        if msg in ("limit_order_rearmed", "limit_order_triggered"):
            handle = extras.get("handle")
            price = extras.get("price")
            condition = extras.get("condition")
            return f"handle={handle} price={price} condition={condition}"

        if msg == "tick_drained":
            return f"due={extras.get('due')} pending={extras.get('pending')}"

        return ""


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Console: human-readable
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(HumanFormatter())

    # File: structured JSON lines
    logs_dir = Path(log_dir or os.getenv("SWAPBOT_LOG_DIR", "logs"))
    logs_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(logs_dir / "swapbot.jsonl", encoding="utf-8")
    file_handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(console)
    root.addHandler(file_handler)

    # keep transport libraries quieter by default
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str, *, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger


__all__ = ["setup_logging", "get_logger", "JsonFormatter", "HumanFormatter"]
