"""JSON state file for the engine: identity plus pending scheduler tasks."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..execution.errors import StateRestoreError
from ..execution.models import Currency

if TYPE_CHECKING:
    from ..app.config import AppConfig

STATE_VERSION = 1


class StateStore:
    def __init__(self, path: str | Path, *, logger: Optional[logging.Logger] = None) -> None:
        self.path = Path(path)
        self.log = logger or logging.getLogger("swapbot.core.persistence")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the saved record, or ``None`` when nothing was saved yet.

        Raises:
            StateRestoreError: the file exists but is not a valid record.
        """
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                record = json.load(handle)
        except (OSError, ValueError) as exc:
            raise StateRestoreError(f"cannot read state file {self.path}: {exc}") from exc
        if not isinstance(record, dict):
            raise StateRestoreError(f"state file {self.path} does not hold an object")
        version = record.get("version")
        if version != STATE_VERSION:
            raise StateRestoreError(f"unsupported state version {version!r} in {self.path}")
        return record

    def save(self, record: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record, handle, ensure_ascii=False, indent=2, default=str)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        self.log.debug("state_saved", extra={"path": str(self.path)})


def state_record(cfg: "AppConfig", scheduler_snapshot: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "version": STATE_VERSION,
        "controller": cfg.controller,
        "self_id": cfg.self_id,
        "exchange_address": cfg.exchange_address,
        "token_addresses": {c.value: addr for c, addr in cfg.token_addresses.items()},
        "scheduler": scheduler_snapshot,
    }


def apply_identity(cfg: "AppConfig", record: Dict[str, Any]) -> "AppConfig":
    """Overlay the persisted identity on ``cfg``; the saved values win."""
    try:
        addresses = {Currency(k): str(v) for k, v in (record.get("token_addresses") or {}).items()}
        merged = dict(cfg.token_addresses)
        merged.update(addresses)
        updated = replace(
            cfg,
            controller=str(record.get("controller") or cfg.controller),
            self_id=str(record.get("self_id") or cfg.self_id),
            exchange_address=str(record.get("exchange_address") or cfg.exchange_address),
            token_addresses=merged,
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise StateRestoreError(f"invalid identity in state record: {exc}") from exc
    return updated


__all__ = ["StateStore", "STATE_VERSION", "state_record", "apply_identity"]
