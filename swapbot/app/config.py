from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..execution.models import Currency
from ..execution.slippage import TolerancePreset

DEFAULT_TOKEN_ADDRESSES: Dict[Currency, str] = {
    Currency.XTC: "aanaa-xaaaa-aaaah-aaeiq-cai",
    Currency.WICP: "utozz-siaaa-aaaam-qaaxq-cai",
}
DEFAULT_EXCHANGE_ADDRESS = "3xwpq-ziaaa-aaaah-qcn4a-cai"
DEFAULT_EXCHANGE_URL = "http://127.0.0.1:8000/exchange"

FAILURE_POLICIES = ("drop", "retry")


@dataclass(slots=True)
class AppConfig:
    controller: str
    self_id: str
    exchange_url: str = DEFAULT_EXCHANGE_URL
    exchange_address: str = DEFAULT_EXCHANGE_ADDRESS
    ledger_urls: Dict[Currency, str] = field(default_factory=dict)
    token_addresses: Dict[Currency, str] = field(default_factory=lambda: dict(DEFAULT_TOKEN_ADDRESSES))
    tolerance: TolerancePreset = field(default_factory=TolerancePreset)
    recheck_interval_secs: float = 10.0
    tick_interval_secs: float = 1.0
    deadline_secs: int = 30
    failure_policy: str = "drop"
    max_pending: Optional[int] = None
    state_path: str = "state/swapbot.json"
    http_timeout_secs: float = 10.0

    def token_address(self, currency: Currency) -> str:
        try:
            return self.token_addresses[currency]
        except KeyError:
            raise KeyError(f"no ledger address configured for {currency.value}") from None

    def ledger_url(self, currency: Currency) -> str:
        try:
            return self.ledger_urls[currency]
        except KeyError:
            raise KeyError(f"no ledger url configured for {currency.value}") from None

    def validate(self) -> None:
        if not self.controller:
            raise ValueError("controller identity is required")
        if not self.self_id:
            raise ValueError("self_id is required")
        if self.recheck_interval_secs <= 0:
            raise ValueError("recheck_interval_secs must be positive")
        if self.tick_interval_secs <= 0:
            raise ValueError("tick_interval_secs must be positive")
        if self.deadline_secs <= 0:
            raise ValueError("deadline_secs must be positive")
        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"failure_policy must be one of {FAILURE_POLICIES}, got {self.failure_policy!r}")
        if self.max_pending is not None and self.max_pending <= 0:
            raise ValueError("max_pending must be positive when set")
        missing = [c.value for c in Currency if c not in self.token_addresses]
        if missing:
            raise ValueError(f"token addresses missing for {missing}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _currency_map(raw: Optional[Dict[str, Any]]) -> Dict[Currency, str]:
    result: Dict[Currency, str] = {}
    for key, value in (raw or {}).items():
        try:
            currency = Currency(str(key).upper())
        except ValueError:
            raise ValueError(f"unknown currency in config: {key!r}") from None
        result[currency] = str(value)
    return result


def load_config(
    *,
    config_path: Optional[str] = None,
    controller: Optional[str] = None,
    self_id: Optional[str] = None,
    state_path: Optional[str] = None,
    failure_policy: Optional[str] = None,
) -> AppConfig:
    """Build the config from an optional YAML/JSON file plus explicit overrides.

    Priority: explicit argument -> file -> ``SWAPBOT_*`` environment -> default.
    """
    payload: Dict[str, Any] = {}
    path_value = config_path or os.getenv("SWAPBOT_CONFIG")
    if path_value:
        path = Path(path_value)
        if not path.exists():
            raise FileNotFoundError(path_value)
        if path.suffix in {".yaml", ".yml"}:
            payload = _read_yaml(path)
        elif path.suffix == ".json":
            payload = _read_json(path)
        else:
            raise ValueError(f"unsupported config extension: {path.suffix}")

    tolerance_cfg = payload.get("tolerance") or {}
    defaults = TolerancePreset()
    tolerance = TolerancePreset(
        market=float(tolerance_cfg.get("market", defaults.market)),
        limit=float(tolerance_cfg.get("limit", defaults.limit)),
    )
    token_addresses = dict(DEFAULT_TOKEN_ADDRESSES)
    token_addresses.update(_currency_map(payload.get("token_addresses")))
    max_pending = payload.get("max_pending")

    cfg = AppConfig(
        controller=controller or payload.get("controller") or os.getenv("SWAPBOT_CONTROLLER", ""),
        self_id=self_id or payload.get("self_id") or os.getenv("SWAPBOT_SELF_ID", ""),
        exchange_url=payload.get("exchange_url") or os.getenv("SWAPBOT_EXCHANGE_URL", DEFAULT_EXCHANGE_URL),
        exchange_address=payload.get("exchange_address") or DEFAULT_EXCHANGE_ADDRESS,
        ledger_urls=_currency_map(payload.get("ledger_urls")),
        token_addresses=token_addresses,
        tolerance=tolerance,
        recheck_interval_secs=float(payload.get("recheck_interval_secs") or 10.0),
        tick_interval_secs=float(payload.get("tick_interval_secs") or 1.0),
        deadline_secs=int(payload.get("deadline_secs") or 30),
        failure_policy=(failure_policy or payload.get("failure_policy") or "drop").lower(),
        max_pending=None if max_pending is None else int(max_pending),
        state_path=state_path or payload.get("state_path") or os.getenv("SWAPBOT_STATE", "state/swapbot.json"),
        http_timeout_secs=float(payload.get("http_timeout_secs") or 10.0),
    )
    cfg.validate()
    return cfg


__all__ = ["AppConfig", "load_config", "DEFAULT_TOKEN_ADDRESSES", "FAILURE_POLICIES"]
