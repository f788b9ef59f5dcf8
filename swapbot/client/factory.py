from __future__ import annotations

from typing import Dict, Tuple

from ..app.config import AppConfig
from ..execution.models import Currency
from .exchange import HttpExchangeClient
from .interface import IExchangeClient, ILedgerClient
from .ledger import HttpLedgerClient


def build_clients(cfg: AppConfig) -> Tuple[IExchangeClient, Dict[Currency, ILedgerClient]]:
    exchange = HttpExchangeClient(cfg.exchange_url, caller=cfg.self_id, timeout=cfg.http_timeout_secs)
    ledgers: Dict[Currency, ILedgerClient] = {}
    for currency in Currency:
        ledgers[currency] = HttpLedgerClient(
            cfg.ledger_url(currency),
            token=cfg.token_address(currency),
            caller=cfg.self_id,
            timeout=cfg.http_timeout_secs,
        )
    return exchange, ledgers


__all__ = ["build_clients"]
