# Client package exports

from .interface import IExchangeClient, ILedgerClient, PairInfo
from .base import BaseRpcClient
from .exchange import HttpExchangeClient
from .ledger import HttpLedgerClient

__all__ = [
    "IExchangeClient",
    "ILedgerClient",
    "PairInfo",
    "BaseRpcClient",
    "HttpExchangeClient",
    "HttpLedgerClient",
]
