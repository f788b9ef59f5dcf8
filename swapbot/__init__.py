"""Automated swap order engine: market and limit orders against an AMM exchange."""

__version__ = "0.3.0"
