"""FastAPI dependency providers."""

from .market import get_coingecko_client, get_price_oracle, get_report_service

__all__ = ["get_coingecko_client", "get_price_oracle", "get_report_service"]
