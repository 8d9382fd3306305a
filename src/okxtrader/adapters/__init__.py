"""Exchange adapters for OKX."""

from .base import ExchangeAdapter
from .okx_rest import OKXRestAdapter
from .okx_ws import OKXPrivateWSAdapter

__all__ = ["ExchangeAdapter", "OKXRestAdapter", "OKXPrivateWSAdapter"]
