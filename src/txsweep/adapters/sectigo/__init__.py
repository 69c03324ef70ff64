"""Sectigo CaaS adapter."""

from __future__ import annotations

from .authority import SectigoAuthority
from .client import SectigoAPIError, SectigoClient, SectigoOrderNotFoundError
from .schema import ISSUED_STATUS_CODES, GetLastOrderResponse, ListDomainsResponse

__all__ = [
    "ISSUED_STATUS_CODES",
    "GetLastOrderResponse",
    "ListDomainsResponse",
    "SectigoAPIError",
    "SectigoAuthority",
    "SectigoClient",
    "SectigoOrderNotFoundError",
]
