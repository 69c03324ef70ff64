"""Pydantic models describing the Sectigo CaaS payloads the sweeper reads."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, model_validator

# statusCode values reported by GETLASTORDER that mean a certificate was issued.
ISSUED_STATUS_CODES: Final[frozenset[int]] = frozenset({2, 6})

# A GETLASTORDER payload must carry at least one of these to say anything about orders.
ORDER_SHAPE_KEYS: Final[frozenset[str]] = frozenset({"certificate", "Orders", "orders"})


def normalize_domain_name(value: str) -> str:
    return value.strip().rstrip(".").lower()


class SectigoBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorResponse(SectigoBaseModel):
    success: bool = False
    error_code: int | None = Field(default=None, alias="errorCode")
    error_message: str | None = Field(default=None, alias="errorMessage")
    error_type: str | None = Field(default=None, alias="errorType")
    details: str | None = None

    @property
    def message(self) -> str:
        if self.error_message:
            return self.error_message
        if self.details:
            return self.details
        if self.error_type:
            return f"Error type: {self.error_type}"
        return "Unknown error occurred"


class DomainInfo(SectigoBaseModel):
    domain_name: str = Field(alias="domainName")
    order_number: int | None = Field(default=None, alias="orderNumber")
    type: str | None = None
    added_date: str | None = Field(default=None, alias="addedDate")
    expiry_date: str | None = Field(default=None, alias="expiryDate")


class ListDomainsResponse(SectigoBaseModel):
    success: bool = True
    domains: list[DomainInfo] = Field(default_factory=list)

    def contains(self, domain_name: str) -> bool:
        wanted = normalize_domain_name(domain_name)
        return any(normalize_domain_name(domain.domain_name) == wanted for domain in self.domains)


class OrderInfo(SectigoBaseModel):
    order_number: int | None = Field(default=None, alias="orderNumber")
    status_code: int = Field(alias="statusCode")
    status_desc: str | None = Field(default=None, alias="statusDesc")
    domain_name: str | None = Field(default=None, alias="domainName")
    acme_order_id: str | None = Field(default=None, alias="acmeOrderID")
    certificate_id: int | None = Field(default=None, alias="certificateID")
    serial_number: str | None = Field(default=None, alias="serialNumber")

    @property
    def issued(self) -> bool:
        return self.status_code in ISSUED_STATUS_CODES


class GetLastOrderResponse(SectigoBaseModel):
    """GETLASTORDER result.

    The API has been observed answering with a single ``certificate`` object as
    well as with an ``Orders`` list; both are accepted. A payload carrying neither
    key is rejected rather than read as "no order".
    """

    success: bool = True
    domain_name: str | None = Field(default=None, alias="domainName")
    certificate: OrderInfo | None = None
    orders: list[OrderInfo] = Field(default_factory=list, alias="Orders")

    @model_validator(mode="before")
    @classmethod
    def _require_order_shape(cls, data: Any) -> Any:
        if isinstance(data, dict) and ORDER_SHAPE_KEYS.isdisjoint(data):
            raise ValueError(f"expected one of {sorted(ORDER_SHAPE_KEYS)} in GETLASTORDER payload")
        return data

    def latest_order(self, domain_name: str) -> OrderInfo | None:
        if self.certificate is not None:
            return self.certificate
        wanted = normalize_domain_name(domain_name)
        matching = [
            order
            for order in self.orders
            if order.domain_name is None or normalize_domain_name(order.domain_name) == wanted
        ]
        if not matching:
            return None
        return max(matching, key=lambda order: order.order_number or 0)
