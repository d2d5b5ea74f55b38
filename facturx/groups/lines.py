"""Rechnungspositionen (BG-25) und ihre Untergruppen (BG-26 … BG-32)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from ..datatypes import (
    AllowanceReasonCode,
    ChargeReasonCode,
    Identifier,
    ItemClassificationIdentifier,
    VatCategory,
    to_decimal,
    to_optional_decimal,
)
from ..errors import DomainValidationError
from ..reference import ISO_3166
from .document import check_period


def _typed_tuple(values: object, kind: type, constraint: str) -> tuple:
    items = tuple(values or ())
    for item in items:
        if not isinstance(item, kind):
            raise DomainValidationError(constraint, f"Expected {kind.__name__}, got {type(item).__name__}")
    return items


@dataclass(frozen=True, slots=True)
class InvoiceLinePeriod:
    """BG-26."""

    start_date: Optional[date] = None  # BT-134
    end_date: Optional[date] = None  # BT-135

    def __post_init__(self) -> None:
        check_period(self.start_date, self.end_date, "invoice_line_period.dates.order")


@dataclass(frozen=True, slots=True)
class InvoiceLineAllowance:
    """BG-27."""

    amount: Decimal  # BT-136
    base_amount: Optional[Decimal] = None  # BT-137
    percentage: Optional[Decimal] = None  # BT-138
    reason: Optional[str] = None  # BT-139
    reason_code: Optional[AllowanceReasonCode] = None  # BT-140

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "base_amount", to_optional_decimal(self.base_amount))
        object.__setattr__(self, "percentage", to_optional_decimal(self.percentage))
        object.__setattr__(self, "reason_code", AllowanceReasonCode.coerce_optional(self.reason_code))


@dataclass(frozen=True, slots=True)
class InvoiceLineCharge:
    """BG-28."""

    amount: Decimal  # BT-141
    base_amount: Optional[Decimal] = None  # BT-142
    percentage: Optional[Decimal] = None  # BT-143
    reason: Optional[str] = None  # BT-144
    reason_code: Optional[ChargeReasonCode] = None  # BT-145

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "base_amount", to_optional_decimal(self.base_amount))
        object.__setattr__(self, "percentage", to_optional_decimal(self.percentage))
        object.__setattr__(self, "reason_code", ChargeReasonCode.coerce_optional(self.reason_code))


@dataclass(frozen=True, slots=True)
class PriceDetails:
    """BG-29."""

    net_price: Decimal  # BT-146
    discount: Optional[Decimal] = None  # BT-147
    gross_price: Optional[Decimal] = None  # BT-148
    base_quantity: Optional[Decimal] = None  # BT-149
    base_quantity_unit_code: Optional[str] = None  # BT-150

    def __post_init__(self) -> None:
        object.__setattr__(self, "net_price", to_decimal(self.net_price))
        object.__setattr__(self, "discount", to_optional_decimal(self.discount))
        object.__setattr__(self, "gross_price", to_optional_decimal(self.gross_price))
        object.__setattr__(self, "base_quantity", to_optional_decimal(self.base_quantity))


@dataclass(frozen=True, slots=True)
class LineVatInformation:
    """BG-30."""

    category_code: VatCategory  # BT-151
    rate_percent: Optional[Decimal] = None  # BT-152

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_code", VatCategory.coerce(self.category_code))
        object.__setattr__(self, "rate_percent", to_optional_decimal(self.rate_percent))


@dataclass(frozen=True, slots=True)
class ItemAttribute:
    """BG-32."""

    name: str  # BT-160
    value: str  # BT-161


@dataclass(frozen=True, slots=True)
class ItemInformation:
    """BG-31."""

    name: str  # BT-153
    description: Optional[str] = None  # BT-154
    seller_identifier: Optional[str] = None  # BT-155
    buyer_identifier: Optional[str] = None  # BT-156
    standard_identifier: Optional[Identifier] = None  # BT-157
    classification_identifiers: Tuple[ItemClassificationIdentifier, ...] = ()  # BT-158
    country_of_origin: Optional[str] = None  # BT-159
    attributes: Tuple[ItemAttribute, ...] = ()  # BG-32

    def __post_init__(self) -> None:
        if self.country_of_origin is not None and ISO_3166.lookup(self.country_of_origin) is None:
            raise DomainValidationError(
                "item.country_of_origin.unknown",
                f"{self.country_of_origin!r} is not an ISO 3166-1 alpha-2 country code",
            )
        object.__setattr__(
            self,
            "classification_identifiers",
            _typed_tuple(
                self.classification_identifiers,
                ItemClassificationIdentifier,
                "item.classification_identifiers.type",
            ),
        )
        object.__setattr__(
            self, "attributes", _typed_tuple(self.attributes, ItemAttribute, "item.attributes.type")
        )


@dataclass(frozen=True, slots=True)
class InvoiceLine:
    """BG-25."""

    identifier: Identifier  # BT-126
    quantity: Decimal  # BT-129
    unit_code: str  # BT-130
    net_amount: Decimal  # BT-131
    item: ItemInformation  # BG-31
    price: PriceDetails  # BG-29
    vat_information: LineVatInformation  # BG-30
    note: Optional[str] = None  # BT-127
    object_identifier: Optional[Identifier] = None  # BT-128
    purchase_order_line_reference: Optional[str] = None  # BT-132
    buyer_accounting_reference: Optional[str] = None  # BT-133
    period: Optional[InvoiceLinePeriod] = None  # BG-26
    allowances: Tuple[InvoiceLineAllowance, ...] = ()  # BG-27
    charges: Tuple[InvoiceLineCharge, ...] = ()  # BG-28

    def __post_init__(self) -> None:
        if not isinstance(self.identifier, Identifier):
            raise DomainValidationError("invoice_line.identifier.type", "Invoice line identifier must be an Identifier")
        if not isinstance(self.item, ItemInformation):
            raise DomainValidationError("invoice_line.item.missing", "Item information is required")
        if not isinstance(self.price, PriceDetails):
            raise DomainValidationError("invoice_line.price.missing", "Price details are required")
        if not isinstance(self.vat_information, LineVatInformation):
            raise DomainValidationError("invoice_line.vat_information.missing", "Line VAT information is required")
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "net_amount", to_decimal(self.net_amount))
        object.__setattr__(
            self,
            "allowances",
            _typed_tuple(self.allowances, InvoiceLineAllowance, "invoice_line.allowances.type"),
        )
        object.__setattr__(
            self, "charges", _typed_tuple(self.charges, InvoiceLineCharge, "invoice_line.charges.type")
        )
