"""Dokumentbezogene Business Term Groups (BG-1, BG-2, BG-3, BG-14, BG-20 … BG-24)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..datatypes import (
    AllowanceReasonCode,
    BinaryObject,
    ChargeReasonCode,
    InvoiceNoteCode,
    VatCategory,
    VatExoneration,
    is_blank,
    to_decimal,
    to_optional_decimal,
)
from ..errors import DomainValidationError
from ..profiles import ConformanceProfile


def check_period(start_date: Optional[date], end_date: Optional[date], constraint: str) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise DomainValidationError(
            constraint,
            f"Period start {start_date.isoformat()} is after period end {end_date.isoformat()}",
        )


@dataclass(frozen=True, slots=True)
class InvoiceNote:
    """BG-1."""

    subject_code: Optional[InvoiceNoteCode]  # BT-21
    note: str  # BT-22

    def __post_init__(self) -> None:
        object.__setattr__(self, "subject_code", InvoiceNoteCode.coerce_optional(self.subject_code))
        if not isinstance(self.note, str):
            raise DomainValidationError("invoice_note.note.type", "Invoice note must be a string")


@dataclass(frozen=True, slots=True)
class ProcessControl:
    """BG-2. The specification identifier drives the CII profile gating."""

    specification_identifier: ConformanceProfile  # BT-24
    business_process_type: Optional[str] = None  # BT-23

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "specification_identifier",
            ConformanceProfile.coerce(self.specification_identifier),
        )


@dataclass(frozen=True, slots=True)
class PrecedingInvoiceReference:
    """BG-3."""

    reference: str  # BT-25
    issue_date: Optional[date] = None  # BT-26


@dataclass(frozen=True, slots=True)
class InvoicingPeriod:
    """BG-14."""

    start_date: Optional[date] = None  # BT-73
    end_date: Optional[date] = None  # BT-74

    def __post_init__(self) -> None:
        check_period(self.start_date, self.end_date, "invoicing_period.dates.order")


@dataclass(frozen=True, slots=True)
class DocumentLevelAllowance:
    """BG-20."""

    amount: Decimal  # BT-92
    vat_category_code: VatCategory  # BT-95
    base_amount: Optional[Decimal] = None  # BT-93
    percentage: Optional[Decimal] = None  # BT-94
    vat_rate: Optional[Decimal] = None  # BT-96
    reason: Optional[str] = None  # BT-97
    reason_code: Optional[AllowanceReasonCode] = None  # BT-98

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "vat_category_code", VatCategory.coerce(self.vat_category_code))
        object.__setattr__(self, "base_amount", to_optional_decimal(self.base_amount))
        object.__setattr__(self, "percentage", to_optional_decimal(self.percentage))
        object.__setattr__(self, "vat_rate", to_optional_decimal(self.vat_rate))
        object.__setattr__(self, "reason_code", AllowanceReasonCode.coerce_optional(self.reason_code))


@dataclass(frozen=True, slots=True)
class DocumentLevelCharge:
    """BG-21."""

    amount: Decimal  # BT-99
    vat_category_code: VatCategory  # BT-102
    base_amount: Optional[Decimal] = None  # BT-100
    percentage: Optional[Decimal] = None  # BT-101
    vat_rate: Optional[Decimal] = None  # BT-103
    reason: Optional[str] = None  # BT-104
    reason_code: Optional[ChargeReasonCode] = None  # BT-105

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "vat_category_code", VatCategory.coerce(self.vat_category_code))
        object.__setattr__(self, "base_amount", to_optional_decimal(self.base_amount))
        object.__setattr__(self, "percentage", to_optional_decimal(self.percentage))
        object.__setattr__(self, "vat_rate", to_optional_decimal(self.vat_rate))
        object.__setattr__(self, "reason_code", ChargeReasonCode.coerce_optional(self.reason_code))


@dataclass(frozen=True, slots=True)
class DocumentTotals:
    """BG-22."""

    sum_of_line_net_amounts: Decimal  # BT-106
    total_without_vat: Decimal  # BT-109
    total_with_vat: Decimal  # BT-112
    amount_due_for_payment: Decimal  # BT-115
    sum_of_allowances: Optional[Decimal] = None  # BT-107
    sum_of_charges: Optional[Decimal] = None  # BT-108
    total_vat_amount: Optional[Decimal] = None  # BT-110
    total_vat_amount_in_accounting_currency: Optional[Decimal] = None  # BT-111
    paid_amount: Optional[Decimal] = None  # BT-113
    rounding_amount: Optional[Decimal] = None  # BT-114

    def __post_init__(self) -> None:
        for name in ("sum_of_line_net_amounts", "total_without_vat", "total_with_vat", "amount_due_for_payment"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        for name in (
            "sum_of_allowances",
            "sum_of_charges",
            "total_vat_amount",
            "total_vat_amount_in_accounting_currency",
            "paid_amount",
            "rounding_amount",
        ):
            object.__setattr__(self, name, to_optional_decimal(getattr(self, name)))


@dataclass(frozen=True, slots=True)
class VatBreakdown:
    """BG-23: one entry per VAT category / rate combination."""

    taxable_amount: Decimal  # BT-116
    tax_amount: Decimal  # BT-117
    category_code: VatCategory  # BT-118
    rate_percent: Optional[Decimal] = None  # BT-119
    exemption_reason_text: Optional[str] = None  # BT-120
    exemption_reason_code: Optional[VatExoneration] = None  # BT-121

    def __post_init__(self) -> None:
        object.__setattr__(self, "taxable_amount", to_decimal(self.taxable_amount))
        object.__setattr__(self, "tax_amount", to_decimal(self.tax_amount))
        object.__setattr__(self, "category_code", VatCategory.coerce(self.category_code))
        object.__setattr__(self, "rate_percent", to_optional_decimal(self.rate_percent))
        object.__setattr__(
            self, "exemption_reason_code", VatExoneration.coerce_optional(self.exemption_reason_code)
        )
        if self.rate_percent is not None and self.rate_percent < 0:
            raise DomainValidationError("vat_breakdown.rate_percent.negative", "VAT rate must not be negative")

    @property
    def has_exemption_reason(self) -> bool:
        return self.exemption_reason_code is not None or not is_blank(self.exemption_reason_text)


@dataclass(frozen=True, slots=True)
class AdditionalSupportingDocument:
    """BG-24."""

    reference: str  # BT-122
    description: Optional[str] = None  # BT-123
    external_location: Optional[str] = None  # BT-124
    attachment: Optional[BinaryObject] = None  # BT-125
