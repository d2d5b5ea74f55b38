"""Rechnungs-Aggregat (EN16931 BT-1 … BT-20 plus Business Term Groups).

Die Rechnung wird genau einmal bei der Konstruktion geprüft (nicht leere
Positionen und USt-Aufschlüsselungen, Währungscode gegen ISO 4217) und ist
danach unveränderlich. ``with_buyer_reference`` und ``with_notes`` liefern
eine neue, erneut geprüfte Instanz.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Tuple

from .core.logging import get_logger
from .datatypes import InvoiceTypeCode, TimeReferencingCode
from .errors import DomainValidationError
from .groups import (
    AdditionalSupportingDocument,
    Buyer,
    DeliveryInformation,
    DocumentLevelAllowance,
    DocumentLevelCharge,
    DocumentTotals,
    InvoiceLine,
    InvoiceNote,
    Payee,
    PaymentInstructions,
    PrecedingInvoiceReference,
    ProcessControl,
    Seller,
    SellerTaxRepresentativeParty,
    VatBreakdown,
)
from .profiles import ConformanceProfile
from .reference import ISO_4217, CodeRegistry

logger = get_logger(__name__)


def _typed_tuple(values: object, kind: type, name: str) -> tuple:
    items = tuple(values or ())
    for item in items:
        if not isinstance(item, kind):
            raise DomainValidationError(
                f"invoice.{name}.type",
                f"Expected {kind.__name__} in {name}, got {type(item).__name__}",
            )
    return items


def _require_instance(value: object, kind: type, name: str, *, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(value, kind):
        raise DomainValidationError(f"invoice.{name}.type", f"{name} must be a {kind.__name__}")


@dataclass(frozen=True, slots=True)
class Invoice:
    number: str  # BT-1
    issue_date: date  # BT-2
    type_code: InvoiceTypeCode  # BT-3
    currency_code: str  # BT-5
    process_control: ProcessControl  # BG-2
    seller: Seller  # BG-4
    buyer: Buyer  # BG-7
    document_totals: DocumentTotals  # BG-22
    vat_breakdowns: Tuple[VatBreakdown, ...]  # BG-23
    invoice_lines: Tuple[InvoiceLine, ...]  # BG-25
    payment_due_date: Optional[date] = None  # BT-9
    vat_accounting_currency_code: Optional[str] = None  # BT-6
    value_added_tax_point_date: Optional[date] = None  # BT-7
    value_added_tax_point_date_code: Optional[TimeReferencingCode] = None  # BT-8
    buyer_reference: Optional[str] = None  # BT-10
    project_reference: Optional[str] = None  # BT-11
    contract_reference: Optional[str] = None  # BT-12
    purchase_order_reference: Optional[str] = None  # BT-13
    sales_order_reference: Optional[str] = None  # BT-14
    receiving_advice_reference: Optional[str] = None  # BT-15
    despatch_advice_reference: Optional[str] = None  # BT-16
    tender_or_lot_reference: Optional[str] = None  # BT-17
    invoiced_object_identifier: Optional[str] = None  # BT-18
    buyer_accounting_reference: Optional[str] = None  # BT-19
    payment_terms: Optional[str] = None  # BT-20
    notes: Tuple[InvoiceNote, ...] = ()  # BG-1
    preceding_invoice_references: Tuple[PrecedingInvoiceReference, ...] = ()  # BG-3
    payee: Optional[Payee] = None  # BG-10
    seller_tax_representative_party: Optional[SellerTaxRepresentativeParty] = None  # BG-11
    delivery_information: Optional[DeliveryInformation] = None  # BG-13
    payment_instructions: Optional[PaymentInstructions] = None  # BG-16
    document_level_allowances: Tuple[DocumentLevelAllowance, ...] = ()  # BG-20
    document_level_charges: Tuple[DocumentLevelCharge, ...] = ()  # BG-21
    additional_supporting_documents: Tuple[AdditionalSupportingDocument, ...] = ()  # BG-24
    currency_registry: CodeRegistry = field(default=ISO_4217, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.number, str):
            raise DomainValidationError("invoice.number.type", "Invoice number must be a string")
        if not isinstance(self.issue_date, date):
            raise DomainValidationError("invoice.issue_date.type", "Issue date must be a date")
        object.__setattr__(self, "type_code", InvoiceTypeCode.coerce(self.type_code))
        object.__setattr__(
            self,
            "value_added_tax_point_date_code",
            TimeReferencingCode.coerce_optional(self.value_added_tax_point_date_code),
        )

        if self.currency_registry.lookup(self.currency_code) is None:
            raise DomainValidationError(
                "invoice.currency_code.unknown",
                f"{self.currency_code!r} is not an ISO 4217 currency code",
            )
        if (
            self.vat_accounting_currency_code is not None
            and self.currency_registry.lookup(self.vat_accounting_currency_code) is None
        ):
            raise DomainValidationError(
                "invoice.vat_accounting_currency_code.unknown",
                f"{self.vat_accounting_currency_code!r} is not an ISO 4217 currency code",
            )

        _require_instance(self.process_control, ProcessControl, "process_control")
        _require_instance(self.seller, Seller, "seller")
        _require_instance(self.buyer, Buyer, "buyer")
        _require_instance(self.document_totals, DocumentTotals, "document_totals")
        _require_instance(self.payment_due_date, date, "payment_due_date", optional=True)
        _require_instance(self.value_added_tax_point_date, date, "value_added_tax_point_date", optional=True)
        _require_instance(self.payee, Payee, "payee", optional=True)
        _require_instance(
            self.seller_tax_representative_party,
            SellerTaxRepresentativeParty,
            "seller_tax_representative_party",
            optional=True,
        )
        _require_instance(self.delivery_information, DeliveryInformation, "delivery_information", optional=True)
        _require_instance(self.payment_instructions, PaymentInstructions, "payment_instructions", optional=True)

        vat_breakdowns = _typed_tuple(self.vat_breakdowns, VatBreakdown, "vat_breakdowns")
        if not vat_breakdowns:
            raise DomainValidationError("invoice.vat_breakdowns.empty", "At least one VAT breakdown is required")
        invoice_lines = _typed_tuple(self.invoice_lines, InvoiceLine, "invoice_lines")
        if not invoice_lines:
            raise DomainValidationError("invoice.invoice_lines.empty", "At least one invoice line is required")

        object.__setattr__(self, "vat_breakdowns", vat_breakdowns)
        object.__setattr__(self, "invoice_lines", invoice_lines)
        object.__setattr__(self, "notes", _typed_tuple(self.notes, InvoiceNote, "notes"))
        object.__setattr__(
            self,
            "preceding_invoice_references",
            _typed_tuple(self.preceding_invoice_references, PrecedingInvoiceReference, "preceding_invoice_references"),
        )
        object.__setattr__(
            self,
            "document_level_allowances",
            _typed_tuple(self.document_level_allowances, DocumentLevelAllowance, "document_level_allowances"),
        )
        object.__setattr__(
            self,
            "document_level_charges",
            _typed_tuple(self.document_level_charges, DocumentLevelCharge, "document_level_charges"),
        )
        object.__setattr__(
            self,
            "additional_supporting_documents",
            _typed_tuple(
                self.additional_supporting_documents,
                AdditionalSupportingDocument,
                "additional_supporting_documents",
            ),
        )

        logger.debug(
            "Invoice %s constructed (%d lines, %d VAT breakdowns, currency %s)",
            self.number,
            len(invoice_lines),
            len(vat_breakdowns),
            self.currency_code,
        )

    @property
    def profile(self) -> ConformanceProfile:
        return self.process_control.specification_identifier

    def with_buyer_reference(self, buyer_reference: Optional[str]) -> "Invoice":
        return replace(self, buyer_reference=buyer_reference)

    def with_notes(self, *notes: InvoiceNote) -> "Invoice":
        """Replace all included notes (BG-1) at once."""

        return replace(self, notes=notes)
