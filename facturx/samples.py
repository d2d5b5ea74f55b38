"""Deterministische Beispielrechnungen für Tests und Dokumentation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from .datatypes import (
    AllowanceReasonCode,
    ChargeReasonCode,
    Identifier,
    InvoiceNoteCode,
    InvoiceTypeCode,
    PaymentMeansCode,
    VatCategory,
)
from .groups import (
    Buyer,
    Contact,
    CreditTransfer,
    DeliveryInformation,
    DocumentLevelAllowance,
    DocumentLevelCharge,
    DocumentTotals,
    InvoiceLine,
    InvoiceNote,
    InvoicingPeriod,
    ItemInformation,
    LineVatInformation,
    PaymentInstructions,
    PostalAddress,
    PriceDetails,
    ProcessControl,
    Seller,
    VatBreakdown,
)
from .invoice import Invoice
from .profiles import ConformanceProfile

SAMPLE_ISSUE_DATE = date(2024, 3, 5)


def reference_invoice(issue_date: date = SAMPLE_ISSUE_DATE) -> Invoice:
    """Minimalrechnung "34" (BASIC, ein Positionsdatensatz, Summen 0)."""

    invoice = Invoice(
        "34",
        issue_date,
        InvoiceTypeCode.COMMERCIAL_INVOICE,
        "EUR",
        ProcessControl(ConformanceProfile.BASIC, business_process_type="A1"),
        Seller("John Doe", PostalAddress("FR")),
        Buyer("Richard Roe", PostalAddress("FR")),
        DocumentTotals(0, 0, 0, 0),
        [VatBreakdown(12, "2.4", VatCategory.STANDARD)],
        [
            InvoiceLine(
                Identifier("1"),
                1,
                "box",
                0,
                ItemInformation("A thing"),
                PriceDetails(12),
                LineVatInformation(VatCategory.STANDARD),
            )
        ],
    )
    return invoice.with_buyer_reference("SERVEXEC").with_notes(
        InvoiceNote(InvoiceNoteCode.REASON, "Lorem Ipsum"),
        InvoiceNote(InvoiceNoteCode.ADDITIONAL_CONDITIONS, "Lorem Ipsum"),
    )


SELLER = Seller(
    name="Lieferant GmbH",
    address=PostalAddress(
        "DE",
        line1="Lieferantenstraße 20",
        city="München",
        post_code="80333",
    ),
    identifiers=(Identifier("4000001123452", scheme="0088"),),
    legal_registration_identifier=Identifier("HRB 12345"),
    vat_identifier="DE123456789",
    tax_registration_identifier="201/113/40209",
    electronic_address=Identifier("rechnung@lieferant.example", scheme="EM"),
    contact=Contact("Hans Muster", "+49 89 123456", "hans.muster@lieferant.example"),
)

BUYER = Buyer(
    name="Kunden AG Mitte",
    address=PostalAddress(
        "DE",
        line1="Kundenstraße 15",
        city="Frankfurt",
        post_code="69876",
    ),
    identifiers=(Identifier("GE2020211"),),
    vat_identifier="DE987654321",
    electronic_address=Identifier("einkauf@kunde.example", scheme="EM"),
)


def reconciled_invoice() -> Invoice:
    """EN16931-Rechnung mit zwei Steuersätzen, Zu- und Abschlag; erfüllt alle Regeln.

    S 19 %: 198.00 - 5.00 + 10.00 = 203.00 -> 38.57
    S  7 %: 275.00 -> 19.25
    """

    lines = [
        InvoiceLine(
            Identifier("1"),
            20,
            "H87",
            Decimal("198.00"),
            ItemInformation(
                "Trennblätter A4",
                seller_identifier="TB100A4",
                standard_identifier=Identifier("4012345001235", scheme="0160"),
            ),
            PriceDetails(Decimal("9.90"), gross_price=Decimal("9.90"), base_quantity=1, base_quantity_unit_code="H87"),
            LineVatInformation(VatCategory.STANDARD, Decimal("19")),
        ),
        InvoiceLine(
            Identifier("2"),
            50,
            "H87",
            Decimal("275.00"),
            ItemInformation("Joghurt Banane", seller_identifier="ARNR2"),
            PriceDetails(Decimal("5.50")),
            LineVatInformation(VatCategory.STANDARD, Decimal("7")),
        ),
    ]
    return Invoice(
        "RE-2024-0117",
        SAMPLE_ISSUE_DATE,
        InvoiceTypeCode.COMMERCIAL_INVOICE,
        "EUR",
        ProcessControl(ConformanceProfile.EN16931),
        SELLER,
        BUYER,
        DocumentTotals(
            sum_of_line_net_amounts=Decimal("473.00"),
            total_without_vat=Decimal("478.00"),
            total_with_vat=Decimal("535.82"),
            amount_due_for_payment=Decimal("535.82"),
            sum_of_allowances=Decimal("5.00"),
            sum_of_charges=Decimal("10.00"),
            total_vat_amount=Decimal("57.82"),
        ),
        [
            VatBreakdown(Decimal("203.00"), Decimal("38.57"), VatCategory.STANDARD, Decimal("19")),
            VatBreakdown(Decimal("275.00"), Decimal("19.25"), VatCategory.STANDARD, Decimal("7")),
        ],
        lines,
        payment_due_date=date(2024, 4, 4),
        buyer_reference="04011000-12345-34",
        purchase_order_reference="PO-2024-117",
        payment_terms="Zahlbar innerhalb von 30 Tagen netto",
        notes=(InvoiceNote(InvoiceNoteCode.REGULATORY_INFORMATION, "Lieferant GmbH, Geschäftsführer Hans Muster"),),
        delivery_information=DeliveryInformation(
            deliver_to_party_name="Kunden AG Lager",
            actual_delivery_date=date(2024, 3, 1),
            invoicing_period=InvoicingPeriod(date(2024, 2, 1), date(2024, 2, 29)),
            deliver_to_address=PostalAddress("DE", line1="Lagerweg 3", city="Frankfurt", post_code="69877"),
        ),
        payment_instructions=PaymentInstructions(
            PaymentMeansCode.SEPA_CREDIT_TRANSFER,
            remittance_information="RE-2024-0117",
            credit_transfers=(
                CreditTransfer("DE02120300000000202051", "Lieferant GmbH", "BYLADEM1001"),
            ),
        ),
        document_level_allowances=(
            DocumentLevelAllowance(
                Decimal("5.00"),
                VatCategory.STANDARD,
                vat_rate=Decimal("19"),
                reason="Sonderrabatt",
                reason_code=AllowanceReasonCode.DISCOUNT,
            ),
        ),
        document_level_charges=(
            DocumentLevelCharge(
                Decimal("10.00"),
                VatCategory.STANDARD,
                vat_rate=Decimal("19"),
                reason="Versandkosten",
                reason_code=ChargeReasonCode.FREIGHT_SERVICE,
            ),
        ),
    )
