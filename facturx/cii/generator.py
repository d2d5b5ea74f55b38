"""Factur-X CII Generator (rsm:CrossIndustryInvoice).

Der Baum wird in fester Reihenfolge von oben nach unten aufgebaut; das
Konformitätsprofil entscheidet, welche Blöcke ausgegeben werden. Die Ausgabe
ist deterministisch: dieselbe Rechnung ergibt byte-identisches XML.

Der Generator prüft keine Geschäftsregeln (siehe ``facturx.rules``). Er
scheitert nur, wenn ein für das Profil verpflichtender Knoten keine Daten hat.
"""

from __future__ import annotations

from typing import Optional

from lxml import etree

from ..core.config import settings
from ..core.logging import get_logger
from ..errors import SerializationError
from ..invoice import Invoice
from ..profiles import ConformanceProfile
from .elements import (
    NSMAP,
    INVOICE_DATA_SHEET_TYPE_CODE,
    TENDER_TYPE_CODE,
    Element,
    append_allowance_charge,
    append_buyer,
    append_date,
    append_delivery_information,
    append_document_totals,
    append_invoice_line,
    append_note,
    append_payee,
    append_payment_means,
    append_payment_terms,
    append_period,
    append_preceding_invoice_reference,
    append_process_control,
    append_referenced_document,
    append_seller,
    append_seller_tax_representative,
    append_supporting_document,
    append_typed_reference,
    append_vat_breakdown,
    qname,
    sub,
    sub_optional,
)

logger = get_logger(__name__)


def _resolve_profile(invoice: Invoice, profile: Optional[ConformanceProfile | str]) -> ConformanceProfile:
    if profile is None:
        return invoice.profile
    if isinstance(profile, ConformanceProfile):
        return profile
    return ConformanceProfile.from_name(profile)


def _append_exchanged_document(root: Element, invoice: Invoice, profile: ConformanceProfile) -> None:
    document = sub(root, "rsm:ExchangedDocument")
    sub(document, "ram:ID", invoice.number)
    sub(document, "ram:TypeCode", invoice.type_code.value)
    append_date(document, "ram:IssueDateTime", invoice.issue_date)
    if profile.includes_notes:
        for note in invoice.notes:
            append_note(document, note)


def _append_header_trade_agreement(transaction: Element, invoice: Invoice, profile: ConformanceProfile) -> None:
    agreement = sub(transaction, "ram:ApplicableHeaderTradeAgreement")
    sub_optional(agreement, "ram:BuyerReference", invoice.buyer_reference)
    append_seller(agreement, invoice.seller)
    append_buyer(agreement, invoice.buyer)
    if invoice.seller_tax_representative_party is not None:
        append_seller_tax_representative(agreement, invoice.seller_tax_representative_party)
    append_referenced_document(agreement, "ram:SellerOrderReferencedDocument", invoice.sales_order_reference)
    append_referenced_document(agreement, "ram:BuyerOrderReferencedDocument", invoice.purchase_order_reference)
    append_referenced_document(agreement, "ram:ContractReferencedDocument", invoice.contract_reference)
    for document in invoice.additional_supporting_documents:
        append_supporting_document(agreement, document)
    if invoice.tender_or_lot_reference:
        append_typed_reference(agreement, invoice.tender_or_lot_reference, TENDER_TYPE_CODE)
    if invoice.invoiced_object_identifier:
        append_typed_reference(agreement, invoice.invoiced_object_identifier, INVOICE_DATA_SHEET_TYPE_CODE)
    if invoice.project_reference:
        project = sub(agreement, "ram:SpecifiedProcuringProject")
        sub(project, "ram:ID", invoice.project_reference)
        sub(project, "ram:Name", "Project reference")


def _append_header_trade_delivery(transaction: Element, invoice: Invoice) -> None:
    delivery = sub(transaction, "ram:ApplicableHeaderTradeDelivery")
    if invoice.delivery_information is not None:
        append_delivery_information(delivery, invoice.delivery_information)
    append_referenced_document(delivery, "ram:DespatchAdviceReferencedDocument", invoice.despatch_advice_reference)
    append_referenced_document(delivery, "ram:ReceivingAdviceReferencedDocument", invoice.receiving_advice_reference)


def _append_header_trade_settlement(transaction: Element, invoice: Invoice, profile: ConformanceProfile) -> None:
    settlement = sub(transaction, "ram:ApplicableHeaderTradeSettlement")
    instructions = invoice.payment_instructions
    direct_debit = instructions.direct_debit if instructions is not None else None

    if direct_debit is not None:
        sub_optional(settlement, "ram:CreditorReferenceID", direct_debit.creditor_identifier)
    if instructions is not None:
        sub_optional(settlement, "ram:PaymentReference", instructions.remittance_information)
    sub_optional(settlement, "ram:TaxCurrencyCode", invoice.vat_accounting_currency_code)
    sub(settlement, "ram:InvoiceCurrencyCode", invoice.currency_code)

    # Das Factur-X MINIMUM-XSD kennt weder Payee noch Zahlungsmittel
    if profile.includes_header_details:
        if invoice.payee is not None:
            append_payee(settlement, invoice.payee)
        if instructions is not None:
            append_payment_means(settlement, instructions)

    if profile.includes_vat_breakdown:
        if not invoice.vat_breakdowns:
            raise SerializationError(f"Profile {profile.name} requires at least one VAT breakdown (BG-23)")
        tax_point_date_code = (
            invoice.value_added_tax_point_date_code.value
            if invoice.value_added_tax_point_date_code is not None
            else None
        )
        for breakdown in invoice.vat_breakdowns:
            append_vat_breakdown(
                settlement,
                breakdown,
                tax_point_date=invoice.value_added_tax_point_date,
                tax_point_date_code=tax_point_date_code,
            )

    # Abrechnungszeitraum, Zu-/Abschläge und Zahlungsbedingungen fehlen ebenfalls im MINIMUM-XSD
    if profile.includes_header_details:
        delivery = invoice.delivery_information
        period = delivery.invoicing_period if delivery is not None else None
        if period is not None:
            append_period(settlement, "ram:BillingSpecifiedPeriod", period.start_date, period.end_date)
        for allowance in invoice.document_level_allowances:
            append_allowance_charge(settlement, allowance)
        for charge in invoice.document_level_charges:
            append_allowance_charge(settlement, charge)
        append_payment_terms(
            settlement,
            invoice.payment_terms,
            invoice.payment_due_date,
            direct_debit.mandate_reference if direct_debit is not None else None,
        )

    append_document_totals(
        settlement,
        invoice.document_totals,
        profile,
        invoice.currency_code,
        invoice.vat_accounting_currency_code,
    )

    if profile.includes_header_details:
        for reference in invoice.preceding_invoice_references:
            append_preceding_invoice_reference(settlement, reference)
        if invoice.buyer_accounting_reference:
            account = sub(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount")
            sub(account, "ram:ID", invoice.buyer_accounting_reference)


def build_facturx_tree(invoice: Invoice, profile: Optional[ConformanceProfile | str] = None) -> Element:
    """Baut den CII-Baum. Ohne ``profile`` gilt BT-24 der Rechnung."""

    active = _resolve_profile(invoice, profile)
    root = etree.Element(qname("rsm:CrossIndustryInvoice"), nsmap=NSMAP)

    context = sub(root, "rsm:ExchangedDocumentContext")
    append_process_control(context, invoice.process_control, active)
    _append_exchanged_document(root, invoice, active)

    transaction = sub(root, "rsm:SupplyChainTradeTransaction")
    if active.includes_lines:
        if not invoice.invoice_lines:
            raise SerializationError(f"Profile {active.name} requires at least one invoice line (BG-25)")
        for line in invoice.invoice_lines:
            append_invoice_line(transaction, line)
    _append_header_trade_agreement(transaction, invoice, active)
    _append_header_trade_delivery(transaction, invoice)
    _append_header_trade_settlement(transaction, invoice, active)

    logger.debug("CII tree for invoice %s built with profile %s", invoice.number, active.name)
    return root


def build_facturx_xml(
    invoice: Invoice,
    profile: Optional[ConformanceProfile | str] = None,
    *,
    pretty_print: Optional[bool] = None,
) -> bytes:
    """Serialisiert die Rechnung als UTF-8 CII XML inklusive XML-Deklaration."""

    root = build_facturx_tree(invoice, profile)
    xml_bytes = etree.tostring(
        root,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=settings.xml_pretty_print if pretty_print is None else pretty_print,
    )
    logger.info("Factur-X XML generated for invoice %s (%d bytes)", invoice.number, len(xml_bytes))
    return xml_bytes
