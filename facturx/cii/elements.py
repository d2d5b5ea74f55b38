"""CII-Teilbäume je Business Term Group.

Jede ``append_*``-Funktion hängt genau einen Teilbaum an den übergebenen
Elternknoten an. Die Reihenfolge der Kindelemente folgt den
``xs:sequence``-Deklarationen des CII D16B Schemas; optionale Werte ohne
Inhalt erzeugen kein Element.
"""

from __future__ import annotations

import base64
import re
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from lxml import etree

from ..datatypes import Identifier, exact_context, is_blank
from ..groups import (
    AdditionalSupportingDocument,
    Buyer,
    Contact,
    DeliveryInformation,
    DocumentLevelAllowance,
    DocumentLevelCharge,
    DocumentTotals,
    InvoiceLine,
    InvoiceLineAllowance,
    InvoiceLineCharge,
    InvoiceNote,
    Payee,
    PaymentInstructions,
    PostalAddress,
    PrecedingInvoiceReference,
    ProcessControl,
    Seller,
    SellerTaxRepresentativeParty,
    VatBreakdown,
)
from ..profiles import ConformanceProfile

RSM_NS = "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"
RAM_NS = "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100"
QDT_NS = "urn:un:unece:uncefact:data:standard:QualifiedDataType:100"
UDT_NS = "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

NSMAP = {
    "qdt": QDT_NS,
    "ram": RAM_NS,
    "rsm": RSM_NS,
    "udt": UDT_NS,
    "xsi": XSI_NS,
}

DATE_FORMAT_CODE = "102"
VAT_TYPE_CODE = "VAT"
VAT_SCHEME = "VA"
FISCAL_SCHEME = "FC"
INVOICE_DATA_SHEET_TYPE_CODE = "130"
TENDER_TYPE_CODE = "50"
SUPPORTING_DOCUMENT_TYPE_CODE = "916"

_IBAN_RE = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{11,30}$")

Element = etree._Element


def qname(tag: str) -> str:
    """``ram:Name`` -> ``{urn:…}Name``."""

    prefix, local = tag.split(":", 1)
    return f"{{{NSMAP[prefix]}}}{local}"


def sub(parent: Element, tag: str, text: Optional[str] = None, **attrib: Optional[str]) -> Element:
    element = etree.SubElement(parent, qname(tag))
    for key, value in attrib.items():
        if value is not None:
            element.set(key, value)
    if text is not None:
        element.text = text
    return element


def sub_optional(parent: Element, tag: str, text: Optional[str], **attrib: Optional[str]) -> Optional[Element]:
    if is_blank(text):
        return None
    return sub(parent, tag, text, **attrib)


def format_amount(value: Decimal) -> str:
    """Two decimals, more if the value carries more precision."""

    context = exact_context(value, 2)
    normalized = value.normalize(context)
    exponent = normalized.as_tuple().exponent
    if isinstance(exponent, int) and exponent < -2:
        return format(normalized, "f")
    return format(value.quantize(Decimal("0.01"), context=context), "f")


def format_decimal(value: Decimal) -> str:
    """Quantities and percentages in plain normalized form (``20``, ``1.5``)."""

    return format(value.normalize(exact_context(value)), "f")


def format_date(value: date) -> str:
    return value.strftime("%Y%m%d")


def append_date(parent: Element, tag: str, value: date, qualifier: str = "udt:DateTimeString") -> Element:
    container = sub(parent, tag)
    sub(container, qualifier, format_date(value), format=DATE_FORMAT_CODE)
    return container


def append_identifier(parent: Element, tag: str, identifier: Identifier) -> Element:
    return sub(parent, tag, identifier.value, schemeID=identifier.scheme)


def append_party_identifiers(parent: Element, identifiers) -> None:
    """Identifiers without scheme as ``ram:ID``, with scheme as ``ram:GlobalID``."""

    for identifier in identifiers:
        if identifier.scheme is None:
            sub(parent, "ram:ID", identifier.value)
    for identifier in identifiers:
        if identifier.scheme is not None:
            append_identifier(parent, "ram:GlobalID", identifier)


def append_period(parent: Element, tag: str, start_date: Optional[date], end_date: Optional[date]) -> Element:
    period = sub(parent, tag)
    if start_date is not None:
        append_date(period, "ram:StartDateTime", start_date)
    if end_date is not None:
        append_date(period, "ram:EndDateTime", end_date)
    return period


# ---------------------------------------------------------------------------
# Exchanged document


def append_process_control(context: Element, process_control: ProcessControl, profile: ConformanceProfile) -> None:
    if not is_blank(process_control.business_process_type):
        business_process = sub(context, "ram:BusinessProcessSpecifiedDocumentContextParameter")
        sub(business_process, "ram:ID", process_control.business_process_type)
    guideline = sub(context, "ram:GuidelineSpecifiedDocumentContextParameter")
    sub(guideline, "ram:ID", profile.value)


def append_note(document: Element, note: InvoiceNote) -> Element:
    included_note = sub(document, "ram:IncludedNote")
    sub(included_note, "ram:Content", note.note)
    if note.subject_code is not None:
        sub(included_note, "ram:SubjectCode", note.subject_code.value)
    return included_note


# ---------------------------------------------------------------------------
# Parties


def append_postal_address(parent: Element, address: PostalAddress) -> Element:
    postal = sub(parent, "ram:PostalTradeAddress")
    sub_optional(postal, "ram:PostcodeCode", address.post_code)
    sub_optional(postal, "ram:LineOne", address.line1)
    sub_optional(postal, "ram:LineTwo", address.line2)
    sub_optional(postal, "ram:LineThree", address.line3)
    sub_optional(postal, "ram:CityName", address.city)
    sub(postal, "ram:CountryID", address.country_code)
    sub_optional(postal, "ram:CountrySubDivisionName", address.country_subdivision)
    return postal


def append_contact(parent: Element, contact: Contact) -> Element:
    trade_contact = sub(parent, "ram:DefinedTradeContact")
    sub_optional(trade_contact, "ram:PersonName", contact.point)
    if not is_blank(contact.telephone):
        telephone = sub(trade_contact, "ram:TelephoneUniversalCommunication")
        sub(telephone, "ram:CompleteNumber", contact.telephone)
    if not is_blank(contact.email):
        email = sub(trade_contact, "ram:EmailURIUniversalCommunication")
        sub(email, "ram:URIID", contact.email)
    return trade_contact


def _append_legal_organization(
    parent: Element,
    legal_registration_identifier: Optional[Identifier],
    trading_name: Optional[str],
) -> None:
    if legal_registration_identifier is None and is_blank(trading_name):
        return
    organization = sub(parent, "ram:SpecifiedLegalOrganization")
    if legal_registration_identifier is not None:
        append_identifier(organization, "ram:ID", legal_registration_identifier)
    sub_optional(organization, "ram:TradingBusinessName", trading_name)


def _append_electronic_address(parent: Element, address: Optional[Identifier]) -> None:
    if address is None:
        return
    communication = sub(parent, "ram:URIUniversalCommunication")
    append_identifier(communication, "ram:URIID", address)


def _append_tax_registration(parent: Element, value: Optional[str], scheme: str) -> None:
    if is_blank(value):
        return
    registration = sub(parent, "ram:SpecifiedTaxRegistration")
    sub(registration, "ram:ID", value, schemeID=scheme)


def append_seller(agreement: Element, seller: Seller) -> Element:
    party = sub(agreement, "ram:SellerTradeParty")
    append_party_identifiers(party, seller.identifiers)
    sub(party, "ram:Name", seller.name)
    sub_optional(party, "ram:Description", seller.additional_legal_information)
    _append_legal_organization(party, seller.legal_registration_identifier, seller.trading_name)
    if seller.contact is not None:
        append_contact(party, seller.contact)
    append_postal_address(party, seller.address)
    _append_electronic_address(party, seller.electronic_address)
    _append_tax_registration(party, seller.vat_identifier, VAT_SCHEME)
    _append_tax_registration(party, seller.tax_registration_identifier, FISCAL_SCHEME)
    return party


def append_buyer(agreement: Element, buyer: Buyer) -> Element:
    party = sub(agreement, "ram:BuyerTradeParty")
    append_party_identifiers(party, buyer.identifiers)
    sub(party, "ram:Name", buyer.name)
    _append_legal_organization(party, buyer.legal_registration_identifier, buyer.trading_name)
    if buyer.contact is not None:
        append_contact(party, buyer.contact)
    append_postal_address(party, buyer.address)
    _append_electronic_address(party, buyer.electronic_address)
    _append_tax_registration(party, buyer.vat_identifier, VAT_SCHEME)
    return party


def append_seller_tax_representative(agreement: Element, representative: SellerTaxRepresentativeParty) -> Element:
    party = sub(agreement, "ram:SellerTaxRepresentativeTradeParty")
    sub(party, "ram:Name", representative.name)
    if representative.address is not None:
        append_postal_address(party, representative.address)
    _append_tax_registration(party, representative.vat_identifier, VAT_SCHEME)
    return party


def append_payee(settlement: Element, payee: Payee) -> Element:
    party = sub(settlement, "ram:PayeeTradeParty")
    if payee.identifier is not None:
        append_party_identifiers(party, (payee.identifier,))
    sub(party, "ram:Name", payee.name)
    _append_legal_organization(party, payee.legal_registration_identifier, None)
    return party


def append_delivery_information(delivery: Element, information: DeliveryInformation) -> None:
    """BG-13 into ``ApplicableHeaderTradeDelivery``; BG-14 belongs to the settlement block."""

    if (
        not is_blank(information.deliver_to_party_name)
        or information.location_identifier is not None
        or information.deliver_to_address is not None
    ):
        ship_to = sub(delivery, "ram:ShipToTradeParty")
        if information.location_identifier is not None:
            append_party_identifiers(ship_to, (information.location_identifier,))
        sub_optional(ship_to, "ram:Name", information.deliver_to_party_name)
        if information.deliver_to_address is not None:
            append_postal_address(ship_to, information.deliver_to_address)
    if information.actual_delivery_date is not None:
        event = sub(delivery, "ram:ActualDeliverySupplyChainEvent")
        append_date(event, "ram:OccurrenceDateTime", information.actual_delivery_date)


# ---------------------------------------------------------------------------
# References


def append_referenced_document(parent: Element, tag: str, reference: Optional[str]) -> Optional[Element]:
    if is_blank(reference):
        return None
    document = sub(parent, tag)
    sub(document, "ram:IssuerAssignedID", reference)
    return document


def append_supporting_document(agreement: Element, document: AdditionalSupportingDocument) -> Element:
    referenced = sub(agreement, "ram:AdditionalReferencedDocument")
    sub(referenced, "ram:IssuerAssignedID", document.reference)
    sub_optional(referenced, "ram:URIID", document.external_location)
    sub(referenced, "ram:TypeCode", SUPPORTING_DOCUMENT_TYPE_CODE)
    sub_optional(referenced, "ram:Name", document.description)
    if document.attachment is not None:
        sub(
            referenced,
            "ram:AttachmentBinaryObject",
            base64.b64encode(document.attachment.content).decode("ascii"),
            mimeCode=document.attachment.mime_code,
            filename=document.attachment.filename,
        )
    return referenced


def append_typed_reference(
    agreement: Element,
    reference: str,
    type_code: str,
    reference_type_code: Optional[str] = None,
) -> Element:
    """BT-17 (type 50) and BT-18 / BT-128 (type 130) as ``AdditionalReferencedDocument``."""

    referenced = sub(agreement, "ram:AdditionalReferencedDocument")
    sub(referenced, "ram:IssuerAssignedID", reference)
    sub(referenced, "ram:TypeCode", type_code)
    sub_optional(referenced, "ram:ReferenceTypeCode", reference_type_code)
    return referenced


def append_preceding_invoice_reference(settlement: Element, reference: PrecedingInvoiceReference) -> Element:
    referenced = sub(settlement, "ram:InvoiceReferencedDocument")
    sub(referenced, "ram:IssuerAssignedID", reference.reference)
    if reference.issue_date is not None:
        append_date(referenced, "ram:FormattedIssueDateTime", reference.issue_date, "qdt:DateTimeString")
    return referenced


# ---------------------------------------------------------------------------
# Settlement


def _append_creditor_account(payment_means: Element, account_identifier: Optional[str], account_name: Optional[str]) -> None:
    if is_blank(account_identifier) and is_blank(account_name):
        return
    account = sub(payment_means, "ram:PayeePartyCreditorFinancialAccount")
    iban = account_identifier if account_identifier and _IBAN_RE.match(account_identifier) else None
    sub_optional(account, "ram:IBANID", iban)
    sub_optional(account, "ram:AccountName", account_name)
    if iban is None:
        sub_optional(account, "ram:ProprietaryID", account_identifier)


def append_payment_means(settlement: Element, instructions: PaymentInstructions) -> None:
    """One ``SpecifiedTradeSettlementPaymentMeans`` per credit transfer (at least one)."""

    transfers = instructions.credit_transfers or (None,)
    for position, transfer in enumerate(transfers):
        payment_means = sub(settlement, "ram:SpecifiedTradeSettlementPaymentMeans")
        if instructions.means_type_code is not None:
            sub(payment_means, "ram:TypeCode", instructions.means_type_code.value)
        sub_optional(payment_means, "ram:Information", instructions.means_text)
        if position == 0:
            card = instructions.payment_card
            if card is not None:
                financial_card = sub(payment_means, "ram:ApplicableTradeSettlementFinancialCard")
                sub(financial_card, "ram:ID", card.primary_account_number)
                sub_optional(financial_card, "ram:CardholderName", card.holder_name)
            debit = instructions.direct_debit
            if debit is not None and not is_blank(debit.debited_account_identifier):
                debtor_account = sub(payment_means, "ram:PayerPartyDebtorFinancialAccount")
                sub(debtor_account, "ram:IBANID", debit.debited_account_identifier)
        if transfer is None:
            continue
        _append_creditor_account(payment_means, transfer.account_identifier, transfer.account_name)
        if not is_blank(transfer.service_provider_identifier):
            institution = sub(payment_means, "ram:PayeeSpecifiedCreditorFinancialInstitution")
            sub(institution, "ram:BICID", transfer.service_provider_identifier)


def append_vat_breakdown(
    settlement: Element,
    breakdown: VatBreakdown,
    *,
    tax_point_date: Optional[date] = None,
    tax_point_date_code: Optional[str] = None,
) -> Element:
    tax = sub(settlement, "ram:ApplicableTradeTax")
    sub(tax, "ram:CalculatedAmount", format_amount(breakdown.tax_amount))
    sub(tax, "ram:TypeCode", VAT_TYPE_CODE)
    sub_optional(tax, "ram:ExemptionReason", breakdown.exemption_reason_text)
    sub(tax, "ram:BasisAmount", format_amount(breakdown.taxable_amount))
    sub(tax, "ram:CategoryCode", breakdown.category_code.value)
    if breakdown.exemption_reason_code is not None:
        sub(tax, "ram:ExemptionReasonCode", breakdown.exemption_reason_code.value)
    if tax_point_date is not None:
        append_date(tax, "ram:TaxPointDate", tax_point_date, "udt:DateString")
    sub_optional(tax, "ram:DueDateTypeCode", tax_point_date_code)
    if breakdown.rate_percent is not None:
        sub(tax, "ram:RateApplicablePercent", format_decimal(breakdown.rate_percent))
    return tax


AllowanceOrCharge = Union[DocumentLevelAllowance, DocumentLevelCharge, InvoiceLineAllowance, InvoiceLineCharge]


def append_allowance_charge(parent: Element, item: AllowanceOrCharge) -> Element:
    """BG-20/21 (with ``CategoryTradeTax``) and BG-27/28 (without)."""

    is_charge = isinstance(item, (DocumentLevelCharge, InvoiceLineCharge))
    allowance_charge = sub(parent, "ram:SpecifiedTradeAllowanceCharge")
    indicator = sub(allowance_charge, "ram:ChargeIndicator")
    sub(indicator, "udt:Indicator", "true" if is_charge else "false")
    if item.percentage is not None:
        sub(allowance_charge, "ram:CalculationPercent", format_decimal(item.percentage))
    if item.base_amount is not None:
        sub(allowance_charge, "ram:BasisAmount", format_amount(item.base_amount))
    sub(allowance_charge, "ram:ActualAmount", format_amount(item.amount))
    if item.reason_code is not None:
        sub(allowance_charge, "ram:ReasonCode", item.reason_code.value)
    sub_optional(allowance_charge, "ram:Reason", item.reason)
    if isinstance(item, (DocumentLevelAllowance, DocumentLevelCharge)):
        category_tax = sub(allowance_charge, "ram:CategoryTradeTax")
        sub(category_tax, "ram:TypeCode", VAT_TYPE_CODE)
        sub(category_tax, "ram:CategoryCode", item.vat_category_code.value)
        if item.vat_rate is not None:
            sub(category_tax, "ram:RateApplicablePercent", format_decimal(item.vat_rate))
    return allowance_charge


def append_payment_terms(
    settlement: Element,
    description: Optional[str],
    due_date: Optional[date],
    mandate_reference: Optional[str],
) -> Optional[Element]:
    if is_blank(description) and due_date is None and is_blank(mandate_reference):
        return None
    terms = sub(settlement, "ram:SpecifiedTradePaymentTerms")
    sub_optional(terms, "ram:Description", description)
    if due_date is not None:
        append_date(terms, "ram:DueDateDateTime", due_date)
    sub_optional(terms, "ram:DirectDebitMandateID", mandate_reference)
    return terms


def append_document_totals(
    settlement: Element,
    totals: DocumentTotals,
    profile: ConformanceProfile,
    currency_code: str,
    accounting_currency_code: Optional[str] = None,
) -> Element:
    summation = sub(settlement, "ram:SpecifiedTradeSettlementHeaderMonetarySummation")
    full = profile.includes_line_totals
    if full:
        sub(summation, "ram:LineTotalAmount", format_amount(totals.sum_of_line_net_amounts))
        if totals.sum_of_charges is not None:
            sub(summation, "ram:ChargeTotalAmount", format_amount(totals.sum_of_charges))
        if totals.sum_of_allowances is not None:
            sub(summation, "ram:AllowanceTotalAmount", format_amount(totals.sum_of_allowances))
    sub(summation, "ram:TaxBasisTotalAmount", format_amount(totals.total_without_vat))
    if totals.total_vat_amount is not None:
        sub(summation, "ram:TaxTotalAmount", format_amount(totals.total_vat_amount), currencyID=currency_code)
    if (
        full
        and accounting_currency_code is not None
        and totals.total_vat_amount_in_accounting_currency is not None
    ):
        sub(
            summation,
            "ram:TaxTotalAmount",
            format_amount(totals.total_vat_amount_in_accounting_currency),
            currencyID=accounting_currency_code,
        )
    if full and totals.rounding_amount is not None:
        sub(summation, "ram:RoundingAmount", format_amount(totals.rounding_amount))
    sub(summation, "ram:GrandTotalAmount", format_amount(totals.total_with_vat))
    if full and totals.paid_amount is not None:
        sub(summation, "ram:TotalPrepaidAmount", format_amount(totals.paid_amount))
    sub(summation, "ram:DuePayableAmount", format_amount(totals.amount_due_for_payment))
    return summation


# ---------------------------------------------------------------------------
# Invoice lines


def _append_trade_product(line_item: Element, line: InvoiceLine) -> None:
    item = line.item
    product = sub(line_item, "ram:SpecifiedTradeProduct")
    if item.standard_identifier is not None:
        append_identifier(product, "ram:GlobalID", item.standard_identifier)
    sub_optional(product, "ram:SellerAssignedID", item.seller_identifier)
    sub_optional(product, "ram:BuyerAssignedID", item.buyer_identifier)
    sub(product, "ram:Name", item.name)
    sub_optional(product, "ram:Description", item.description)
    for attribute in item.attributes:
        characteristic = sub(product, "ram:ApplicableProductCharacteristic")
        sub(characteristic, "ram:Description", attribute.name)
        sub(characteristic, "ram:Value", attribute.value)
    for classification in item.classification_identifiers:
        designated = sub(product, "ram:DesignatedProductClassification")
        sub(
            designated,
            "ram:ClassCode",
            classification.value,
            listID=classification.scheme,
            listVersionID=classification.version,
        )
    if item.country_of_origin is not None:
        origin = sub(product, "ram:OriginTradeCountry")
        sub(origin, "ram:ID", item.country_of_origin)


def _append_basis_quantity(price: Element, line: InvoiceLine) -> None:
    if line.price.base_quantity is not None:
        sub(
            price,
            "ram:BasisQuantity",
            format_decimal(line.price.base_quantity),
            unitCode=line.price.base_quantity_unit_code,
        )


def _append_line_agreement(line_item: Element, line: InvoiceLine) -> None:
    agreement = sub(line_item, "ram:SpecifiedLineTradeAgreement")
    if not is_blank(line.purchase_order_line_reference):
        order = sub(agreement, "ram:BuyerOrderReferencedDocument")
        sub(order, "ram:LineID", line.purchase_order_line_reference)
    price = line.price
    if price.gross_price is not None:
        gross = sub(agreement, "ram:GrossPriceProductTradePrice")
        sub(gross, "ram:ChargeAmount", format_amount(price.gross_price))
        _append_basis_quantity(gross, line)
        if price.discount is not None:
            discount = sub(gross, "ram:AppliedTradeAllowanceCharge")
            indicator = sub(discount, "ram:ChargeIndicator")
            sub(indicator, "udt:Indicator", "false")
            sub(discount, "ram:ActualAmount", format_amount(price.discount))
    net = sub(agreement, "ram:NetPriceProductTradePrice")
    sub(net, "ram:ChargeAmount", format_amount(price.net_price))
    _append_basis_quantity(net, line)


def _append_line_settlement(line_item: Element, line: InvoiceLine) -> None:
    settlement = sub(line_item, "ram:SpecifiedLineTradeSettlement")
    tax = sub(settlement, "ram:ApplicableTradeTax")
    sub(tax, "ram:TypeCode", VAT_TYPE_CODE)
    sub(tax, "ram:CategoryCode", line.vat_information.category_code.value)
    if line.vat_information.rate_percent is not None:
        sub(tax, "ram:RateApplicablePercent", format_decimal(line.vat_information.rate_percent))
    if line.period is not None:
        append_period(settlement, "ram:BillingSpecifiedPeriod", line.period.start_date, line.period.end_date)
    for allowance in line.allowances:
        append_allowance_charge(settlement, allowance)
    for charge in line.charges:
        append_allowance_charge(settlement, charge)
    summation = sub(settlement, "ram:SpecifiedTradeSettlementLineMonetarySummation")
    sub(summation, "ram:LineTotalAmount", format_amount(line.net_amount))
    if line.object_identifier is not None:
        append_typed_reference(
            settlement,
            line.object_identifier.value,
            INVOICE_DATA_SHEET_TYPE_CODE,
            line.object_identifier.scheme,
        )
    if not is_blank(line.buyer_accounting_reference):
        account = sub(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount")
        sub(account, "ram:ID", line.buyer_accounting_reference)


def append_invoice_line(transaction: Element, line: InvoiceLine) -> Element:
    line_item = sub(transaction, "ram:IncludedSupplyChainTradeLineItem")
    line_document = sub(line_item, "ram:AssociatedDocumentLineDocument")
    sub(line_document, "ram:LineID", line.identifier.value)
    if not is_blank(line.note):
        included_note = sub(line_document, "ram:IncludedNote")
        sub(included_note, "ram:Content", line.note)
    _append_trade_product(line_item, line)
    _append_line_agreement(line_item, line)
    delivery = sub(line_item, "ram:SpecifiedLineTradeDelivery")
    sub(delivery, "ram:BilledQuantity", format_decimal(line.quantity), unitCode=line.unit_code)
    _append_line_settlement(line_item, line)
    return line_item
