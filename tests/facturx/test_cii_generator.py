"""Tests for the Factur-X CII XML generator."""

from __future__ import annotations

import base64
from dataclasses import replace
from decimal import Decimal

import pytest
from lxml import etree

from facturx.cii import build_facturx_tree, build_facturx_xml
from facturx.cii.elements import NSMAP, format_amount, format_decimal
from facturx.datatypes import BinaryObject, Identifier, TimeReferencingCode
from facturx.errors import SerializationError
from facturx.groups import AdditionalSupportingDocument, PrecedingInvoiceReference
from facturx.invoice import Invoice
from facturx.profiles import ConformanceProfile


def _local(element) -> str:
    return etree.QName(element).localname


def _children(element) -> list[str]:
    return [_local(child) for child in element]


def _find(root, path: str):
    return root.find(path, namespaces=NSMAP)


def _findall(root, path: str):
    return root.findall(path, namespaces=NSMAP)


def _settlement(root):
    return _find(root, "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeSettlement")


def test_root_and_namespaces(reference: Invoice) -> None:
    root = build_facturx_tree(reference)
    assert root.tag == "{urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100}CrossIndustryInvoice"
    assert root.nsmap == NSMAP
    assert _children(root) == ["ExchangedDocumentContext", "ExchangedDocument", "SupplyChainTradeTransaction"]


def test_reference_invoice_document_header(reference: Invoice) -> None:
    root = build_facturx_tree(reference)
    context = _find(root, "rsm:ExchangedDocumentContext")
    assert _find(context, "ram:BusinessProcessSpecifiedDocumentContextParameter/ram:ID").text == "A1"
    assert (
        _find(context, "ram:GuidelineSpecifiedDocumentContextParameter/ram:ID").text
        == ConformanceProfile.BASIC.value
    )
    document = _find(root, "rsm:ExchangedDocument")
    assert _find(document, "ram:ID").text == "34"
    assert _find(document, "ram:TypeCode").text == "380"
    issue_date = _find(document, "ram:IssueDateTime/udt:DateTimeString")
    assert issue_date.text == "20240305"
    assert issue_date.get("format") == "102"
    notes = _findall(document, "ram:IncludedNote")
    assert [_find(note, "ram:SubjectCode").text for note in notes] == ["ACD", "AAJ"]
    assert _children(notes[0]) == ["Content", "SubjectCode"]


def test_reference_invoice_parties(reference: Invoice) -> None:
    root = build_facturx_tree(reference)
    agreement = _find(root, "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeAgreement")
    assert _children(agreement) == ["BuyerReference", "SellerTradeParty", "BuyerTradeParty"]
    assert _find(agreement, "ram:BuyerReference").text == "SERVEXEC"
    assert _find(agreement, "ram:SellerTradeParty/ram:Name").text == "John Doe"
    assert _find(agreement, "ram:BuyerTradeParty/ram:PostalTradeAddress/ram:CountryID").text == "FR"


def test_output_is_deterministic(reconciled: Invoice) -> None:
    first = build_facturx_xml(reconciled)
    second = build_facturx_xml(reconciled)
    assert first == second
    assert first.startswith(b"<?xml version='1.0' encoding='UTF-8'?>")


def test_pretty_print_can_be_disabled(reference: Invoice) -> None:
    compact = build_facturx_xml(reference, pretty_print=False)
    assert compact.count(b"\n") == 1
    assert build_facturx_xml(reference, pretty_print=True).count(b"\n") > 10


@pytest.mark.parametrize(
    "profile, notes, lines, taxes",
    [
        (ConformanceProfile.MINIMUM, 0, 0, 0),
        (ConformanceProfile.BASIC_WL, 2, 0, 1),
        (ConformanceProfile.BASIC, 2, 1, 1),
        (ConformanceProfile.EN16931, 2, 1, 1),
        (ConformanceProfile.EXTENDED, 2, 1, 1),
    ],
    ids=lambda value: value.name if isinstance(value, ConformanceProfile) else None,
)
def test_profile_gating(reference: Invoice, profile: ConformanceProfile, notes: int, lines: int, taxes: int) -> None:
    root = build_facturx_tree(reference, profile)
    assert len(_findall(root, "rsm:ExchangedDocument/ram:IncludedNote")) == notes
    assert len(_findall(root, "rsm:SupplyChainTradeTransaction/ram:IncludedSupplyChainTradeLineItem")) == lines
    assert len(_findall(_settlement(root), "ram:ApplicableTradeTax")) == taxes
    assert _find(root, "rsm:ExchangedDocumentContext/ram:GuidelineSpecifiedDocumentContextParameter/ram:ID").text == profile.value


def test_minimum_profile_limits_monetary_summation(reconciled: Invoice) -> None:
    root = build_facturx_tree(reconciled, "minimum")
    settlement = _settlement(root)
    assert _children(settlement) == [
        "PaymentReference",
        "InvoiceCurrencyCode",
        "SpecifiedTradeSettlementHeaderMonetarySummation",
    ]
    summation = _find(settlement, "ram:SpecifiedTradeSettlementHeaderMonetarySummation")
    assert _children(summation) == [
        "TaxBasisTotalAmount",
        "TaxTotalAmount",
        "GrandTotalAmount",
        "DuePayableAmount",
    ]


def test_header_settlement_order(reconciled: Invoice) -> None:
    settlement = _settlement(build_facturx_tree(reconciled))
    assert _children(settlement) == [
        "PaymentReference",
        "InvoiceCurrencyCode",
        "SpecifiedTradeSettlementPaymentMeans",
        "ApplicableTradeTax",
        "ApplicableTradeTax",
        "BillingSpecifiedPeriod",
        "SpecifiedTradeAllowanceCharge",
        "SpecifiedTradeAllowanceCharge",
        "SpecifiedTradePaymentTerms",
        "SpecifiedTradeSettlementHeaderMonetarySummation",
    ]
    summation = _find(settlement, "ram:SpecifiedTradeSettlementHeaderMonetarySummation")
    assert _children(summation) == [
        "LineTotalAmount",
        "ChargeTotalAmount",
        "AllowanceTotalAmount",
        "TaxBasisTotalAmount",
        "TaxTotalAmount",
        "GrandTotalAmount",
        "DuePayableAmount",
    ]
    assert _find(summation, "ram:TaxTotalAmount").get("currencyID") == "EUR"
    assert _find(summation, "ram:GrandTotalAmount").text == "535.82"


def test_vat_breakdown_element_order(reconciled: Invoice) -> None:
    settlement = _settlement(build_facturx_tree(reconciled))
    tax = _find(settlement, "ram:ApplicableTradeTax")
    assert _children(tax) == ["CalculatedAmount", "TypeCode", "BasisAmount", "CategoryCode", "RateApplicablePercent"]
    assert _find(tax, "ram:CalculatedAmount").text == "38.57"
    assert _find(tax, "ram:BasisAmount").text == "203.00"
    assert _find(tax, "ram:RateApplicablePercent").text == "19"


def test_tax_point_date_on_each_breakdown(reconciled: Invoice) -> None:
    invoice = replace(reconciled, value_added_tax_point_date_code=TimeReferencingCode.DATE_OF_DELIVERY)
    for tax in _findall(_settlement(build_facturx_tree(invoice)), "ram:ApplicableTradeTax"):
        assert _find(tax, "ram:DueDateTypeCode").text == "29"
        assert _find(tax, "ram:TaxPointDate") is None


def test_allowance_and_charge_blocks(reconciled: Invoice) -> None:
    settlement = _settlement(build_facturx_tree(reconciled))
    allowance, charge = _findall(settlement, "ram:SpecifiedTradeAllowanceCharge")
    assert _find(allowance, "ram:ChargeIndicator/udt:Indicator").text == "false"
    assert _find(charge, "ram:ChargeIndicator/udt:Indicator").text == "true"
    assert _children(charge) == ["ChargeIndicator", "ActualAmount", "ReasonCode", "Reason", "CategoryTradeTax"]
    assert _find(charge, "ram:ReasonCode").text == "FC"
    assert _find(charge, "ram:CategoryTradeTax/ram:RateApplicablePercent").text == "19"


def test_seller_trade_party(reconciled: Invoice) -> None:
    root = build_facturx_tree(reconciled)
    seller = _find(root, "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeAgreement/ram:SellerTradeParty")
    assert _children(seller) == [
        "GlobalID",
        "Name",
        "SpecifiedLegalOrganization",
        "DefinedTradeContact",
        "PostalTradeAddress",
        "URIUniversalCommunication",
        "SpecifiedTaxRegistration",
        "SpecifiedTaxRegistration",
    ]
    assert _find(seller, "ram:GlobalID").get("schemeID") == "0088"
    assert _find(seller, "ram:URIUniversalCommunication/ram:URIID").get("schemeID") == "EM"
    registrations = _findall(seller, "ram:SpecifiedTaxRegistration/ram:ID")
    assert [(r.text, r.get("schemeID")) for r in registrations] == [
        ("DE123456789", "VA"),
        ("201/113/40209", "FC"),
    ]
    address = _find(seller, "ram:PostalTradeAddress")
    assert _children(address) == ["PostcodeCode", "LineOne", "CityName", "CountryID"]


def test_buyer_identifier_without_scheme_uses_id(reconciled: Invoice) -> None:
    root = build_facturx_tree(reconciled)
    buyer = _find(root, "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeAgreement/ram:BuyerTradeParty")
    assert _find(buyer, "ram:ID").text == "GE2020211"
    assert _find(buyer, "ram:GlobalID") is None


def test_invoice_line_block(reconciled: Invoice) -> None:
    root = build_facturx_tree(reconciled)
    transaction = _find(root, "rsm:SupplyChainTradeTransaction")
    assert _children(transaction) == [
        "IncludedSupplyChainTradeLineItem",
        "IncludedSupplyChainTradeLineItem",
        "ApplicableHeaderTradeAgreement",
        "ApplicableHeaderTradeDelivery",
        "ApplicableHeaderTradeSettlement",
    ]
    line = _find(transaction, "ram:IncludedSupplyChainTradeLineItem")
    assert _children(line) == [
        "AssociatedDocumentLineDocument",
        "SpecifiedTradeProduct",
        "SpecifiedLineTradeAgreement",
        "SpecifiedLineTradeDelivery",
        "SpecifiedLineTradeSettlement",
    ]
    assert _find(line, "ram:AssociatedDocumentLineDocument/ram:LineID").text == "1"
    product = _find(line, "ram:SpecifiedTradeProduct")
    assert _children(product) == ["GlobalID", "SellerAssignedID", "Name"]
    assert _find(product, "ram:GlobalID").get("schemeID") == "0160"
    agreement = _find(line, "ram:SpecifiedLineTradeAgreement")
    assert _children(agreement) == ["GrossPriceProductTradePrice", "NetPriceProductTradePrice"]
    assert _find(agreement, "ram:NetPriceProductTradePrice/ram:ChargeAmount").text == "9.90"
    assert _find(agreement, "ram:NetPriceProductTradePrice/ram:BasisQuantity").get("unitCode") == "H87"
    quantity = _find(line, "ram:SpecifiedLineTradeDelivery/ram:BilledQuantity")
    assert quantity.text == "20"
    assert quantity.get("unitCode") == "H87"
    settlement = _find(line, "ram:SpecifiedLineTradeSettlement")
    assert _children(settlement) == ["ApplicableTradeTax", "SpecifiedTradeSettlementLineMonetarySummation"]
    assert _find(settlement, "ram:SpecifiedTradeSettlementLineMonetarySummation/ram:LineTotalAmount").text == "198.00"


def test_delivery_block(reconciled: Invoice) -> None:
    root = build_facturx_tree(reconciled)
    delivery = _find(root, "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeDelivery")
    assert _children(delivery) == ["ShipToTradeParty", "ActualDeliverySupplyChainEvent"]
    occurrence = _find(delivery, "ram:ActualDeliverySupplyChainEvent/ram:OccurrenceDateTime/udt:DateTimeString")
    assert occurrence.text == "20240301"


def test_payment_means_block(reconciled: Invoice) -> None:
    settlement = _settlement(build_facturx_tree(reconciled))
    means = _find(settlement, "ram:SpecifiedTradeSettlementPaymentMeans")
    assert _children(means) == [
        "TypeCode",
        "PayeePartyCreditorFinancialAccount",
        "PayeeSpecifiedCreditorFinancialInstitution",
    ]
    assert _find(means, "ram:PayeePartyCreditorFinancialAccount/ram:IBANID").text == "DE02120300000000202051"
    assert _find(means, "ram:PayeeSpecifiedCreditorFinancialInstitution/ram:BICID").text == "BYLADEM1001"


def test_supporting_document_attachment(reconciled: Invoice) -> None:
    invoice = replace(
        reconciled,
        additional_supporting_documents=(
            AdditionalSupportingDocument(
                "TS-1",
                description="Timesheet",
                attachment=BinaryObject(b"hello", "text/csv", "timesheet.csv"),
            ),
        ),
        preceding_invoice_references=(PrecedingInvoiceReference("RE-2024-0001"),),
    )
    root = build_facturx_tree(invoice)
    document = _find(
        root,
        "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeAgreement/ram:AdditionalReferencedDocument",
    )
    assert _children(document) == ["IssuerAssignedID", "TypeCode", "Name", "AttachmentBinaryObject"]
    assert _find(document, "ram:TypeCode").text == "916"
    attachment = _find(document, "ram:AttachmentBinaryObject")
    assert base64.b64decode(attachment.text) == b"hello"
    assert attachment.get("mimeCode") == "text/csv"
    assert attachment.get("filename") == "timesheet.csv"
    assert _find(_settlement(root), "ram:InvoiceReferencedDocument/ram:IssuerAssignedID").text == "RE-2024-0001"


def test_line_object_identifier_reference(reconciled: Invoice) -> None:
    lines = list(reconciled.invoice_lines)
    lines[0] = replace(lines[0], object_identifier=Identifier("AB-123", scheme="AAA"))
    root = build_facturx_tree(replace(reconciled, invoice_lines=lines))
    reference = _find(
        root,
        "rsm:SupplyChainTradeTransaction/ram:IncludedSupplyChainTradeLineItem"
        "/ram:SpecifiedLineTradeSettlement/ram:AdditionalReferencedDocument",
    )
    assert _children(reference) == ["IssuerAssignedID", "TypeCode", "ReferenceTypeCode"]
    assert _find(reference, "ram:TypeCode").text == "130"


def test_missing_lines_for_profile_raise(reference: Invoice) -> None:
    object.__setattr__(reference, "invoice_lines", ())
    with pytest.raises(SerializationError):
        build_facturx_tree(reference, ConformanceProfile.BASIC)
    # MINIMUM does not emit lines
    assert build_facturx_tree(reference, ConformanceProfile.MINIMUM) is not None


def test_missing_vat_breakdown_for_profile_raises(reference: Invoice) -> None:
    object.__setattr__(reference, "vat_breakdowns", ())
    with pytest.raises(SerializationError):
        build_facturx_tree(reference, ConformanceProfile.BASIC_WL)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("12"), "12.00"),
        (Decimal("2.4"), "2.40"),
        (Decimal("2.400"), "2.40"),
        (Decimal("0"), "0.00"),
        (Decimal("1.2345"), "1.2345"),
        (Decimal("-5.5"), "-5.50"),
        (Decimal("1E+30"), "1000000000000000000000000000000.00"),
        (Decimal("12345678901234567890123456789.125"), "12345678901234567890123456789.125"),
    ],
    ids=["integer", "one_decimal", "trailing_zeros", "zero", "extra_precision", "negative", "huge", "long"],
)
def test_format_amount(value: Decimal, expected: str) -> None:
    assert format_amount(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("20.00"), "20"),
        (Decimal("1.50"), "1.5"),
        (Decimal("0.00"), "0"),
        (Decimal("100"), "100"),
        (Decimal("1234567890123456789012345678901.5"), "1234567890123456789012345678901.5"),
    ],
    ids=["rate", "fraction", "zero", "hundred", "long"],
)
def test_format_decimal(value: Decimal, expected: str) -> None:
    assert format_decimal(value) == expected
