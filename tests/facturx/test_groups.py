"""Tests for the Business Term Group entities and their local invariants."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from facturx.datatypes import Identifier, VatCategory, VatExoneration
from facturx.errors import DomainValidationError
from facturx.groups import (
    Buyer,
    DocumentLevelAllowance,
    DocumentTotals,
    InvoiceLine,
    InvoiceLinePeriod,
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
from facturx.profiles import ConformanceProfile


def _line(**overrides) -> InvoiceLine:
    values = dict(
        identifier=Identifier("1"),
        quantity=1,
        unit_code="box",
        net_amount=0,
        item=ItemInformation("A thing"),
        price=PriceDetails(12),
        vat_information=LineVatInformation(VatCategory.STANDARD),
    )
    values.update(overrides)
    return InvoiceLine(**values)


@pytest.mark.parametrize(
    "period_type, constraint",
    [
        (InvoicingPeriod, "invoicing_period.dates.order"),
        (InvoiceLinePeriod, "invoice_line_period.dates.order"),
    ],
    ids=["invoicing_period", "line_period"],
)
def test_period_rejects_end_before_start(period_type, constraint: str) -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        period_type(date(2024, 2, 1), date(2024, 1, 31))
    assert excinfo.value.constraint == constraint


@pytest.mark.parametrize("period_type", [InvoicingPeriod, InvoiceLinePeriod], ids=["invoicing", "line"])
def test_period_accepts_equal_and_open_dates(period_type) -> None:
    same_day = period_type(date(2024, 2, 1), date(2024, 2, 1))
    assert same_day.start_date == same_day.end_date
    assert period_type(start_date=date(2024, 2, 1)).end_date is None
    assert period_type().start_date is None


@pytest.mark.parametrize("country_code", ["XX", "fr", "FRA", ""], ids=["unknown", "lowercase", "alpha3", "empty"])
def test_postal_address_rejects_unknown_country(country_code: str) -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        PostalAddress(country_code)
    assert excinfo.value.constraint == "postal_address.country_code.unknown"


def test_seller_requires_postal_address() -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        Seller("John Doe", None)
    assert excinfo.value.constraint == "seller.address.missing"


def test_buyer_identifiers_become_tuple() -> None:
    buyer = Buyer("Richard Roe", PostalAddress("FR"), identifiers=[Identifier("GE2020211")])
    assert buyer.identifiers == (Identifier("GE2020211"),)


def test_buyer_rejects_non_identifier_entries() -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        Buyer("Richard Roe", PostalAddress("FR"), identifiers=["GE2020211"])
    assert excinfo.value.constraint == "buyer.identifiers.type"


def test_invoice_note_coerces_subject_code() -> None:
    note = InvoiceNote("ACD", "Lorem Ipsum")
    assert note.subject_code.value == "ACD"


def test_process_control_coerces_profile_urn() -> None:
    control = ProcessControl("urn:factur-x.eu:1p0:minimum", business_process_type="A1")
    assert control.specification_identifier is ConformanceProfile.MINIMUM


def test_vat_breakdown_converts_amounts_and_codes() -> None:
    breakdown = VatBreakdown(12, "2.4", "S", 20)
    assert breakdown.taxable_amount == Decimal("12")
    assert breakdown.tax_amount == Decimal("2.4")
    assert breakdown.category_code is VatCategory.STANDARD
    assert breakdown.rate_percent == Decimal("20")
    assert not breakdown.has_exemption_reason


def test_vat_breakdown_rejects_negative_rate() -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        VatBreakdown(12, "2.4", VatCategory.STANDARD, "-1")
    assert excinfo.value.constraint == "vat_breakdown.rate_percent.negative"


@pytest.mark.parametrize(
    "text, code, expected",
    [
        (None, None, False),
        ("  ", None, False),
        ("Exempt according to Art. 132", None, True),
        (None, VatExoneration.EU_132, True),
    ],
    ids=["none", "blank_text", "text", "code"],
)
def test_vat_breakdown_exemption_reason(text, code, expected: bool) -> None:
    breakdown = VatBreakdown(100, 0, VatCategory.EXEMPT_FROM_TAX, 0, text, code)
    assert breakdown.has_exemption_reason is expected


def test_document_totals_converts_all_amounts() -> None:
    totals = DocumentTotals("473.00", "478.00", "535.82", "535.82", total_vat_amount="57.82")
    assert totals.sum_of_line_net_amounts == Decimal("473.00")
    assert totals.total_vat_amount == Decimal("57.82")
    assert totals.paid_amount is None


def test_document_allowance_requires_known_category() -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        DocumentLevelAllowance("5.00", "Q")
    assert excinfo.value.constraint == "VatCategory.unknown_code"


def test_invoice_line_converts_quantity_and_amount() -> None:
    line = _line(quantity="2.5", net_amount="30")
    assert line.quantity == Decimal("2.5")
    assert line.net_amount == Decimal("30")
    assert line.allowances == ()


@pytest.mark.parametrize(
    "overrides, constraint",
    [
        ({"identifier": "1"}, "invoice_line.identifier.type"),
        ({"item": "A thing"}, "invoice_line.item.missing"),
        ({"price": 12}, "invoice_line.price.missing"),
        ({"vat_information": VatCategory.STANDARD}, "invoice_line.vat_information.missing"),
        ({"quantity": "many"}, "decimal.invalid"),
    ],
    ids=["identifier", "item", "price", "vat_information", "quantity"],
)
def test_invoice_line_rejects_invalid_parts(overrides: dict, constraint: str) -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        _line(**overrides)
    assert excinfo.value.constraint == constraint


def test_item_information_checks_country_of_origin() -> None:
    assert ItemInformation("A thing", country_of_origin="DE").country_of_origin == "DE"
    with pytest.raises(DomainValidationError) as excinfo:
        ItemInformation("A thing", country_of_origin="XX")
    assert excinfo.value.constraint == "item.country_of_origin.unknown"


def test_payment_instructions_reject_foreign_credit_transfers() -> None:
    with pytest.raises(DomainValidationError) as excinfo:
        PaymentInstructions("58", credit_transfers=["DE02120300000000202051"])
    assert excinfo.value.constraint == "payment_instructions.credit_transfers.type"
