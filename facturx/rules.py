"""EN16931 Geschäftsregeln (BR-*, BR-CO-*, BR-<Kategorie>-*) als Batch-Prüfung.

Jede Regel ist ein benanntes Prädikat über der fertig konstruierten
``Invoice``. ``validate_business_rules`` sammelt alle Verstöße in einem
``BusinessRuleReport`` und wirft dabei keine Ausnahme.

Beträge werden für Abstimmungsregeln auf ``settings.amount_decimal_places``
Nachkommastellen (ROUND_HALF_UP) quantisiert und dann exakt verglichen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, Iterator, List, Literal, Optional, Tuple, Union

from .core.config import settings
from .core.logging import get_logger
from .datatypes import PaymentMeansCode, VatCategory, quantize_money
from .groups import InvoiceLine
from .invoice import Invoice
from .reference import ISO_3166

logger = get_logger(__name__)

RuleLevel = Literal["error", "warning"]
RuleCheck = Callable[[Invoice], Iterable[str]]
# (label, VAT category, VAT rate) of a line, allowance or charge
RatedItem = Tuple[str, VatCategory, Optional[Decimal]]

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_CREDIT_TRANSFER_CODES = {PaymentMeansCode.CREDIT_TRANSFER, PaymentMeansCode.SEPA_CREDIT_TRANSFER}


@dataclass(frozen=True, slots=True)
class RuleViolation:
    rule_id: str
    message: str
    level: RuleLevel = "error"

    def to_dict(self) -> Dict[str, str]:
        return {"rule_id": self.rule_id, "level": self.level, "message": self.message}


@dataclass(frozen=True, slots=True)
class BusinessRuleReport:
    violations: Tuple[RuleViolation, ...] = ()

    @property
    def ok(self) -> bool:
        return not any(violation.level == "error" for violation in self.violations)

    def rule_ids(self) -> Tuple[str, ...]:
        """Violated rule ids in evaluation order, without duplicates."""

        return tuple(dict.fromkeys(violation.rule_id for violation in self.violations))

    def to_dict(self) -> Dict[str, object]:
        return {"ok": self.ok, "violations": [violation.to_dict() for violation in self.violations]}


@dataclass(frozen=True, slots=True)
class BusinessRule:
    """One catalogue rule.

    ``guarded_by_construction`` marks rules whose violation the entity
    constructors already reject (``DomainValidationError``). They stay in the
    registry so the report covers the whole catalogue, but on an ``Invoice``
    built through the public constructors they never fire.
    """

    rule_id: str
    description: str
    predicate: RuleCheck = field(repr=False, compare=False)
    guarded_by_construction: bool = False

    def check(self, invoice: Invoice) -> Tuple[RuleViolation, ...]:
        return tuple(RuleViolation(self.rule_id, message) for message in self.predicate(invoice))


_RULES: Dict[str, BusinessRule] = {}


def business_rule(
    rule_id: str,
    description: str,
    *,
    guarded_by_construction: bool = False,
) -> Callable[[RuleCheck], RuleCheck]:
    """Register ``check`` under ``rule_id``; the check yields one message per violation."""

    def decorator(check: RuleCheck) -> RuleCheck:
        if rule_id in _RULES:
            raise ValueError(f"Business rule {rule_id} is already registered")
        _RULES[rule_id] = BusinessRule(rule_id, description, check, guarded_by_construction)
        return check

    return decorator


def get_rule(rule_id: str) -> BusinessRule:
    try:
        return _RULES[rule_id]
    except KeyError:
        raise KeyError(f"Unknown business rule {rule_id!r}") from None


def registered_rules() -> Tuple[BusinessRule, ...]:
    return tuple(_RULES.values())


def validate_business_rules(
    invoice: Invoice,
    rules: Optional[Iterable[Union[str, BusinessRule]]] = None,
) -> BusinessRuleReport:
    """Evaluate ``rules`` (default: all registered rules) against ``invoice``."""

    if rules is None:
        selected = registered_rules()
    else:
        selected = tuple(item if isinstance(item, BusinessRule) else get_rule(item) for item in rules)

    violations: List[RuleViolation] = []
    for rule in selected:
        violations.extend(rule.check(invoice))

    logger.info(
        "Business rules evaluated for invoice %s: %d rules, %d violations",
        invoice.number,
        len(selected),
        len(violations),
    )
    return BusinessRuleReport(tuple(violations))


# ---------------------------------------------------------------------------
# Helpers


def _missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _money(amount: Decimal) -> Decimal:
    return quantize_money(amount, settings.amount_decimal_places)


def _same_amount(left: Decimal, right: Decimal) -> bool:
    return _money(left) == _money(right)


def _total(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, _ZERO)


def _line_label(line: InvoiceLine) -> str:
    return f"Invoice line {line.identifier.value}"


def _has_country_prefix(vat_identifier: str) -> bool:
    prefix = vat_identifier[:2]
    return prefix == "EL" or ISO_3166.lookup(prefix) is not None


# ---------------------------------------------------------------------------
# Presence (BR-1 … BR-16)


@business_rule("BR-1", "An Invoice shall have a Specification identifier (BT-24).", guarded_by_construction=True)
def _specification_identifier_present(invoice: Invoice) -> Iterator[str]:
    if invoice.process_control.specification_identifier is None:
        yield "Specification identifier (BT-24) is missing"


@business_rule("BR-2", "An Invoice shall have an Invoice number (BT-1).")
def _invoice_number_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.number):
        yield "Invoice number (BT-1) is missing"


@business_rule("BR-3", "An Invoice shall have an Invoice issue date (BT-2).", guarded_by_construction=True)
def _issue_date_present(invoice: Invoice) -> Iterator[str]:
    if invoice.issue_date is None:
        yield "Invoice issue date (BT-2) is missing"


@business_rule("BR-4", "An Invoice shall have an Invoice type code (BT-3).", guarded_by_construction=True)
def _type_code_present(invoice: Invoice) -> Iterator[str]:
    if invoice.type_code is None:
        yield "Invoice type code (BT-3) is missing"


@business_rule("BR-5", "An Invoice shall have an Invoice currency code (BT-5).", guarded_by_construction=True)
def _currency_code_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.currency_code):
        yield "Invoice currency code (BT-5) is missing"


@business_rule("BR-6", "An Invoice shall contain the Seller name (BT-27).")
def _seller_name_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.seller.name):
        yield "Seller name (BT-27) is missing"


@business_rule("BR-7", "An Invoice shall contain the Buyer name (BT-44).")
def _buyer_name_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.buyer.name):
        yield "Buyer name (BT-44) is missing"


@business_rule("BR-8", "An Invoice shall contain the Seller postal address (BG-5).", guarded_by_construction=True)
def _seller_address_present(invoice: Invoice) -> Iterator[str]:
    if invoice.seller.address is None:
        yield "Seller postal address (BG-5) is missing"


@business_rule("BR-9", "The Seller postal address (BG-5) shall contain a Seller country code (BT-40).", guarded_by_construction=True)
def _seller_country_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.seller.address.country_code):
        yield "Seller country code (BT-40) is missing"


@business_rule("BR-10", "An Invoice shall contain the Buyer postal address (BG-8).", guarded_by_construction=True)
def _buyer_address_present(invoice: Invoice) -> Iterator[str]:
    if invoice.buyer.address is None:
        yield "Buyer postal address (BG-8) is missing"


@business_rule("BR-11", "The Buyer postal address shall contain a Buyer country code (BT-55).", guarded_by_construction=True)
def _buyer_country_present(invoice: Invoice) -> Iterator[str]:
    if _missing(invoice.buyer.address.country_code):
        yield "Buyer country code (BT-55) is missing"


@business_rule("BR-12", "An Invoice shall have the Sum of Invoice line net amount (BT-106).", guarded_by_construction=True)
def _line_total_present(invoice: Invoice) -> Iterator[str]:
    if invoice.document_totals.sum_of_line_net_amounts is None:
        yield "Sum of Invoice line net amount (BT-106) is missing"


@business_rule("BR-13", "An Invoice shall have the Invoice total amount without VAT (BT-109).", guarded_by_construction=True)
def _total_without_vat_present(invoice: Invoice) -> Iterator[str]:
    if invoice.document_totals.total_without_vat is None:
        yield "Invoice total amount without VAT (BT-109) is missing"


@business_rule("BR-14", "An Invoice shall have the Invoice total amount with VAT (BT-112).", guarded_by_construction=True)
def _total_with_vat_present(invoice: Invoice) -> Iterator[str]:
    if invoice.document_totals.total_with_vat is None:
        yield "Invoice total amount with VAT (BT-112) is missing"


@business_rule("BR-15", "An Invoice shall have the Amount due for payment (BT-115).", guarded_by_construction=True)
def _amount_due_present(invoice: Invoice) -> Iterator[str]:
    if invoice.document_totals.amount_due_for_payment is None:
        yield "Amount due for payment (BT-115) is missing"


@business_rule("BR-16", "An Invoice shall have at least one Invoice line (BG-25).", guarded_by_construction=True)
def _invoice_line_present(invoice: Invoice) -> Iterator[str]:
    if not invoice.invoice_lines:
        yield "Invoice has no invoice line (BG-25)"


# ---------------------------------------------------------------------------
# Payee, tax representative (BR-17 … BR-20)


@business_rule("BR-17", "The Payee name (BT-59) shall be provided if the Payee (BG-10) is different from the Seller.")
def _payee_name_present(invoice: Invoice) -> Iterator[str]:
    if invoice.payee is not None and _missing(invoice.payee.name):
        yield "Payee name (BT-59) is missing"


@business_rule("BR-18", "The Seller tax representative name (BT-62) shall be provided if the Seller has a tax representative.")
def _tax_representative_name_present(invoice: Invoice) -> Iterator[str]:
    representative = invoice.seller_tax_representative_party
    if representative is not None and _missing(representative.name):
        yield "Seller tax representative name (BT-62) is missing"


@business_rule("BR-19", "The Seller tax representative postal address (BG-12) shall be provided if the Seller has a tax representative.")
def _tax_representative_address_present(invoice: Invoice) -> Iterator[str]:
    representative = invoice.seller_tax_representative_party
    if representative is not None and representative.address is None:
        yield "Seller tax representative postal address (BG-12) is missing"


@business_rule("BR-20", "The Seller tax representative postal address (BG-12) shall contain a country code (BT-69).", guarded_by_construction=True)
def _tax_representative_country_present(invoice: Invoice) -> Iterator[str]:
    representative = invoice.seller_tax_representative_party
    if representative is not None and representative.address is not None:
        if _missing(representative.address.country_code):
            yield "Tax representative country code (BT-69) is missing"


# ---------------------------------------------------------------------------
# Invoice lines (BR-21 … BR-28, BR-30)


@business_rule("BR-21", "Each Invoice line (BG-25) shall have an Invoice line identifier (BT-126).", guarded_by_construction=True)
def _line_identifier_present(invoice: Invoice) -> Iterator[str]:
    for position, line in enumerate(invoice.invoice_lines, start=1):
        if line.identifier is None or _missing(line.identifier.value):
            yield f"Invoice line #{position} has no identifier (BT-126)"


@business_rule("BR-22", "Each Invoice line (BG-25) shall have an Invoiced quantity (BT-129).", guarded_by_construction=True)
def _line_quantity_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.quantity is None:
            yield f"{_line_label(line)}: invoiced quantity (BT-129) is missing"


@business_rule("BR-23", "An Invoice line (BG-25) shall have an Invoiced quantity unit of measure code (BT-130).")
def _line_unit_code_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if _missing(line.unit_code):
            yield f"{_line_label(line)}: unit of measure code (BT-130) is missing"


@business_rule("BR-24", "Each Invoice line (BG-25) shall have an Invoice line net amount (BT-131).", guarded_by_construction=True)
def _line_net_amount_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.net_amount is None:
            yield f"{_line_label(line)}: net amount (BT-131) is missing"


@business_rule("BR-25", "Each Invoice line (BG-25) shall contain the Item name (BT-153).")
def _line_item_name_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if _missing(line.item.name):
            yield f"{_line_label(line)}: item name (BT-153) is missing"


@business_rule("BR-26", "Each Invoice line (BG-25) shall contain the Item net price (BT-146).", guarded_by_construction=True)
def _line_net_price_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.price.net_price is None:
            yield f"{_line_label(line)}: item net price (BT-146) is missing"


@business_rule("BR-27", "The Item net price (BT-146) shall NOT be negative.")
def _line_net_price_not_negative(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.price.net_price < 0:
            yield f"{_line_label(line)}: item net price (BT-146) is negative"


@business_rule("BR-28", "The Item gross price (BT-148) shall NOT be negative.")
def _line_gross_price_not_negative(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.price.gross_price is not None and line.price.gross_price < 0:
            yield f"{_line_label(line)}: item gross price (BT-148) is negative"


@business_rule("BR-29", "If both Invoicing period start date (BT-73) and end date (BT-74) are given then the end date shall be later or equal to the start date.")
def _invoicing_period_order(invoice: Invoice) -> Iterator[str]:
    delivery = invoice.delivery_information
    period = delivery.invoicing_period if delivery is not None else None
    if period is not None and period.start_date and period.end_date and period.end_date < period.start_date:
        yield "Invoicing period end date (BT-74) is before its start date (BT-73)"


@business_rule("BR-30", "If both Invoice line period start date (BT-134) and end date (BT-135) are given then the end date shall be later or equal to the start date.")
def _line_period_order(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        period = line.period
        if period is not None and period.start_date and period.end_date and period.end_date < period.start_date:
            yield f"{_line_label(line)}: period end date (BT-135) is before its start date (BT-134)"


# ---------------------------------------------------------------------------
# Allowances and charges (BR-31 … BR-44)


@business_rule("BR-31", "Each Document level allowance (BG-20) shall have a Document level allowance amount (BT-92).", guarded_by_construction=True)
def _document_allowance_amount_present(invoice: Invoice) -> Iterator[str]:
    for position, allowance in enumerate(invoice.document_level_allowances, start=1):
        if allowance.amount is None:
            yield f"Document level allowance #{position}: amount (BT-92) is missing"


@business_rule("BR-32", "Each Document level allowance (BG-20) shall have a Document level allowance VAT category code (BT-95).", guarded_by_construction=True)
def _document_allowance_category_present(invoice: Invoice) -> Iterator[str]:
    for position, allowance in enumerate(invoice.document_level_allowances, start=1):
        if allowance.vat_category_code is None:
            yield f"Document level allowance #{position}: VAT category code (BT-95) is missing"


@business_rule("BR-33", "Each Document level allowance (BG-20) shall have a Document level allowance reason (BT-97) or a Document level allowance reason code (BT-98).")
def _document_allowance_reason_present(invoice: Invoice) -> Iterator[str]:
    for position, allowance in enumerate(invoice.document_level_allowances, start=1):
        if _missing(allowance.reason) and allowance.reason_code is None:
            yield f"Document level allowance #{position}: neither reason (BT-97) nor reason code (BT-98) given"


@business_rule("BR-36", "Each Document level charge (BG-21) shall have a Document level charge amount (BT-99).", guarded_by_construction=True)
def _document_charge_amount_present(invoice: Invoice) -> Iterator[str]:
    for position, charge in enumerate(invoice.document_level_charges, start=1):
        if charge.amount is None:
            yield f"Document level charge #{position}: amount (BT-99) is missing"


@business_rule("BR-37", "Each Document level charge (BG-21) shall have a Document level charge VAT category code (BT-102).", guarded_by_construction=True)
def _document_charge_category_present(invoice: Invoice) -> Iterator[str]:
    for position, charge in enumerate(invoice.document_level_charges, start=1):
        if charge.vat_category_code is None:
            yield f"Document level charge #{position}: VAT category code (BT-102) is missing"


@business_rule("BR-38", "Each Document level charge (BG-21) shall have a Document level charge reason (BT-104) or a Document level charge reason code (BT-105).")
def _document_charge_reason_present(invoice: Invoice) -> Iterator[str]:
    for position, charge in enumerate(invoice.document_level_charges, start=1):
        if _missing(charge.reason) and charge.reason_code is None:
            yield f"Document level charge #{position}: neither reason (BT-104) nor reason code (BT-105) given"


@business_rule("BR-41", "Each Invoice line allowance (BG-27) shall have an Invoice line allowance amount (BT-136).", guarded_by_construction=True)
def _line_allowance_amount_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for allowance in line.allowances:
            if allowance.amount is None:
                yield f"{_line_label(line)}: allowance amount (BT-136) is missing"


@business_rule("BR-42", "Each Invoice line allowance (BG-27) shall have an Invoice line allowance reason (BT-139) or an Invoice line allowance reason code (BT-140).")
def _line_allowance_reason_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for allowance in line.allowances:
            if _missing(allowance.reason) and allowance.reason_code is None:
                yield f"{_line_label(line)}: allowance has neither reason (BT-139) nor reason code (BT-140)"


@business_rule("BR-43", "Each Invoice line charge (BG-28) shall have an Invoice line charge amount (BT-141).", guarded_by_construction=True)
def _line_charge_amount_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for charge in line.charges:
            if charge.amount is None:
                yield f"{_line_label(line)}: charge amount (BT-141) is missing"


@business_rule("BR-44", "Each Invoice line charge (BG-28) shall have an Invoice line charge reason (BT-144) or an Invoice line charge reason code (BT-145).")
def _line_charge_reason_present(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for charge in line.charges:
            if _missing(charge.reason) and charge.reason_code is None:
                yield f"{_line_label(line)}: charge has neither reason (BT-144) nor reason code (BT-145)"


# ---------------------------------------------------------------------------
# VAT breakdown (BR-45 … BR-48)


@business_rule("BR-45", "Each VAT breakdown (BG-23) shall have a VAT category taxable amount (BT-116).", guarded_by_construction=True)
def _breakdown_taxable_amount_present(invoice: Invoice) -> Iterator[str]:
    for breakdown in invoice.vat_breakdowns:
        if breakdown.taxable_amount is None:
            yield f"VAT breakdown {breakdown.category_code.value}: taxable amount (BT-116) is missing"


@business_rule("BR-46", "Each VAT breakdown (BG-23) shall have a VAT category tax amount (BT-117).", guarded_by_construction=True)
def _breakdown_tax_amount_present(invoice: Invoice) -> Iterator[str]:
    for breakdown in invoice.vat_breakdowns:
        if breakdown.tax_amount is None:
            yield f"VAT breakdown {breakdown.category_code.value}: tax amount (BT-117) is missing"


@business_rule("BR-47", "Each VAT breakdown (BG-23) shall be defined through a VAT category code (BT-118).", guarded_by_construction=True)
def _breakdown_category_present(invoice: Invoice) -> Iterator[str]:
    for position, breakdown in enumerate(invoice.vat_breakdowns, start=1):
        if breakdown.category_code is None:
            yield f"VAT breakdown #{position}: VAT category code (BT-118) is missing"


@business_rule("BR-48", "Each VAT breakdown (BG-23) shall have a VAT category rate (BT-119), except if the Invoice is not subject to VAT.")
def _breakdown_rate_present(invoice: Invoice) -> Iterator[str]:
    for breakdown in invoice.vat_breakdowns:
        if breakdown.category_code is not VatCategory.SERVICE_OUTSIDE_SCOPE_OF_TAX and breakdown.rate_percent is None:
            yield f"VAT breakdown {breakdown.category_code.value}: VAT category rate (BT-119) is missing"


# ---------------------------------------------------------------------------
# Payment and references (BR-49 … BR-57, BR-61)


@business_rule("BR-49", "A Payment instruction (BG-16) shall specify the Payment means type code (BT-81).")
def _payment_means_code_present(invoice: Invoice) -> Iterator[str]:
    instructions = invoice.payment_instructions
    if instructions is not None and instructions.means_type_code is None:
        yield "Payment means type code (BT-81) is missing"


@business_rule("BR-50", "A Payment account identifier (BT-84) shall be present if Credit transfer (BG-17) information is provided in the Invoice.")
def _credit_transfer_account_present(invoice: Invoice) -> Iterator[str]:
    instructions = invoice.payment_instructions
    if instructions is None:
        return
    for position, transfer in enumerate(instructions.credit_transfers, start=1):
        if _missing(transfer.account_identifier):
            yield f"Credit transfer #{position}: payment account identifier (BT-84) is missing"


@business_rule("BR-51", "The last 4 to 6 digits of the Payment card primary account number (BT-87) shall be present if Payment card information (BG-18) is provided in the Invoice.")
def _payment_card_digits(invoice: Invoice) -> Iterator[str]:
    instructions = invoice.payment_instructions
    card = instructions.payment_card if instructions is not None else None
    if card is None:
        return
    digits = re.sub(r"\D", "", card.primary_account_number or "")
    if not 4 <= len(digits) <= 6:
        yield f"Payment card account number (BT-87) must show 4 to 6 digits, found {len(digits)}"


@business_rule("BR-52", "Each Additional supporting document (BG-24) shall contain a Supporting document reference (BT-122).")
def _supporting_document_reference_present(invoice: Invoice) -> Iterator[str]:
    for position, document in enumerate(invoice.additional_supporting_documents, start=1):
        if _missing(document.reference):
            yield f"Additional supporting document #{position}: reference (BT-122) is missing"


@business_rule("BR-53", "If the VAT accounting currency code (BT-6) is present, then the Invoice total VAT amount in accounting currency (BT-111) shall be provided.")
def _accounting_currency_total_present(invoice: Invoice) -> Iterator[str]:
    if invoice.vat_accounting_currency_code is not None:
        if invoice.document_totals.total_vat_amount_in_accounting_currency is None:
            yield "Invoice total VAT amount in accounting currency (BT-111) is missing"


@business_rule("BR-54", "Each Item attribute (BG-32) shall contain an Item attribute name (BT-160) and an Item attribute value (BT-161).")
def _item_attribute_complete(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for attribute in line.item.attributes:
            if _missing(attribute.name) or _missing(attribute.value):
                yield f"{_line_label(line)}: item attribute needs both name (BT-160) and value (BT-161)"


@business_rule("BR-55", "Each Preceding Invoice reference (BG-3) shall contain a Preceding Invoice reference (BT-25).")
def _preceding_invoice_reference_present(invoice: Invoice) -> Iterator[str]:
    for position, reference in enumerate(invoice.preceding_invoice_references, start=1):
        if _missing(reference.reference):
            yield f"Preceding invoice reference #{position}: reference (BT-25) is missing"


@business_rule("BR-56", "Each Seller tax representative party (BG-11) shall have a Seller tax representative VAT identifier (BT-63).")
def _tax_representative_vat_present(invoice: Invoice) -> Iterator[str]:
    representative = invoice.seller_tax_representative_party
    if representative is not None and _missing(representative.vat_identifier):
        yield "Seller tax representative VAT identifier (BT-63) is missing"


@business_rule("BR-57", "Each Deliver to address (BG-15) shall contain a Deliver to country code (BT-80).", guarded_by_construction=True)
def _deliver_to_country_present(invoice: Invoice) -> Iterator[str]:
    delivery = invoice.delivery_information
    if delivery is not None and delivery.deliver_to_address is not None:
        if _missing(delivery.deliver_to_address.country_code):
            yield "Deliver to country code (BT-80) is missing"


@business_rule("BR-61", "If the Payment means type code (BT-81) means SEPA credit transfer, Local credit transfer or Non-SEPA international credit transfer, the Payment account identifier (BT-84) shall be present.")
def _credit_transfer_requires_account(invoice: Invoice) -> Iterator[str]:
    instructions = invoice.payment_instructions
    if instructions is None or instructions.means_type_code not in _CREDIT_TRANSFER_CODES:
        return
    if not any(not _missing(transfer.account_identifier) for transfer in instructions.credit_transfers):
        yield f"Payment means {instructions.means_type_code.value} requires a payment account identifier (BT-84)"


# ---------------------------------------------------------------------------
# Scheme identifiers (BR-62 … BR-65)


@business_rule("BR-62", "The Seller electronic address (BT-34) shall have a Scheme identifier.")
def _seller_electronic_address_scheme(invoice: Invoice) -> Iterator[str]:
    address = invoice.seller.electronic_address
    if address is not None and _missing(address.scheme):
        yield "Seller electronic address (BT-34) has no scheme identifier"


@business_rule("BR-63", "The Buyer electronic address (BT-49) shall have a Scheme identifier.")
def _buyer_electronic_address_scheme(invoice: Invoice) -> Iterator[str]:
    address = invoice.buyer.electronic_address
    if address is not None and _missing(address.scheme):
        yield "Buyer electronic address (BT-49) has no scheme identifier"


@business_rule("BR-64", "The Item standard identifier (BT-157) shall have a Scheme identifier.")
def _item_standard_identifier_scheme(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        identifier = line.item.standard_identifier
        if identifier is not None and _missing(identifier.scheme):
            yield f"{_line_label(line)}: item standard identifier (BT-157) has no scheme identifier"


@business_rule("BR-65", "The Item classification identifier (BT-158) shall have a Scheme identifier.")
def _item_classification_scheme(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        for identifier in line.item.classification_identifiers:
            if _missing(identifier.scheme):
                yield f"{_line_label(line)}: item classification identifier {identifier.value} has no scheme identifier"


# ---------------------------------------------------------------------------
# Cross-field rules (BR-CO-*)


@business_rule("BR-CO-3", "Value added tax point date (BT-7) and Value added tax point date code (BT-8) are mutually exclusive.")
def _tax_point_date_exclusive(invoice: Invoice) -> Iterator[str]:
    if invoice.value_added_tax_point_date is not None and invoice.value_added_tax_point_date_code is not None:
        yield (
            f"Value added tax point date (BT-7) {invoice.value_added_tax_point_date.isoformat()} and "
            f"date code (BT-8) {invoice.value_added_tax_point_date_code.value} are both given"
        )


@business_rule("BR-CO-9", "The Seller VAT identifier (BT-31), the Seller tax representative VAT identifier (BT-63) and the Buyer VAT identifier (BT-48) shall have a prefix in accordance with ISO code ISO 3166-1 alpha-2.")
def _vat_identifier_prefix(invoice: Invoice) -> Iterator[str]:
    representative = invoice.seller_tax_representative_party
    candidates = (
        ("Seller VAT identifier (BT-31)", invoice.seller.vat_identifier),
        ("Seller tax representative VAT identifier (BT-63)", representative.vat_identifier if representative else None),
        ("Buyer VAT identifier (BT-48)", invoice.buyer.vat_identifier),
    )
    for label, vat_identifier in candidates:
        if not _missing(vat_identifier) and not _has_country_prefix(vat_identifier):
            yield f"{label} {vat_identifier!r} has no ISO 3166-1 alpha-2 country prefix"


@business_rule("BR-CO-10", "Sum of Invoice line net amount (BT-106) = Σ Invoice line net amount (BT-131).")
def _line_total_reconciles(invoice: Invoice) -> Iterator[str]:
    expected = _total(line.net_amount for line in invoice.invoice_lines)
    declared = invoice.document_totals.sum_of_line_net_amounts
    if not _same_amount(declared, expected):
        yield f"Sum of line net amounts (BT-106) is {_money(declared)}, lines add up to {_money(expected)}"


@business_rule("BR-CO-11", "Sum of allowances on document level (BT-107) = Σ Document level allowance amount (BT-92).")
def _allowance_total_reconciles(invoice: Invoice) -> Iterator[str]:
    expected = _total(allowance.amount for allowance in invoice.document_level_allowances)
    declared = invoice.document_totals.sum_of_allowances or _ZERO
    if not _same_amount(declared, expected):
        yield f"Sum of allowances (BT-107) is {_money(declared)}, allowances add up to {_money(expected)}"


@business_rule("BR-CO-12", "Sum of charges on document level (BT-108) = Σ Document level charge amount (BT-99).")
def _charge_total_reconciles(invoice: Invoice) -> Iterator[str]:
    expected = _total(charge.amount for charge in invoice.document_level_charges)
    declared = invoice.document_totals.sum_of_charges or _ZERO
    if not _same_amount(declared, expected):
        yield f"Sum of charges (BT-108) is {_money(declared)}, charges add up to {_money(expected)}"


@business_rule("BR-CO-13", "Invoice total amount without VAT (BT-109) = Σ Invoice line net amount (BT-131) - Sum of allowances on document level (BT-107) + Sum of charges on document level (BT-108).")
def _total_without_vat_reconciles(invoice: Invoice) -> Iterator[str]:
    totals = invoice.document_totals
    expected = (
        totals.sum_of_line_net_amounts
        - (totals.sum_of_allowances or _ZERO)
        + (totals.sum_of_charges or _ZERO)
    )
    if not _same_amount(totals.total_without_vat, expected):
        yield f"Total without VAT (BT-109) is {_money(totals.total_without_vat)}, expected {_money(expected)}"


@business_rule("BR-CO-14", "Invoice total VAT amount (BT-110) = Σ VAT category tax amount (BT-117).")
def _vat_total_reconciles(invoice: Invoice) -> Iterator[str]:
    expected = _total(breakdown.tax_amount for breakdown in invoice.vat_breakdowns)
    declared = invoice.document_totals.total_vat_amount or _ZERO
    if not _same_amount(declared, expected):
        yield f"Total VAT amount (BT-110) is {_money(declared)}, VAT breakdowns add up to {_money(expected)}"


@business_rule("BR-CO-15", "Invoice total amount with VAT (BT-112) = Invoice total amount without VAT (BT-109) + Invoice total VAT amount (BT-110).")
def _total_with_vat_reconciles(invoice: Invoice) -> Iterator[str]:
    totals = invoice.document_totals
    expected = totals.total_without_vat + (totals.total_vat_amount or _ZERO)
    if not _same_amount(totals.total_with_vat, expected):
        yield f"Total with VAT (BT-112) is {_money(totals.total_with_vat)}, expected {_money(expected)}"


@business_rule("BR-CO-16", "Amount due for payment (BT-115) = Invoice total amount with VAT (BT-112) - Paid amount (BT-113) + Rounding amount (BT-114).")
def _amount_due_reconciles(invoice: Invoice) -> Iterator[str]:
    totals = invoice.document_totals
    expected = totals.total_with_vat - (totals.paid_amount or _ZERO) + (totals.rounding_amount or _ZERO)
    if not _same_amount(totals.amount_due_for_payment, expected):
        yield f"Amount due for payment (BT-115) is {_money(totals.amount_due_for_payment)}, expected {_money(expected)}"


@business_rule("BR-CO-17", "VAT category tax amount (BT-117) = VAT category taxable amount (BT-116) x (VAT category rate (BT-119) / 100), rounded to two decimals.")
def _breakdown_tax_reconciles(invoice: Invoice) -> Iterator[str]:
    for breakdown in invoice.vat_breakdowns:
        if breakdown.rate_percent is None:
            continue
        expected = breakdown.taxable_amount * breakdown.rate_percent / _HUNDRED
        if not _same_amount(breakdown.tax_amount, expected):
            yield (
                f"VAT breakdown {breakdown.category_code.value} {breakdown.rate_percent}%: "
                f"tax amount (BT-117) is {_money(breakdown.tax_amount)}, expected {_money(expected)}"
            )


@business_rule("BR-CO-18", "An Invoice shall at least have one VAT breakdown group (BG-23).", guarded_by_construction=True)
def _vat_breakdown_present(invoice: Invoice) -> Iterator[str]:
    if not invoice.vat_breakdowns:
        yield "Invoice has no VAT breakdown (BG-23)"


@business_rule("BR-CO-19", "If Invoicing period (BG-14) is used, the Invoicing period start date (BT-73) or the Invoicing period end date (BT-74) shall be filled, or both.")
def _invoicing_period_filled(invoice: Invoice) -> Iterator[str]:
    delivery = invoice.delivery_information
    period = delivery.invoicing_period if delivery is not None else None
    if period is not None and period.start_date is None and period.end_date is None:
        yield "Invoicing period (BG-14) has neither start (BT-73) nor end date (BT-74)"


@business_rule("BR-CO-20", "If Invoice line period (BG-26) is used, the Invoice line period start date (BT-134) or the Invoice line period end date (BT-135) shall be filled, or both.")
def _line_period_filled(invoice: Invoice) -> Iterator[str]:
    for line in invoice.invoice_lines:
        if line.period is not None and line.period.start_date is None and line.period.end_date is None:
            yield f"{_line_label(line)}: period (BG-26) has neither start (BT-134) nor end date (BT-135)"


@business_rule("BR-CO-25", "In case the Amount due for payment (BT-115) is positive, either the Payment due date (BT-9) or the Payment terms (BT-20) shall be present.")
def _payment_due_date_or_terms(invoice: Invoice) -> Iterator[str]:
    if invoice.document_totals.amount_due_for_payment > 0:
        if invoice.payment_due_date is None and _missing(invoice.payment_terms):
            yield "Positive amount due requires a payment due date (BT-9) or payment terms (BT-20)"


@business_rule("BR-CO-26", "In order for the buyer to automatically identify a supplier, the Seller identifier (BT-29), the Seller legal registration identifier (BT-30) and/or the Seller VAT identifier (BT-31) shall be present.")
def _seller_identifiable(invoice: Invoice) -> Iterator[str]:
    seller = invoice.seller
    if not seller.identifiers and seller.legal_registration_identifier is None and _missing(seller.vat_identifier):
        yield "Seller has no identifier (BT-29), legal registration identifier (BT-30) or VAT identifier (BT-31)"


# ---------------------------------------------------------------------------
# VAT category families (BR-S-*, BR-Z-*, BR-E-*, BR-AE-*, BR-IC-*, BR-G-*, BR-O-*)


def _seller_vat_registered(invoice: Invoice, *, allow_tax_registration: bool = True) -> bool:
    representative = invoice.seller_tax_representative_party
    candidates = [invoice.seller.vat_identifier, representative.vat_identifier if representative else None]
    if allow_tax_registration:
        candidates.append(invoice.seller.tax_registration_identifier)
    return any(not _missing(candidate) for candidate in candidates)


def _standard_identification(invoice: Invoice) -> bool:
    return _seller_vat_registered(invoice)


def _reverse_charge_identification(invoice: Invoice) -> bool:
    buyer = invoice.buyer
    return _seller_vat_registered(invoice) and (
        not _missing(buyer.vat_identifier) or buyer.legal_registration_identifier is not None
    )


def _intra_community_identification(invoice: Invoice) -> bool:
    return _seller_vat_registered(invoice, allow_tax_registration=False) and not _missing(invoice.buyer.vat_identifier)


def _export_identification(invoice: Invoice) -> bool:
    return _seller_vat_registered(invoice, allow_tax_registration=False)


def _outside_scope_identification(invoice: Invoice) -> bool:
    representative = invoice.seller_tax_representative_party
    return (
        _missing(invoice.seller.vat_identifier)
        and (representative is None or _missing(representative.vat_identifier))
        and _missing(invoice.buyer.vat_identifier)
    )


def _category_in_use(invoice: Invoice, category: VatCategory) -> bool:
    return (
        any(line.vat_information.category_code is category for line in invoice.invoice_lines)
        or any(allowance.vat_category_code is category for allowance in invoice.document_level_allowances)
        or any(charge.vat_category_code is category for charge in invoice.document_level_charges)
    )


def _category_base(
    invoice: Invoice,
    category: VatCategory,
    rate: Optional[Decimal],
    *,
    match_rate: bool,
) -> Decimal:
    """Line net amounts minus document allowances plus document charges of one category."""

    def selected(code: VatCategory, item_rate: Optional[Decimal]) -> bool:
        return code is category and (not match_rate or item_rate == rate)

    lines = _total(
        line.net_amount
        for line in invoice.invoice_lines
        if selected(line.vat_information.category_code, line.vat_information.rate_percent)
    )
    allowances = _total(
        allowance.amount
        for allowance in invoice.document_level_allowances
        if selected(allowance.vat_category_code, allowance.vat_rate)
    )
    charges = _total(
        charge.amount
        for charge in invoice.document_level_charges
        if selected(charge.vat_category_code, charge.vat_rate)
    )
    return lines - allowances + charges


def _register_category_rules(
    category: VatCategory,
    prefix: str,
    *,
    label: str,
    identification: Callable[[Invoice], bool],
    identification_text: str,
    rate_ok: Callable[[Optional[Decimal]], bool],
    rate_text: str,
    exemption_reason_required: bool,
    single_breakdown: bool,
) -> None:
    """Register BR-<prefix>-1 … -10 for one VAT category.

    ``identification_text`` and ``rate_text`` complete a sentence whose
    subject is the line, allowance or charge that carries the category.
    """

    code = category.value
    standard_rated = category is VatCategory.STANDARD

    @business_rule(
        f"BR-{prefix}-1",
        f"An Invoice that contains a line, document level allowance or charge with VAT category code {code} "
        f"shall contain {'exactly' if single_breakdown else 'at least'} one VAT breakdown (BG-23) with category {code}.",
    )
    def _breakdown_for_category(invoice: Invoice) -> Iterator[str]:
        if not _category_in_use(invoice, category):
            return
        count = sum(1 for breakdown in invoice.vat_breakdowns if breakdown.category_code is category)
        if count == 0 or (single_breakdown and count != 1):
            expected = "exactly one" if single_breakdown else "at least one"
            yield f"VAT category {code} is used but {count} VAT breakdowns carry it ({expected} required)"

    def identification_rule(rule_id: str, subject: str, codes: Callable[[Invoice], Iterable[VatCategory]]) -> None:
        @business_rule(rule_id, f"{subject} with VAT category '{label}' {identification_text}")
        def _party_identification(invoice: Invoice) -> Iterator[str]:
            if not any(item_code is category for item_code in codes(invoice)):
                return
            if not identification(invoice):
                yield f"{subject} with VAT category {code} {identification_text}"

    def rate_rule(rule_id: str, subject: str, rate_term: str, items: Callable[[Invoice], Iterable[RatedItem]]) -> None:
        @business_rule(rule_id, f"In {subject} with VAT category '{label}' the {rate_term} {rate_text}")
        def _rate(invoice: Invoice) -> Iterator[str]:
            for item_label, item_code, rate in items(invoice):
                if item_code is category and not rate_ok(rate):
                    yield f"{item_label}: VAT rate {rate} not allowed for category {code}"

    identification_rule(
        f"BR-{prefix}-2",
        "Invoice lines",
        lambda invoice: (line.vat_information.category_code for line in invoice.invoice_lines),
    )
    identification_rule(
        f"BR-{prefix}-3",
        "Document level allowances",
        lambda invoice: (allowance.vat_category_code for allowance in invoice.document_level_allowances),
    )
    identification_rule(
        f"BR-{prefix}-4",
        "Document level charges",
        lambda invoice: (charge.vat_category_code for charge in invoice.document_level_charges),
    )
    rate_rule(
        f"BR-{prefix}-5",
        "an Invoice line",
        "invoiced item VAT rate (BT-152)",
        lambda invoice: (
            (_line_label(line), line.vat_information.category_code, line.vat_information.rate_percent)
            for line in invoice.invoice_lines
        ),
    )
    rate_rule(
        f"BR-{prefix}-6",
        "a Document level allowance",
        "Document level allowance VAT rate (BT-96)",
        lambda invoice: (
            (f"Document level allowance #{position}", allowance.vat_category_code, allowance.vat_rate)
            for position, allowance in enumerate(invoice.document_level_allowances, start=1)
        ),
    )
    rate_rule(
        f"BR-{prefix}-7",
        "a Document level charge",
        "Document level charge VAT rate (BT-103)",
        lambda invoice: (
            (f"Document level charge #{position}", charge.vat_category_code, charge.vat_rate)
            for position, charge in enumerate(invoice.document_level_charges, start=1)
        ),
    )

    @business_rule(
        f"BR-{prefix}-8",
        f"The VAT category taxable amount (BT-116) of category {code} shall equal the sum of line net amounts "
        f"minus document level allowances plus document level charges of that category.",
    )
    def _taxable_amount(invoice: Invoice) -> Iterator[str]:
        for breakdown in invoice.vat_breakdowns:
            if breakdown.category_code is not category:
                continue
            expected = _category_base(invoice, category, breakdown.rate_percent, match_rate=standard_rated)
            if not _same_amount(breakdown.taxable_amount, expected):
                yield (
                    f"VAT breakdown {code}: taxable amount (BT-116) is {_money(breakdown.taxable_amount)}, "
                    f"expected {_money(expected)}"
                )

    @business_rule(
        f"BR-{prefix}-9",
        f"The VAT category tax amount (BT-117) of category {code} shall "
        + ("equal the taxable amount multiplied by the rate." if standard_rated else "be 0."),
    )
    def _tax_amount(invoice: Invoice) -> Iterator[str]:
        for breakdown in invoice.vat_breakdowns:
            if breakdown.category_code is not category:
                continue
            if standard_rated:
                expected = breakdown.taxable_amount * (breakdown.rate_percent or _ZERO) / _HUNDRED
            else:
                expected = _ZERO
            if not _same_amount(breakdown.tax_amount, expected):
                yield f"VAT breakdown {code}: tax amount (BT-117) is {_money(breakdown.tax_amount)}, expected {_money(expected)}"

    @business_rule(
        f"BR-{prefix}-10",
        f"A VAT breakdown (BG-23) with category {code} shall "
        + ("have" if exemption_reason_required else "not have")
        + " a VAT exemption reason code (BT-121) or text (BT-120).",
    )
    def _exemption_reason(invoice: Invoice) -> Iterator[str]:
        for breakdown in invoice.vat_breakdowns:
            if breakdown.category_code is not category:
                continue
            if exemption_reason_required and not breakdown.has_exemption_reason:
                yield f"VAT breakdown {code}: exemption reason (BT-120/BT-121) is missing"
            elif not exemption_reason_required and breakdown.has_exemption_reason:
                yield f"VAT breakdown {code}: exemption reason (BT-120/BT-121) is not allowed"


_SELLER_VAT_TEXT = (
    "require the Seller VAT identifier (BT-31), the Seller tax registration identifier (BT-32) "
    "and/or the Seller tax representative VAT identifier (BT-63)."
)
_ZERO_RATE_TEXT = "shall be 0."


def _zero_rate(rate: Optional[Decimal]) -> bool:
    return rate is not None and rate == 0


_register_category_rules(
    VatCategory.STANDARD,
    "S",
    label="Standard rated",
    identification=_standard_identification,
    identification_text=_SELLER_VAT_TEXT,
    rate_ok=lambda rate: rate is not None and rate > 0,
    rate_text="shall be greater than zero.",
    exemption_reason_required=False,
    single_breakdown=False,
)
_register_category_rules(
    VatCategory.ZERO_RATED_GOODS,
    "Z",
    label="Zero rated",
    identification=_standard_identification,
    identification_text=_SELLER_VAT_TEXT,
    rate_ok=_zero_rate,
    rate_text=_ZERO_RATE_TEXT,
    exemption_reason_required=False,
    single_breakdown=True,
)
_register_category_rules(
    VatCategory.EXEMPT_FROM_TAX,
    "E",
    label="Exempt from VAT",
    identification=_standard_identification,
    identification_text=_SELLER_VAT_TEXT,
    rate_ok=_zero_rate,
    rate_text=_ZERO_RATE_TEXT,
    exemption_reason_required=True,
    single_breakdown=True,
)
_register_category_rules(
    VatCategory.VAT_REVERSE_CHARGE,
    "AE",
    label="Reverse charge",
    identification=_reverse_charge_identification,
    identification_text=(
        "require a Seller VAT or tax registration identifier and the Buyer VAT identifier "
        "(BT-48) and/or the Buyer legal registration identifier (BT-47)."
    ),
    rate_ok=_zero_rate,
    rate_text=_ZERO_RATE_TEXT,
    exemption_reason_required=True,
    single_breakdown=True,
)
_register_category_rules(
    VatCategory.VAT_EXEMPT_FOR_EEA_INTRA_COMMUNITY_SUPPLY,
    "IC",
    label="Intra-community supply",
    identification=_intra_community_identification,
    identification_text=(
        "require the Seller VAT identifier (BT-31) or the Seller tax representative "
        "VAT identifier (BT-63) and the Buyer VAT identifier (BT-48)."
    ),
    rate_ok=_zero_rate,
    rate_text=_ZERO_RATE_TEXT,
    exemption_reason_required=True,
    single_breakdown=True,
)
_register_category_rules(
    VatCategory.FREE_EXPORT_ITEM_TAX_NOT_CHARGED,
    "G",
    label="Export outside the EU",
    identification=_export_identification,
    identification_text=(
        "require the Seller VAT identifier (BT-31) or the Seller tax representative "
        "VAT identifier (BT-63)."
    ),
    rate_ok=_zero_rate,
    rate_text=_ZERO_RATE_TEXT,
    exemption_reason_required=True,
    single_breakdown=True,
)
_register_category_rules(
    VatCategory.SERVICE_OUTSIDE_SCOPE_OF_TAX,
    "O",
    label="Not subject to VAT",
    identification=_outside_scope_identification,
    identification_text=(
        "forbid the Seller VAT identifier (BT-31), the Seller tax representative "
        "VAT identifier (BT-63) and the Buyer VAT identifier (BT-48)."
    ),
    rate_ok=lambda rate: rate is None,
    rate_text="shall not be present.",
    exemption_reason_required=True,
    single_breakdown=True,
)
