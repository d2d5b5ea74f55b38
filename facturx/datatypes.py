"""Wertetypen und Codelisten für EN16931 (Identifier, UNTDID/VATEX-Codes).

Beträge werden als ``Decimal`` geführt. Floats werden vorab in Strings
umgewandelt, damit identische Eingaben unabhängig vom Host identische
Ergebnisse liefern.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from enum import Enum
from typing import Optional, Type, TypeVar

from .errors import DomainValidationError


DecimalLike = Decimal | str | int | float

E = TypeVar("E", bound="CodedEnum")


def to_decimal(value: DecimalLike) -> Decimal:
    """Konvertiere Eingaben deterministisch in ``Decimal``."""

    if isinstance(value, bool):
        raise DomainValidationError("decimal.type", f"Unsupported decimal input: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation as err:
            raise DomainValidationError("decimal.invalid", f"Not a decimal: {value!r}") from err
    else:
        raise DomainValidationError("decimal.type", f"Unsupported decimal input: {type(value)!r}")
    if not result.is_finite():
        raise DomainValidationError("decimal.invalid", f"Not a finite decimal: {value!r}")
    return result


def to_optional_decimal(value: Optional[DecimalLike]) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def exact_context(value: Decimal, places: int = 0) -> Context:
    """Kontext, dessen Präzision ``value`` mit ``places`` Nachkommastellen ohne Rundung fasst."""

    context = getcontext().copy()
    context.prec = max(context.prec, value.adjusted() + places + 2, len(value.as_tuple().digits))
    return context


def quantize_money(amount: DecimalLike, places: int = 2) -> Decimal:
    """Rundet Beträge kaufmännisch (ROUND_HALF_UP) auf ``places`` Nachkommastellen."""

    value = to_decimal(amount)
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP, context=exact_context(value, places))


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class CodedEnum(str, Enum):
    """Closed code list; unknown codes fail with ``DomainValidationError``."""

    @classmethod
    def _missing_(cls, value: object) -> None:
        raise DomainValidationError(
            f"{cls.__name__}.unknown_code",
            f"{value!r} is not a valid {cls.__name__} code",
        )

    @classmethod
    def coerce(cls: Type[E], value: "E | str") -> E:
        if isinstance(value, cls):
            return value
        return cls(value)

    @classmethod
    def coerce_optional(cls: Type[E], value: "E | str | None") -> Optional[E]:
        return None if value is None else cls.coerce(value)


@dataclass(frozen=True, slots=True)
class Identifier:
    """Identifier with an optional identification scheme (e.g. ``0002`` for SIRENE)."""

    value: str
    scheme: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainValidationError("identifier.value.empty", "Identifier value must not be empty")
        if self.scheme is not None and not self.scheme.strip():
            raise DomainValidationError("identifier.scheme.empty", "Identifier scheme must not be blank")


@dataclass(frozen=True, slots=True)
class ItemClassificationIdentifier:
    """BT-158 with list identifier (BT-158-1) and list version (BT-158-2)."""

    value: str
    scheme: Optional[str] = None
    version: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainValidationError(
                "classification_identifier.value.empty",
                "Item classification identifier must not be empty",
            )


@dataclass(frozen=True, slots=True)
class BinaryObject:
    """BT-125 attached document."""

    content: bytes
    mime_code: str
    filename: str

    def __post_init__(self) -> None:
        if not isinstance(self.content, (bytes, bytearray)):
            raise DomainValidationError("binary_object.content.type", "Attachment content must be bytes")
        if is_blank(self.mime_code):
            raise DomainValidationError("binary_object.mime_code.empty", "Attachment MIME code is required")
        if is_blank(self.filename):
            raise DomainValidationError("binary_object.filename.empty", "Attachment filename is required")
        object.__setattr__(self, "content", bytes(self.content))


class InvoiceTypeCode(CodedEnum):
    """BT-3, UNTDID 1001 subset accepted by EN16931."""

    REQUEST_FOR_PAYMENT = "71"
    DEBIT_NOTE_RELATED_TO_GOODS_OR_SERVICES = "80"
    CREDIT_NOTE_RELATED_TO_GOODS_OR_SERVICES = "81"
    METERED_SERVICES_INVOICE = "82"
    CREDIT_NOTE_RELATED_TO_FINANCIAL_ADJUSTMENTS = "83"
    DEBIT_NOTE_RELATED_TO_FINANCIAL_ADJUSTMENTS = "84"
    INVOICING_DATA_SHEET = "130"
    DIRECT_PAYMENT_VALUATION = "202"
    PROVISIONAL_PAYMENT_VALUATION = "203"
    PAYMENT_VALUATION = "204"
    INTERIM_APPLICATION_FOR_PAYMENT = "211"
    SELF_BILLED_CREDIT_NOTE = "261"
    CONSOLIDATED_CREDIT_NOTE = "262"
    CREDIT_NOTE_FOR_PRICE_VARIATION = "296"
    DELCREDERE_CREDIT_NOTE = "308"
    PROFORMA_INVOICE = "325"
    PARTIAL_INVOICE = "326"
    COMMERCIAL_INVOICE = "380"
    CREDIT_NOTE = "381"
    DEBIT_NOTE = "383"
    CORRECTED_INVOICE = "384"
    CONSOLIDATED_INVOICE = "385"
    PREPAYMENT_INVOICE = "386"
    HIRE_INVOICE = "387"
    TAX_INVOICE = "388"
    SELF_BILLED_INVOICE = "389"
    DELCREDERE_INVOICE = "390"
    FACTORED_INVOICE = "393"
    LEASE_INVOICE = "394"
    CONSIGNMENT_INVOICE = "395"
    FACTORED_CREDIT_NOTE = "396"
    OCR_PAYMENT_CREDIT_NOTE = "420"
    DEBIT_ADJUSTMENT = "456"
    REVERSAL_OF_DEBIT = "457"
    REVERSAL_OF_CREDIT = "458"
    SELF_BILLED_DEBIT_NOTE = "527"
    FORWARDERS_CREDIT_NOTE = "532"
    INSURERS_INVOICE = "575"
    FORWARDERS_INVOICE = "623"
    PORT_CHARGES_DOCUMENTS = "633"
    INVOICE_INFORMATION_FOR_ACCOUNTING_PURPOSES = "751"
    FREIGHT_INVOICE = "780"
    CLAIM_NOTIFICATION = "817"
    CONSULAR_INVOICE = "870"
    PARTIAL_CONSTRUCTION_INVOICE = "875"
    PARTIAL_FINAL_CONSTRUCTION_INVOICE = "876"
    FINAL_CONSTRUCTION_INVOICE = "877"
    CUSTOMS_INVOICE = "935"


class VatCategory(CodedEnum):
    """BT-95/BT-102/BT-118/BT-151, UNTDID 5305 subset."""

    STANDARD = "S"
    ZERO_RATED_GOODS = "Z"
    EXEMPT_FROM_TAX = "E"
    VAT_REVERSE_CHARGE = "AE"
    VAT_EXEMPT_FOR_EEA_INTRA_COMMUNITY_SUPPLY = "K"
    FREE_EXPORT_ITEM_TAX_NOT_CHARGED = "G"
    SERVICE_OUTSIDE_SCOPE_OF_TAX = "O"
    CANARY_ISLANDS_GENERAL_INDIRECT_TAX = "L"
    TAX_FOR_PRODUCTION_SERVICES_AND_IMPORTATION_IN_CEUTA_AND_MELILLA = "M"


class VatExoneration(CodedEnum):
    """BT-121, CEF VATEX code list."""

    EU_79_C = "VATEX-EU-79-C"
    EU_132 = "VATEX-EU-132"
    EU_132_1A = "VATEX-EU-132-1A"
    EU_132_1B = "VATEX-EU-132-1B"
    EU_132_1C = "VATEX-EU-132-1C"
    EU_132_1D = "VATEX-EU-132-1D"
    EU_132_1E = "VATEX-EU-132-1E"
    EU_132_1F = "VATEX-EU-132-1F"
    EU_132_1G = "VATEX-EU-132-1G"
    EU_132_1H = "VATEX-EU-132-1H"
    EU_132_1I = "VATEX-EU-132-1I"
    EU_132_1J = "VATEX-EU-132-1J"
    EU_132_1K = "VATEX-EU-132-1K"
    EU_132_1L = "VATEX-EU-132-1L"
    EU_132_1M = "VATEX-EU-132-1M"
    EU_132_1N = "VATEX-EU-132-1N"
    EU_132_1O = "VATEX-EU-132-1O"
    EU_132_1P = "VATEX-EU-132-1P"
    EU_132_1Q = "VATEX-EU-132-1Q"
    EU_143 = "VATEX-EU-143"
    EU_143_1A = "VATEX-EU-143-1A"
    EU_143_1B = "VATEX-EU-143-1B"
    EU_143_1C = "VATEX-EU-143-1C"
    EU_143_1D = "VATEX-EU-143-1D"
    EU_143_1E = "VATEX-EU-143-1E"
    EU_143_1F = "VATEX-EU-143-1F"
    EU_143_1FA = "VATEX-EU-143-1FA"
    EU_143_1G = "VATEX-EU-143-1G"
    EU_143_1H = "VATEX-EU-143-1H"
    EU_143_1I = "VATEX-EU-143-1I"
    EU_143_1J = "VATEX-EU-143-1J"
    EU_143_1K = "VATEX-EU-143-1K"
    EU_143_1L = "VATEX-EU-143-1L"
    EU_148 = "VATEX-EU-148"
    EU_148_A = "VATEX-EU-148-A"
    EU_148_B = "VATEX-EU-148-B"
    EU_148_C = "VATEX-EU-148-C"
    EU_148_D = "VATEX-EU-148-D"
    EU_148_E = "VATEX-EU-148-E"
    EU_148_F = "VATEX-EU-148-F"
    EU_148_G = "VATEX-EU-148-G"
    EU_148_H = "VATEX-EU-148-H"
    EU_148_I = "VATEX-EU-148-I"
    EU_151 = "VATEX-EU-151"
    EU_151_1A = "VATEX-EU-151-1A"
    EU_151_1AA = "VATEX-EU-151-1AA"
    EU_151_1B = "VATEX-EU-151-1B"
    EU_151_1C = "VATEX-EU-151-1C"
    EU_151_1D = "VATEX-EU-151-1D"
    EU_151_1E = "VATEX-EU-151-1E"
    EU_309 = "VATEX-EU-309"
    EU_AE = "VATEX-EU-AE"
    EU_D = "VATEX-EU-D"
    EU_F = "VATEX-EU-F"
    EU_G = "VATEX-EU-G"
    EU_I = "VATEX-EU-I"
    EU_IC = "VATEX-EU-IC"
    EU_O = "VATEX-EU-O"
    EU_J = "VATEX-EU-J"
    FR_FRANCHISE = "VATEX-FR-FRANCHISE"
    FR_CNWVAT = "VATEX-FR-CNWVAT"


class InvoiceNoteCode(CodedEnum):
    """BT-21, UNTDID 4451 subset."""

    GOODS_ITEM_DESCRIPTION = "AAA"
    PAYMENT_TERM = "AAB"
    DANGEROUS_GOODS_ADDITIONAL_INFORMATION = "AAC"
    GENERAL_INFORMATION = "AAI"
    ADDITIONAL_CONDITIONS = "AAJ"
    PRICE_CONDITIONS = "AAK"
    GOVERNMENT_INFORMATION = "ABL"
    ACCOUNTING_INFORMATION = "ABN"
    ADDITIONAL_INFORMATION = "ACB"
    REASON = "ACD"
    NOTE = "ADU"
    CUSTOMS_DECLARATION_INFORMATION = "CUS"
    PAYMENT_DETAIL = "PMD"
    PAYMENT_INFORMATION = "PMT"
    REGULATORY_INFORMATION = "REG"
    SUPPLIER_REMARKS = "SUR"
    TAX_DECLARATION = "TXD"


class PaymentMeansCode(CodedEnum):
    """BT-81, UNTDID 4461 subset."""

    NOT_DEFINED = "1"
    IN_CASH = "10"
    CHEQUE = "20"
    CREDIT_TRANSFER = "30"
    DEBIT_TRANSFER = "31"
    PAYMENT_TO_BANK_ACCOUNT = "42"
    BANK_CARD = "48"
    DIRECT_DEBIT = "49"
    STANDING_AGREEMENT = "57"
    SEPA_CREDIT_TRANSFER = "58"
    SEPA_DIRECT_DEBIT = "59"
    CLEARING_BETWEEN_PARTNERS = "97"
    MUTUALLY_DEFINED = "ZZZ"


class AllowanceReasonCode(CodedEnum):
    """BT-98/BT-140, UNTDID 5189."""

    BONUS_FOR_WORKS_AHEAD_OF_SCHEDULE = "41"
    OTHER_BONUS = "42"
    MANUFACTURERS_CONSUMER_DISCOUNT = "60"
    DUE_TO_MILITARY_STATUS = "62"
    DUE_TO_WORK_ACCIDENT = "63"
    SPECIAL_AGREEMENT = "64"
    PRODUCTION_ERROR_DISCOUNT = "65"
    NEW_OUTLET_DISCOUNT = "66"
    SAMPLE_DISCOUNT = "67"
    END_OF_RANGE_DISCOUNT = "68"
    INCOTERM_DISCOUNT = "70"
    POINT_OF_SALES_THRESHOLD_ALLOWANCE = "71"
    MATERIAL_SURCHARGE_DEDUCTION = "88"
    DISCOUNT = "95"
    SPECIAL_REBATE = "100"
    FIXED_LONG_TERM = "102"
    TEMPORARY = "103"
    STANDARD = "104"
    YEARLY_TURNOVER = "105"


class ChargeReasonCode(CodedEnum):
    """BT-105/BT-145, UNTDID 7161 subset."""

    ADVERTISING = "AA"
    TELECOMMUNICATION = "AAA"
    MISCELLANEOUS = "ABK"
    ADDITIONAL_PACKAGING = "ABL"
    OTHER_SERVICES = "ADR"
    PICK_UP = "ADT"
    FREIGHT_SERVICE = "FC"
    FINANCING = "FI"
    LABELLING = "LA"
    PACKING = "PC"
    MUTUALLY_DEFINED = "ZZZ"


class TimeReferencingCode(CodedEnum):
    """BT-8 as used by CII (UNTDID 2475)."""

    DATE_OF_INVOICE = "5"
    DATE_OF_DELIVERY = "29"
    PAID_TO_DATE = "72"
