"""Beteiligte Parteien (BG-4 … BG-13, BG-15) samt Postanschrift und Kontakt."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from ..datatypes import Identifier
from ..errors import DomainValidationError
from ..reference import ISO_3166
from .document import InvoicingPeriod


def _identifier_tuple(values: object, constraint: str) -> Tuple[Identifier, ...]:
    items = tuple(values or ())
    for item in items:
        if not isinstance(item, Identifier):
            raise DomainValidationError(constraint, f"Expected Identifier, got {type(item).__name__}")
    return items


@dataclass(frozen=True, slots=True)
class PostalAddress:
    """BG-5 / BG-8 / BG-12 / BG-15."""

    country_code: str
    line1: Optional[str] = None
    line2: Optional[str] = None
    line3: Optional[str] = None
    city: Optional[str] = None
    post_code: Optional[str] = None
    country_subdivision: Optional[str] = None

    def __post_init__(self) -> None:
        if ISO_3166.lookup(self.country_code) is None:
            raise DomainValidationError(
                "postal_address.country_code.unknown",
                f"{self.country_code!r} is not an ISO 3166-1 alpha-2 country code",
            )


@dataclass(frozen=True, slots=True)
class Contact:
    """BG-6 / BG-9."""

    point: Optional[str] = None  # BT-41 / BT-56
    telephone: Optional[str] = None  # BT-42 / BT-57
    email: Optional[str] = None  # BT-43 / BT-58


@dataclass(frozen=True, slots=True)
class Seller:
    """BG-4."""

    name: str  # BT-27
    address: PostalAddress  # BG-5
    trading_name: Optional[str] = None  # BT-28
    identifiers: Tuple[Identifier, ...] = ()  # BT-29
    legal_registration_identifier: Optional[Identifier] = None  # BT-30
    vat_identifier: Optional[str] = None  # BT-31
    tax_registration_identifier: Optional[str] = None  # BT-32
    additional_legal_information: Optional[str] = None  # BT-33
    electronic_address: Optional[Identifier] = None  # BT-34
    contact: Optional[Contact] = None  # BG-6

    def __post_init__(self) -> None:
        if not isinstance(self.address, PostalAddress):
            raise DomainValidationError("seller.address.missing", "Seller postal address is required")
        object.__setattr__(self, "identifiers", _identifier_tuple(self.identifiers, "seller.identifiers.type"))


@dataclass(frozen=True, slots=True)
class Buyer:
    """BG-7."""

    name: str  # BT-44
    address: PostalAddress  # BG-8
    trading_name: Optional[str] = None  # BT-45
    identifiers: Tuple[Identifier, ...] = ()  # BT-46
    legal_registration_identifier: Optional[Identifier] = None  # BT-47
    vat_identifier: Optional[str] = None  # BT-48
    electronic_address: Optional[Identifier] = None  # BT-49
    contact: Optional[Contact] = None  # BG-9

    def __post_init__(self) -> None:
        if not isinstance(self.address, PostalAddress):
            raise DomainValidationError("buyer.address.missing", "Buyer postal address is required")
        object.__setattr__(self, "identifiers", _identifier_tuple(self.identifiers, "buyer.identifiers.type"))


@dataclass(frozen=True, slots=True)
class Payee:
    """BG-10."""

    name: str  # BT-59
    identifier: Optional[Identifier] = None  # BT-60
    legal_registration_identifier: Optional[Identifier] = None  # BT-61


@dataclass(frozen=True, slots=True)
class SellerTaxRepresentativeParty:
    """BG-11."""

    name: str  # BT-62
    vat_identifier: Optional[str] = None  # BT-63
    address: Optional[PostalAddress] = None  # BG-12


@dataclass(frozen=True, slots=True)
class DeliveryInformation:
    """BG-13."""

    deliver_to_party_name: Optional[str] = None  # BT-70
    location_identifier: Optional[Identifier] = None  # BT-71
    actual_delivery_date: Optional[date] = None  # BT-72
    invoicing_period: Optional[InvoicingPeriod] = None  # BG-14
    deliver_to_address: Optional[PostalAddress] = None  # BG-15
