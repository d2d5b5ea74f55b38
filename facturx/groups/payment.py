"""Zahlungsanweisungen (BG-16 … BG-19)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..datatypes import PaymentMeansCode
from ..errors import DomainValidationError


@dataclass(frozen=True, slots=True)
class CreditTransfer:
    """BG-17."""

    account_identifier: Optional[str] = None  # BT-84 (IBAN or proprietary)
    account_name: Optional[str] = None  # BT-85
    service_provider_identifier: Optional[str] = None  # BT-86 (BIC)


@dataclass(frozen=True, slots=True)
class PaymentCardInformation:
    """BG-18. Only the last 4 to 6 digits of the PAN may be transmitted."""

    primary_account_number: str  # BT-87
    holder_name: Optional[str] = None  # BT-88


@dataclass(frozen=True, slots=True)
class DirectDebit:
    """BG-19."""

    mandate_reference: Optional[str] = None  # BT-89
    creditor_identifier: Optional[str] = None  # BT-90
    debited_account_identifier: Optional[str] = None  # BT-91


@dataclass(frozen=True, slots=True)
class PaymentInstructions:
    """BG-16."""

    means_type_code: Optional[PaymentMeansCode]  # BT-81
    means_text: Optional[str] = None  # BT-82
    remittance_information: Optional[str] = None  # BT-83
    credit_transfers: Tuple[CreditTransfer, ...] = ()  # BG-17
    payment_card: Optional[PaymentCardInformation] = None  # BG-18
    direct_debit: Optional[DirectDebit] = None  # BG-19

    def __post_init__(self) -> None:
        object.__setattr__(self, "means_type_code", PaymentMeansCode.coerce_optional(self.means_type_code))
        transfers = tuple(self.credit_transfers or ())
        if not all(isinstance(item, CreditTransfer) for item in transfers):
            raise DomainValidationError(
                "payment_instructions.credit_transfers.type",
                "Credit transfers must be CreditTransfer instances",
            )
        object.__setattr__(self, "credit_transfers", transfers)
