"""EN16931 Business Term Groups."""

from .document import (
    AdditionalSupportingDocument,
    DocumentLevelAllowance,
    DocumentLevelCharge,
    DocumentTotals,
    InvoiceNote,
    InvoicingPeriod,
    PrecedingInvoiceReference,
    ProcessControl,
    VatBreakdown,
)
from .lines import (
    InvoiceLine,
    InvoiceLineAllowance,
    InvoiceLineCharge,
    InvoiceLinePeriod,
    ItemAttribute,
    ItemInformation,
    LineVatInformation,
    PriceDetails,
)
from .parties import (
    Buyer,
    Contact,
    DeliveryInformation,
    Payee,
    PostalAddress,
    Seller,
    SellerTaxRepresentativeParty,
)
from .payment import CreditTransfer, DirectDebit, PaymentCardInformation, PaymentInstructions

__all__ = [
    "AdditionalSupportingDocument",
    "Buyer",
    "Contact",
    "CreditTransfer",
    "DeliveryInformation",
    "DirectDebit",
    "DocumentLevelAllowance",
    "DocumentLevelCharge",
    "DocumentTotals",
    "InvoiceLine",
    "InvoiceLineAllowance",
    "InvoiceLineCharge",
    "InvoiceLinePeriod",
    "InvoiceNote",
    "InvoicingPeriod",
    "ItemAttribute",
    "ItemInformation",
    "LineVatInformation",
    "Payee",
    "PaymentCardInformation",
    "PaymentInstructions",
    "PostalAddress",
    "PrecedingInvoiceReference",
    "PriceDetails",
    "ProcessControl",
    "Seller",
    "SellerTaxRepresentativeParty",
    "VatBreakdown",
]
