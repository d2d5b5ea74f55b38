"""EN16931 / Factur-X Rechnungsmodell, Geschäftsregelprüfung und CII-Serialisierung."""

from .cii import build_facturx_tree, build_facturx_xml
from .errors import DomainValidationError, SerializationError
from .invoice import Invoice
from .profiles import ConformanceProfile
from .rules import BusinessRuleReport, RuleViolation, get_rule, validate_business_rules

__all__ = [
    "BusinessRuleReport",
    "ConformanceProfile",
    "DomainValidationError",
    "Invoice",
    "RuleViolation",
    "SerializationError",
    "build_facturx_tree",
    "build_facturx_xml",
    "get_rule",
    "validate_business_rules",
]
