"""Factur-X Konformitätsprofile (BT-24) und ihr Einfluss auf die CII-Ausgabe."""

from __future__ import annotations

from .datatypes import CodedEnum


class ConformanceProfile(CodedEnum):
    """Specification identifier (BT-24); the value is the guideline URN."""

    MINIMUM = "urn:factur-x.eu:1p0:minimum"
    BASIC_WL = "urn:factur-x.eu:1p0:basicwl"
    BASIC = "urn:cen.eu:en16931:2017#compliant#urn:factur-x.eu:1p0:basic"
    EN16931 = "urn:cen.eu:en16931:2017"
    EXTENDED = "urn:cen.eu:en16931:2017#conformant#urn:factur-x.eu:1p0:extended"

    @classmethod
    def from_name(cls, name: str) -> "ConformanceProfile":
        """Resolve ``"basic"``/``"EN16931"``-style names as well as URNs."""

        key = name.strip().upper().replace("-", "_").replace(" ", "_")
        if key in cls.__members__:
            return cls[key]
        return cls(name)

    @property
    def includes_notes(self) -> bool:
        return self is not ConformanceProfile.MINIMUM

    @property
    def includes_lines(self) -> bool:
        return self not in (ConformanceProfile.MINIMUM, ConformanceProfile.BASIC_WL)

    @property
    def includes_vat_breakdown(self) -> bool:
        return self is not ConformanceProfile.MINIMUM

    @property
    def includes_header_details(self) -> bool:
        """Payee, payment means, allowances/charges, payment terms, billing period, preceding invoices."""

        return self is not ConformanceProfile.MINIMUM

    @property
    def includes_line_totals(self) -> bool:
        """MINIMUM carries only tax basis, tax, grand and due payable totals."""

        return self is not ConformanceProfile.MINIMUM
