"""ISO-Referenztabellen (ISO 4217 Währungen, ISO 3166-1 Länder) via pycountry."""

from __future__ import annotations

from typing import Optional, Protocol

import pycountry


class CodeRegistry(Protocol):
    """Lookup collaborator: returns the canonical code if found, else ``None``."""

    def lookup(self, code: str) -> Optional[str]:
        ...


class Iso4217Registry:
    """ISO 4217 alphabetic currency codes (``EUR``, ``USD`` …)."""

    def lookup(self, code: str) -> Optional[str]:
        if not isinstance(code, str) or len(code) != 3 or not code.isupper():
            return None
        currency = pycountry.currencies.get(alpha_3=code)
        return currency.alpha_3 if currency is not None else None


class Iso3166Registry:
    """ISO 3166-1 alpha-2 country codes (``FR``, ``DE`` …)."""

    def lookup(self, code: str) -> Optional[str]:
        if not isinstance(code, str) or len(code) != 2 or not code.isupper():
            return None
        country = pycountry.countries.get(alpha_2=code)
        return country.alpha_2 if country is not None else None


ISO_4217 = Iso4217Registry()
ISO_3166 = Iso3166Registry()
