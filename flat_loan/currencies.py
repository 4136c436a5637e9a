"""Built-in currency display metadata used by the command line and web fronts."""

from __future__ import annotations

from typing import Dict, Optional

from .data_models import CurrencyMetadata
from .money import MonetaryCurrency

CURRENCY_OPTIONS: Dict[str, CurrencyMetadata] = {
    "USD": CurrencyMetadata("USD", "US Dollar", 2, "$", "currency.USD"),
    "EUR": CurrencyMetadata("EUR", "Euro", 2, "€", "currency.EUR"),
    "GBP": CurrencyMetadata("GBP", "Pound Sterling", 2, "£", "currency.GBP"),
    "PLN": CurrencyMetadata("PLN", "Polish Zloty", 2, "zł", "currency.PLN"),
    "KES": CurrencyMetadata("KES", "Kenyan Shilling", 2, "KSh", "currency.KES"),
    "JPY": CurrencyMetadata("JPY", "Japanese Yen", 0, "¥", "currency.JPY"),
    "BHD": CurrencyMetadata("BHD", "Bahraini Dinar", 3, "BD", "currency.BHD"),
}


def lookup_currency(code: str) -> CurrencyMetadata:
    """Return the metadata for ``code``; raise ``ValueError`` if unknown."""
    try:
        return CURRENCY_OPTIONS[code.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown currency code: {code}") from None


def monetary_currency(metadata: CurrencyMetadata, digits: Optional[int] = None) -> MonetaryCurrency:
    """The arithmetic currency for ``metadata``, optionally with another scale."""
    decimal_places = metadata.decimal_places if digits is None else digits
    return MonetaryCurrency(metadata.code, decimal_places)
