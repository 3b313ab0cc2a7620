"""
Currencies with FX data.

FX_CURRENCIES is generated offline by probing the ECB for each candidate
currency over the last 7 days; it ships with the package so that building the
currency menu never needs a network call. EUR is the pivot and always
convertible.
"""

from typing import List

from .models.market import CurrencyInfo

PIVOT_CURRENCY = CurrencyInfo("EUR", "Euro")

FX_CURRENCIES: List[CurrencyInfo] = [
    CurrencyInfo("AUD", "Australian Dollar"),
    CurrencyInfo("BGN", "Bulgarian Lev"),
    CurrencyInfo("BRL", "Brazilian Real"),
    CurrencyInfo("CAD", "Canadian Dollar"),
    CurrencyInfo("CHF", "Swiss Franc"),
    CurrencyInfo("CNY", "Chinese Yuan"),
    CurrencyInfo("CZK", "Czech Koruna"),
    CurrencyInfo("DKK", "Danish Krone"),
    CurrencyInfo("GBP", "British Pound"),
    CurrencyInfo("HKD", "Hong Kong Dollar"),
    CurrencyInfo("HUF", "Hungarian Forint"),
    CurrencyInfo("IDR", "Indonesian Rupiah"),
    CurrencyInfo("ILS", "Israeli Shekel"),
    CurrencyInfo("INR", "Indian Rupee"),
    CurrencyInfo("ISK", "Icelandic Krona"),
    CurrencyInfo("JPY", "Japanese Yen"),
    CurrencyInfo("KRW", "South Korean Won"),
    CurrencyInfo("MXN", "Mexican Peso"),
    CurrencyInfo("MYR", "Malaysian Ringgit"),
    CurrencyInfo("NOK", "Norwegian Krone"),
    CurrencyInfo("NZD", "New Zealand Dollar"),
    CurrencyInfo("PHP", "Philippine Peso"),
    CurrencyInfo("PLN", "Polish Zloty"),
    CurrencyInfo("RON", "Romanian Leu"),
    CurrencyInfo("SEK", "Swedish Krona"),
    CurrencyInfo("SGD", "Singapore Dollar"),
    CurrencyInfo("THB", "Thai Baht"),
    CurrencyInfo("TRY", "Turkish Lira"),
    CurrencyInfo("USD", "United States Dollar"),
    CurrencyInfo("ZAR", "South African Rand"),
]

_CONVERTIBLE = frozenset({c.code for c in FX_CURRENCIES} | {PIVOT_CURRENCY.code})


def list_fx_currencies() -> List[CurrencyInfo]:
    """Every selectable currency, pivot included, sorted by code."""
    return sorted(FX_CURRENCIES + [PIVOT_CURRENCY], key=lambda c: c.code)


def is_convertible(code: str) -> bool:
    """True if prices can be converted into ``code``."""
    return code.strip().upper() in _CONVERTIBLE
