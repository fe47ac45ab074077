"""Weight unit conversion and money formatting."""

from enum import Enum


class WeightUnit(str, Enum):
    KG = "kg"
    LBS = "lbs"


LBS_TO_KG = 0.453592

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "KES": "KSh",
}


def to_kg(value: float, unit: WeightUnit) -> float:
    """Convert a weight in the given unit to kilograms."""
    if unit == WeightUnit.LBS:
        return round(value * LBS_TO_KG, 2)
    return value


def format_currency(amount: float, currency: str = "NGN") -> str:
    """Format an amount with its currency symbol, e.g. ₦1,250.50."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
