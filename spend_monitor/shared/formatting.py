"""
Display helpers shared by driver lines and the report.
"""

from decimal import Decimal, ROUND_HALF_UP

_MILLION = Decimal("1000000")
_THOUSAND = Decimal("1000")


def _fixed(value: Decimal, places: str) -> str:
    return str(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def format_dollars(amount: Decimal) -> str:
    """
    Compact dollar figure: ``$1.2M``, ``$425K``, ``$0.5K``.

    Amounts under $1K keep one decimal in thousands so small customers
    stay readable next to large ones.
    """
    amount = Decimal(amount)
    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)
    if magnitude >= _MILLION:
        return f"{sign}${_fixed(magnitude / _MILLION, '0.1')}M"
    if magnitude >= _THOUSAND:
        return f"{sign}${_fixed(magnitude / _THOUSAND, '1')}K"
    return f"{sign}${_fixed(magnitude / _THOUSAND, '0.1')}K"


def format_signed_dollars(amount: Decimal) -> str:
    """Dollar figure with an explicit sign: ``+$40K`` / ``-$55K``."""
    text = format_dollars(amount)
    return text if text.startswith("-") else f"+{text}"


def format_signed_pct(pct: int) -> str:
    """Whole percent with an explicit plus for non-negative values."""
    return f"+{pct}%" if pct >= 0 else f"{pct}%"
