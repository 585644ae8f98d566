"""
Formatting helpers shared by all invoice templates (Indian locale).
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from num2words import num2words

from generators.errors import InvalidArgumentError
from generators.gst import TWO_PLACES, to_decimal

RUPEE = "₹"

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


# ─── Currency ────────────────────────────────────────────────────
def _group_indian(digits: str) -> str:
    """Group an integer digit string the Indian way: 12,34,56,789."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def fmt_inr(amount) -> str:
    """Format an amount as Indian Rupees, e.g. ``₹1,23,456.50``."""
    value = to_decimal(amount or 0, "amount").quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    return f"{sign}{RUPEE}{_group_indian(whole)}.{frac}"


def fmt_amount(amount) -> str:
    """Plain two-decimal amount without symbol or grouping (``1000.00``)."""
    value = to_decimal(amount or 0, "amount").quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return f"{value:.2f}"


def fmt_percent(rate) -> str:
    """``18`` → ``18%``, ``2.5`` → ``2.5%``."""
    if rate is None:
        return ""
    return f"{float(rate):g}%"


def fmt_quantity(qty) -> str:
    if qty is None:
        return ""
    return f"{float(qty):g}"


# ─── Dates ───────────────────────────────────────────────────────
def _parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        text = str(value).strip()
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def fmt_date(value, fallback: str = "") -> str:
    """Long Indian date, e.g. ``25 December 2024``."""
    d = _parse_date(value)
    if d is None:
        return fallback
    return f"{d.day} {MONTHS[d.month - 1]} {d.year}"


def fmt_date_short(value, fallback: str = "N/A") -> str:
    """Numeric Indian date, e.g. ``25/12/2024``."""
    d = _parse_date(value)
    if d is None:
        return fallback
    return d.strftime("%d/%m/%Y")


# ─── Amount in words ─────────────────────────────────────────────
def _spell(n: int) -> str:
    """``num2words`` cardinal without commas or "and", each word capitalised.

    ``1234`` → ``One Thousand Two Hundred Thirty-Four``.
    """
    words = num2words(n, lang="en").replace(",", "").split()
    return " ".join(
        "-".join(part.capitalize() for part in word.split("-"))
        for word in words if word != "and"
    )


def amount_in_words(amount) -> str:
    """Spell out a rupee amount.

    >>> amount_in_words(1234.50)
    'Rupees One Thousand Two Hundred Thirty-Four and Fifty Paise Only'
    >>> amount_in_words(500)
    'Rupees Five Hundred Only'
    """
    value = to_decimal(amount if amount is not None else 0, "amount")
    if value < 0:
        raise InvalidArgumentError(f"amount must not be negative, got {amount!r}")
    value = value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    rupees = int(value)
    paise = int((value - Decimal(rupees)) * 100)

    text = f"Rupees {_spell(rupees)}"
    if paise:
        text += f" and {_spell(paise)} Paise"
    return text + " Only"
