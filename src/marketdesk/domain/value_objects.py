# src/marketdesk/domain/value_objects.py
"""
Value objects for order placement and chat content. Immutable, validated on
construction, and raising `ValidationError` so the boundary can report them
as caller errors.
"""
from __future__ import annotations
from dataclasses import dataclass
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import ValidationError

MONEY_QUANT = Decimal("0.00000001")
MAX_MESSAGE_LENGTH = 5000

_SYMBOL_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9./:\- ]{0,31}$")


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce numbers and numeric strings to a finite Decimal."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return d


class Symbol:
    """An instrument identifier such as "BTC/USD". Kept as given, trimmed."""
    def __init__(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Symbol is required")
        v = value.strip()
        if not _SYMBOL_RE.match(v):
            raise ValidationError(f"Invalid symbol format: '{value}'")
        self.value = v

    def __repr__(self) -> str:
        return f"Symbol('{self.value}')"

    def __eq__(self, other) -> bool:
        return isinstance(other, Symbol) and self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)


@dataclass(frozen=True)
class Money:
    """A monetary amount using Decimal for financial precision."""
    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise TypeError("Money value must be a Decimal.")
        if self.value < Decimal(0):
            raise ValidationError("Amount must be non-negative")

    def quantized(self) -> Decimal:
        return self.value.quantize(MONEY_QUANT)


@dataclass(frozen=True)
class RateOfReturn:
    """Percentage applied to the stake at settlement, 0 < ror <= 100."""
    percent: Decimal

    def __post_init__(self) -> None:
        if not (Decimal(0) < self.percent <= Decimal(100)):
            raise ValidationError("ROR must be greater than 0 and at most 100")

    def apply(self, stake: Decimal) -> Decimal:
        return (stake * self.percent / Decimal(100)).quantize(MONEY_QUANT)


@dataclass(frozen=True)
class OptionTerms:
    """Validated parameters of an option order."""
    symbol: Symbol
    amount: Money
    duration_seconds: int
    ror: RateOfReturn
    entry_price: Decimal

    @classmethod
    def parse(cls, symbol: Any, amount: Any, duration_seconds: Any, ror: Any, entry_price: Any) -> "OptionTerms":
        amount_dec = to_decimal(amount, "Amount")
        if amount_dec <= 0:
            raise ValidationError("Amount must be positive")
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
            raise ValidationError("Duration must be an integer")
        if duration_seconds <= 0:
            raise ValidationError("Duration must be positive")
        price_dec = to_decimal(entry_price, "Entry price")
        if price_dec <= 0:
            raise ValidationError("Entry price must be positive")
        return cls(
            symbol=Symbol(symbol),
            amount=Money(amount_dec),
            duration_seconds=duration_seconds,
            ror=RateOfReturn(to_decimal(ror, "ROR")),
            entry_price=price_dec,
        )

    def profit(self) -> Decimal:
        return self.ror.apply(self.amount.value)


def compute_option_profit(amount: Decimal, ror: Decimal) -> Decimal:
    """profit = amount * ror / 100, quantised to the money scale."""
    return RateOfReturn(to_decimal(ror, "ROR")).apply(to_decimal(amount, "Amount"))


@dataclass(frozen=True)
class MessageContent:
    """Body and attachments of a chat message; at least one must be present."""
    body: str = ""
    image_url: Optional[str] = None
    audio_url: Optional[str] = None

    @classmethod
    def parse(cls, body: Optional[str], image_url: Optional[str] = None, audio_url: Optional[str] = None) -> "MessageContent":
        for name, value in (("message", body), ("imageUrl", image_url), ("audioUrl", audio_url)):
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")
        text = (body or "").strip()
        image = (image_url or "").strip() or None
        audio = (audio_url or "").strip() or None
        if not text and not image and not audio:
            raise ValidationError("Message, image, or audio is required")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters)")
        return cls(body=text, image_url=image, audio_url=audio)
