"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

MINOR_UNIT = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100

Numeric = Union[Decimal, int, float, str]


def round_to_minor_unit(value: Decimal) -> Decimal:
    """Round half-up to the currency's minor unit (cents)."""
    return value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary value with currency.

    Amounts are always held at minor-unit precision, rounded half-up on
    construction, so repeated recomputation never drifts.

    CRITICAL: Always use Decimal, never float!
    """
    amount: Decimal
    currency: str = "USD"

    def __post_init__(self):
        amount = self.amount
        if not isinstance(amount, Decimal):
            # str() keeps 16.99 as 16.99 instead of its binary expansion
            amount = Decimal(str(amount))
        if not amount.is_finite():
            raise ValueError(f"Money amount must be finite, got: {self.amount}")
        object.__setattr__(self, 'amount', round_to_minor_unit(amount))

        if not isinstance(self.currency, str) or len(self.currency) != 3:
            raise ValueError(
                f"Currency must be 3-letter ISO code, got: {self.currency}"
            )

    @classmethod
    def zero(cls, currency: str = "USD") -> 'Money':
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def from_minor_units(cls, minor_units: int, currency: str = "USD") -> 'Money':
        """Build Money from an integer count of minor units (cents)."""
        return cls(amount=Decimal(minor_units) / MINOR_UNITS_PER_MAJOR, currency=currency)

    def to_minor_units(self) -> int:
        """Exact integer count of minor units, used for storage."""
        return int(self.amount * MINOR_UNITS_PER_MAJOR)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def _check_currency(self, other: 'Money', operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} different currencies: {self.currency} vs {other.currency}"
            )

    def __add__(self, other: 'Money') -> 'Money':
        """Add two Money objects (must have same currency)."""
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two Money objects (must have same currency)."""
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, quantity: int) -> 'Money':
        """Multiply by an integer quantity (exact)."""
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise TypeError("Money can only be multiplied by an int; use multiply() for rates")
        return Money(amount=self.amount * quantity, currency=self.currency)

    __rmul__ = __mul__

    def __neg__(self) -> 'Money':
        return Money(amount=-self.amount, currency=self.currency)

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def multiply(self, rate: Numeric) -> 'Money':
        """Multiply by a (possibly fractional) rate, rounding half-up to the minor unit."""
        if not isinstance(rate, Decimal):
            rate = Decimal(str(rate))
        return Money(amount=self.amount * rate, currency=self.currency)

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_zero(self) -> bool:
        return self.amount == 0

    def abs(self) -> 'Money':
        return Money(amount=abs(self.amount), currency=self.currency)
