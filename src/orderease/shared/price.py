"""Price value object and two-decimal rounding.

Prices persist as floats. Every arithmetic result goes through ``round2``
(decimal, half-up) before it is stored or compared, so float noise never
leaks into totals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.fields import Float

from orderease.domain import orderease
from orderease.shared.errors import ValidationFailed

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bytes | bytearray):
        value = value.decode("ascii")
    if isinstance(value, bool) or value is None:
        raise ValidationFailed(f"Invalid amount: {value!r}", field="price")
    try:
        # str() first so 0.1 becomes Decimal("0.1") and not its binary expansion
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationFailed(f"Invalid amount: {value!r}", field="price") from None


def round2(value) -> float:
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


@orderease.value_object
class Price:
    """A non-negative amount with two fractional digits."""

    amount: Float(required=True, min_value=0.0)

    @classmethod
    def of(cls, value) -> "Price":
        return cls(amount=round2(value))

    @classmethod
    def parse(cls, raw) -> "Price":
        """Decode a price from a JSON number, a numeric string or a database value.

        Accepts ints, floats, ``Decimal``, ``str`` and ``bytes``.
        """
        amount = to_decimal(raw)
        if not amount.is_finite():
            raise ValidationFailed(f"Invalid amount: {raw!r}", field="price")
        if amount < 0:
            raise ValidationFailed("Price cannot be negative", field="price")
        return cls.of(amount)

    def add(self, other) -> "Price":
        other_amount = other.amount if isinstance(other, Price) else other
        return Price.of(to_decimal(self.amount) + to_decimal(other_amount))

    def multiply(self, factor: int) -> "Price":
        return Price.of(to_decimal(self.amount) * factor)
