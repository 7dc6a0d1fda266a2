"""
Money - fixed-point currency amounts.

Design principles:
- Backed by decimal.Decimal, never binary floats
- Full precision during arithmetic, rounded to cents only when stored or shown
- Signed values are allowed (wallet deltas); callers validate sign on ingress
- Proportional splits never lose the remainder
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import total_ordering
from typing import Any, Iterable, List, Sequence

from bson import Decimal128

from hoa_billing.core.exceptions import ValidationError

CENT = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    elif isinstance(value, bool):
        raise ValidationError(f"Invalid monetary value: {value!r}")
    elif isinstance(value, float):
        # Go through the shortest repr so 0.1 stays 0.1
        value = repr(value)

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid monetary value: {value!r}")

    if not result.is_finite():
        raise ValidationError(f"Monetary value must be finite: {value!r}")
    return result


@total_ordering
class Money:
    """Immutable decimal amount of currency."""

    __slots__ = ("_amount",)

    def __init__(self, value: Any = 0):
        object.__setattr__(self, "_amount", _to_decimal(value))

    def __setattr__(self, name, value):
        raise AttributeError("Money is immutable")

    def __reduce__(self):
        return (Money, (str(self._amount),))

    def __copy__(self) -> "Money":
        return self

    def __deepcopy__(self, memo) -> "Money":
        return self

    @property
    def amount(self) -> Decimal:
        return self._amount

    # ----- arithmetic -----

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._amount + other._amount)

    def __radd__(self, other):
        # Lets sum() start from the integer 0
        if other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._amount - other._amount)

    def __neg__(self) -> "Money":
        return Money(-self._amount)

    def __mul__(self, factor) -> "Money":
        if isinstance(factor, (Money, float, bool)):
            return NotImplemented
        if isinstance(factor, (int, Decimal)):
            return Money(self._amount * factor)
        return NotImplemented

    __rmul__ = __mul__

    # ----- comparison -----

    def __eq__(self, other) -> bool:
        if isinstance(other, Money):
            return self._amount == other._amount
        if isinstance(other, (int, Decimal)) and not isinstance(other, bool):
            return self._amount == other
        return NotImplemented

    def __lt__(self, other) -> bool:
        if isinstance(other, Money):
            return self._amount < other._amount
        if isinstance(other, (int, Decimal)) and not isinstance(other, bool):
            return self._amount < other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._amount)

    def is_zero(self) -> bool:
        return self._amount == 0

    def is_positive(self) -> bool:
        return self._amount > 0

    def is_negative(self) -> bool:
        return self._amount < 0

    def is_whole_cents(self) -> bool:
        return self._amount == self._amount.quantize(CENT)

    # ----- boundaries -----

    def quantize(self) -> "Money":
        """Round to cents (half-up)."""
        return Money(self._amount.quantize(CENT, rounding=ROUND_HALF_UP))

    def as_string(self) -> str:
        return str(self.quantize()._amount)

    def to_decimal128(self) -> Decimal128:
        return Decimal128(self.quantize()._amount)

    def __str__(self) -> str:
        return self.as_string()

    def __repr__(self) -> str:
        return f"Money('{self._amount}')"

    # ----- pydantic -----

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(
            cls.validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                cls._serialize, info_arg=True
            ),
        )

    @staticmethod
    def _serialize(value: "Money", info: Any):
        # Stored documents keep Decimal128, JSON gets decimal strings
        if info.mode == "json":
            return value.as_string()
        return value.to_decimal128()

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: Any, handler: Any):
        return {"type": "string", "format": "decimal", "example": "0.00"}

    @classmethod
    def validate(cls, value: Any) -> "Money":
        try:
            return value if isinstance(value, Money) else cls(value)
        except ValidationError as e:
            raise ValueError(e.message)

    # ----- helpers -----

    @classmethod
    def sum(cls, values: Iterable["Money"]) -> "Money":
        total = Decimal(0)
        for value in values:
            total += value.amount
        return cls(total)

    def split_proportionally(self, weights: Sequence["Money"]) -> List["Money"]:
        """
        Divide this amount among weights, in order.

        Every part but the last is rounded to cents; the last part absorbs
        the remainder so the parts always add up to exactly this amount.
        Weights are used as-is, negative weights produce negative parts.
        """
        if not weights:
            raise ValidationError("Cannot split across zero weights")

        total = Money.sum(weights)
        if total.is_zero():
            raise ValidationError("Cannot split across weights that sum to zero")

        parts: List[Money] = []
        allocated = Decimal(0)
        for weight in weights[:-1]:
            part = Money(self._amount * weight.amount / total.amount).quantize()
            parts.append(part)
            allocated += part.amount

        parts.append(Money(self._amount - allocated))
        return parts


ZERO = Money(0)
