from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

Number = Union[int, float]


class AmountUnit(str, Enum):
    MINOR = "minor"  # cents; checkout sessions and payments
    MAJOR = "major"  # decimal units; payment links


@dataclass(frozen=True)
class Money:
    value: Number
    currency: str
    unit: AmountUnit

    @classmethod
    def minor(cls, value: Number, currency: str) -> "Money":
        return cls(value=value, currency=currency, unit=AmountUnit.MINOR)

    @classmethod
    def major(cls, value: Number, currency: str) -> "Money":
        return cls(value=value, currency=currency, unit=AmountUnit.MAJOR)

    def to_major(self) -> "Money":
        if self.unit is AmountUnit.MAJOR:
            return self
        return Money.major(self.value / 100, self.currency)

    def as_payload(self) -> Dict[str, Any]:
        return {"value": self.value, "currency": self.currency}
