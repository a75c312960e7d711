"""
Common type definitions
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ..errors import ConfigurationError

_DENOM = r"[a-zA-Z][a-zA-Z0-9/:._-]{1,127}"
_COIN_RE = re.compile(rf"^(\d+)({_DENOM})$")
_DEC_COIN_RE = re.compile(rf"^(\d+(?:\.\d+)?)({_DENOM})$")


@dataclass(frozen=True)
class Coin:
    """
    Ledger currency amount

    Attributes:
        denom: Denomination (e.g., "token", "uatom")
        amount: Integer amount in base units
    """
    denom: str
    amount: int

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Coin amount must not be negative: {self.amount}")

    @classmethod
    def parse(cls, value: str) -> "Coin":
        """Parse "<amount><denom>", e.g. "100token" """
        match = _COIN_RE.match(value.strip())
        if not match:
            raise ConfigurationError.invalid("coin", f"Cannot parse coin: {value!r}")
        return cls(denom=match.group(2), amount=int(match.group(1)))

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


@dataclass(frozen=True)
class DecCoin:
    """Decimal amount of a denomination, used for gas prices"""
    denom: str
    amount: Decimal

    @classmethod
    def parse(cls, value: str) -> "DecCoin":
        """Parse "<decimal><denom>", e.g. "0.025token" """
        match = _DEC_COIN_RE.match(value.strip())
        if not match:
            raise ConfigurationError.invalid("gas_prices", f"Cannot parse decimal coin: {value!r}")
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation as e:
            raise ConfigurationError.invalid("gas_prices", str(e))
        return cls(denom=match.group(2), amount=amount)

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"
