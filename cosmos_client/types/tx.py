"""
Transaction type definitions
"""

import math
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .common import Coin, DecCoin


@dataclass(frozen=True)
class Msg:
    """
    Opaque ledger instruction

    The pipeline never inspects message semantics; it only carries the
    type tag and the encoded payload into the transaction body.

    Attributes:
        type_url: Type tag, e.g. "/cosmos.bank.v1beta1.MsgSend"
        value: Protobuf-encoded message payload
    """
    type_url: str
    value: bytes

    @classmethod
    def from_proto(cls, message) -> "Msg":
        """Wrap a protobuf message"""
        return cls(
            type_url=f"/{message.DESCRIPTOR.full_name}",
            value=message.SerializeToString(),
        )


def as_msg(message) -> Msg:
    """Accept either a Msg or a protobuf message"""
    if isinstance(message, Msg):
        return message
    return Msg.from_proto(message)


@dataclass(frozen=True)
class TxFactory:
    """
    Per-client transaction parameters

    account_number and sequence use None for "unset" so that a legitimate
    zero is never confused with a value that still has to be queried.
    Every step works on a copy (with_* helpers); the client's own factory
    is never mutated.
    """
    chain_id: str
    account_number: Optional[int] = None
    sequence: Optional[int] = None
    gas: Optional[int] = None
    gas_adjustment: float = 1.0
    sign_mode: str = "direct"
    memo: str = ""
    fees: Tuple[Coin, ...] = ()
    gas_price: Optional[DecCoin] = None

    def with_account_number(self, account_number: int) -> "TxFactory":
        return replace(self, account_number=account_number)

    def with_sequence(self, sequence: int) -> "TxFactory":
        return replace(self, sequence=sequence)

    def with_gas(self, gas: int) -> "TxFactory":
        return replace(self, gas=gas)

    def with_memo(self, memo: str) -> "TxFactory":
        return replace(self, memo=memo)

    def with_fees(self, *fees: Coin) -> "TxFactory":
        return replace(self, fees=tuple(fees))

    def with_unset_as_zero(self) -> "TxFactory":
        """Treat unresolved account number and sequence as 0"""
        return replace(
            self,
            account_number=self.account_number or 0,
            sequence=self.sequence or 0,
        )

    @property
    def is_resolved(self) -> bool:
        return self.account_number is not None and self.sequence is not None

    def missing_for_signing(self) -> Optional[str]:
        """Name of the first field that must be set before signing, if any"""
        for name in ("account_number", "sequence", "gas"):
            if getattr(self, name) is None:
                return name
        return None

    def fee(self) -> Tuple[Coin, ...]:
        """Fee coins: explicit fees win, otherwise gas * gas price"""
        if self.fees:
            return self.fees
        if self.gas_price is not None and self.gas:
            amount = math.ceil(self.gas_price.amount * self.gas)
            return (Coin(denom=self.gas_price.denom, amount=amount),)
        return ()


@dataclass(frozen=True)
class UnsignedTx:
    """
    Encoded body plus everything the signer info and SignDoc need

    Pure data: the auth info is only assembled at signing time, once the
    signer's public key is known.
    """
    body_bytes: bytes
    chain_id: str
    account_number: int
    sequence: int
    gas: int
    fee: Tuple[Coin, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SignedTx:
    """
    Transaction carrying one signature bound to one signer

    Single use: broadcasting again requires rebuilding from a fresh sequence.
    """
    body_bytes: bytes
    auth_info_bytes: bytes
    signature: bytes
    signer_address: str
    gas: int
    sequence: int
    fee: Tuple[Coin, ...] = field(default_factory=tuple)
