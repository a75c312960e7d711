"""
Result type definitions for broadcasts and faucet transfers
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class BroadcastResponse:
    """
    Result of a broadcast transaction

    code == 0 means the ledger accepted and executed the transaction; any
    other value is a chain-level rejection, not a transport failure.

    Attributes:
        code: Execution status code
        raw_log: Raw execution log
        raw_data: Encoded message results (TxMsgData)
        tx_hash: Transaction hash (hex, upper case)
        height: Block height of inclusion (0 if not included)
        gas_wanted: Gas limit declared by the transaction
        gas_used: Gas consumed by execution
        codespace: Module namespace of a non-zero code
    """
    code: int
    raw_log: str = ""
    raw_data: bytes = b""
    tx_hash: str = ""
    height: int = 0
    gas_wanted: int = 0
    gas_used: int = 0
    codespace: str = ""

    @property
    def is_success(self) -> bool:
        return self.code == 0

    def decode(self, message_type):
        """
        Decode the first message result into message_type

        Args:
            message_type: Protobuf message class (or instance to fill)

        Returns:
            Populated message instance
        """
        from ..infra.decoder import decode_response
        return decode_response(self, message_type)

    def __str__(self) -> str:
        hash_display = f"{self.tx_hash[:16]}..." if self.tx_hash else "no hash"
        if self.is_success:
            return f"BroadcastResponse(OK, {hash_display}, height={self.height})"
        return f"BroadcastResponse(code={self.code}, {hash_display}, log={self.raw_log!r})"


@dataclass
class FaucetTransferRequest:
    """
    Faucet transfer request

    Attributes:
        account_address: Recipient address
        denom: Optional denomination to request
        amount: Optional amount to request (needs denom)
    """
    account_address: str
    denom: Optional[str] = None
    amount: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"address": self.account_address}
        if self.denom:
            coin = f"{self.amount}{self.denom}" if self.amount else self.denom
            body["coins"] = [coin]
        return body


@dataclass
class FaucetTransfer:
    """Single transfer reported by the faucet"""
    recipient: str = ""
    coin: str = ""
    status: str = ""
    error: str = ""


@dataclass
class FaucetTransferResponse:
    """
    Faucet transfer response

    Successful only if the top-level error and every transfer error are empty.
    """
    error: str = ""
    transfers: List[FaucetTransfer] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.error and all(not t.error for t in self.transfers)

    @classmethod
    def from_json(cls, data: Dict[str, Any], recipient: str = "") -> "FaucetTransferResponse":
        transfers = [
            FaucetTransfer(
                recipient=item.get("recipient") or recipient,
                coin=item.get("coin", ""),
                status=item.get("status", ""),
                error=item.get("error") or "",
            )
            for item in data.get("transfers") or []
        ]
        return cls(error=data.get("error") or "", transfers=transfers)
