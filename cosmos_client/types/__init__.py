"""
Type definitions for the Cosmos client
"""

from .common import Coin, DecCoin
from .tx import Msg, as_msg, TxFactory, UnsignedTx, SignedTx
from .result import (
    BroadcastResponse,
    FaucetTransferRequest,
    FaucetTransfer,
    FaucetTransferResponse,
)

__all__ = [
    "Coin",
    "DecCoin",
    "Msg",
    "as_msg",
    "TxFactory",
    "UnsignedTx",
    "SignedTx",
    "BroadcastResponse",
    "FaucetTransferRequest",
    "FaucetTransfer",
    "FaucetTransferResponse",
]
