"""
Cosmos Client - Transaction pipeline for Cosmos SDK chains

Provides:
- Address, account number and sequence resolution
- Simulation-based gas estimation with quote-then-commit broadcasting
- Inclusion wait and result classification
- Typed decoding of message results
- Optional faucet auto-funding
"""

from .client import CosmosClient
from .types import (
    Coin,
    DecCoin,
    Msg,
    TxFactory,
    UnsignedTx,
    SignedTx,
    BroadcastResponse,
    FaucetTransferRequest,
    FaucetTransfer,
    FaucetTransferResponse,
)
from .errors import (
    CosmosClientError,
    RpcError,
    AccountNotFoundError,
    InsufficientBalanceError,
    FaucetRequestError,
    BroadcastRejectedError,
    DecodeError,
    TransactionError,
    SignerError,
    ConfigurationError,
    ErrorCode,
)
from .infra.gas import Quote
from .infra.keyring import KeyStore, LocalKeyring
from .infra.address import address_prefix, with_address_prefix

__version__ = "0.1.0"

__all__ = [
    # Client
    "CosmosClient",
    "Quote",
    # Types
    "Coin",
    "DecCoin",
    "Msg",
    "TxFactory",
    "UnsignedTx",
    "SignedTx",
    "BroadcastResponse",
    "FaucetTransferRequest",
    "FaucetTransfer",
    "FaucetTransferResponse",
    # Errors
    "CosmosClientError",
    "RpcError",
    "AccountNotFoundError",
    "InsufficientBalanceError",
    "FaucetRequestError",
    "BroadcastRejectedError",
    "DecodeError",
    "TransactionError",
    "SignerError",
    "ConfigurationError",
    "ErrorCode",
    # Keys and addresses
    "KeyStore",
    "LocalKeyring",
    "address_prefix",
    "with_address_prefix",
]
