"""
Error definitions for the Cosmos client
"""

from .exceptions import (
    ErrorCode,
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
)

__all__ = [
    "ErrorCode",
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
]
