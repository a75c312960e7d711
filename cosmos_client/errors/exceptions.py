"""
Exception definitions for the Cosmos client
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for client operations

    1xxx - RPC / transport errors
    2xxx - Transaction errors
    3xxx - Account and balance errors
    4xxx - Faucet errors
    5xxx - Decode errors
    6xxx - Signer errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"
    RPC_QUERY_FAILED = "1005"

    # Transaction errors
    TX_SIMULATION_FAILED = "2001"
    TX_BROADCAST_REJECTED = "2002"
    TX_INCLUSION_TIMEOUT = "2003"
    TX_CANCELLED = "2004"
    TX_NOT_READY = "2005"
    TX_ALREADY_COMMITTED = "2006"

    # Account errors
    ACCOUNT_NOT_FOUND = "3001"
    INSUFFICIENT_BALANCE = "3002"
    FUNDING_TIMEOUT = "3003"

    # Faucet errors
    FAUCET_UNAVAILABLE = "4001"
    FAUCET_REJECTED = "4002"
    FAUCET_TRANSFER_FAILED = "4003"

    # Decode errors
    DECODE_EMPTY = "5001"
    DECODE_MALFORMED = "5002"
    DECODE_TYPE_MISMATCH = "5003"

    # Signer errors
    SIGNER_KEY_NOT_FOUND = "6001"
    SIGNER_FAILED = "6002"
    SIGNER_INVALID_KEY_NAME = "6003"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class CosmosClientError(Exception):
    """
    Base exception for all client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(CosmosClientError):
    """
    Node or transport errors - typically recoverable

    Raised when:
    - Connection to the node fails
    - Request times out
    - Rate limit is hit
    - Invalid or error response received
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to node: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "RpcError":
        return cls(
            f"Invalid RPC response: {reason}",
            ErrorCode.RPC_INVALID_RESPONSE,
            endpoint=endpoint,
        )

    @classmethod
    def query_failed(cls, path: str, query_code: int, log: str, endpoint: str = None) -> "RpcError":
        error = cls(
            f"Query {path} failed with code {query_code}: {log}",
            ErrorCode.RPC_QUERY_FAILED,
            endpoint=endpoint,
        )
        error.details.update({"path": path, "query_code": query_code, "log": log})
        return error


class AccountNotFoundError(CosmosClientError):
    """
    Signer account unknown to the ledger - fatal, never retried
    """

    def __init__(self, message: str, address: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.ACCOUNT_NOT_FOUND,
            recoverable=False,
            original_error=original_error,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def not_found(cls, address: str, error: Exception = None) -> "AccountNotFoundError":
        return cls(
            f"Account {address} not found on chain",
            address=address,
            original_error=error,
        )


class InsufficientBalanceError(CosmosClientError):
    """
    Insufficient balance - terminal once funding attempts are exhausted

    Raised when:
    - The faucet transfer never showed up before the deadline
    - Broadcast failed in a way that points at a missing or unfunded account
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        denom: Optional[str] = None,
        required: Optional[int] = None,
        code: ErrorCode = ErrorCode.INSUFFICIENT_BALANCE,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"address": address, "denom": denom, "required": required},
        )
        self.address = address
        self.denom = denom
        self.required = required

    @classmethod
    def funding_timeout(cls, address: str, denom: str, required: int, timeout_seconds: float) -> "InsufficientBalanceError":
        return cls(
            f"Account {address} still has less than {required}{denom} after waiting {timeout_seconds}s for faucet funds",
            address=address,
            denom=denom,
            required=required,
            code=ErrorCode.FUNDING_TIMEOUT,
        )

    @classmethod
    def account_misconfigured(cls, error: Exception) -> "InsufficientBalanceError":
        return cls(
            "make sure that your account has enough balance",
            original_error=error,
        )


class FaucetRequestError(CosmosClientError):
    """
    Faucet service- or transfer-level rejection - terminal, not retried
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.FAUCET_REJECTED,
        faucet_address: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"faucet_address": faucet_address},
        )
        self.faucet_address = faucet_address

    @classmethod
    def unavailable(cls, faucet_address: str, error: Exception) -> "FaucetRequestError":
        return cls(
            f"faucet server request failed: {error}",
            ErrorCode.FAUCET_UNAVAILABLE,
            faucet_address=faucet_address,
            original_error=error,
        )

    @classmethod
    def rejected(cls, faucet_address: str, reason: str) -> "FaucetRequestError":
        return cls(
            f"cannot retrieve tokens from faucet: {reason}",
            ErrorCode.FAUCET_REJECTED,
            faucet_address=faucet_address,
        )

    @classmethod
    def transfer_failed(cls, faucet_address: str, reason: str) -> "FaucetRequestError":
        return cls(
            f"cannot retrieve tokens from faucet: {reason}",
            ErrorCode.FAUCET_TRANSFER_FAILED,
            faucet_address=faucet_address,
        )


class BroadcastRejectedError(CosmosClientError):
    """
    Chain-level rejection of a broadcast transaction (non-zero response code)

    Carries the numeric code and raw log verbatim along with the response.
    """

    def __init__(
        self,
        message: str,
        tx_code: int,
        raw_log: str,
        tx_hash: Optional[str] = None,
        codespace: Optional[str] = None,
        response=None,
    ):
        super().__init__(
            message,
            ErrorCode.TX_BROADCAST_REJECTED,
            recoverable=False,
            details={
                "tx_code": tx_code,
                "raw_log": raw_log,
                "tx_hash": tx_hash,
                "codespace": codespace,
            },
        )
        self.tx_code = tx_code
        self.raw_log = raw_log
        self.tx_hash = tx_hash
        self.codespace = codespace
        self.response = response

    @classmethod
    def from_response(cls, response) -> "BroadcastRejectedError":
        return cls(
            f"transaction rejected with '{response.code}' code: {response.raw_log}",
            tx_code=response.code,
            raw_log=response.raw_log,
            tx_hash=response.tx_hash,
            codespace=response.codespace,
            response=response,
        )


class DecodeError(CosmosClientError):
    """
    Malformed or absent message result payload
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DECODE_MALFORMED,
        original_error: Optional[Exception] = None,
        type_url: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"type_url": type_url},
        )
        self.type_url = type_url

    @classmethod
    def empty(cls) -> "DecodeError":
        return cls("Response carries no message results", ErrorCode.DECODE_EMPTY)

    @classmethod
    def malformed(cls, error: Exception) -> "DecodeError":
        return cls(
            f"Cannot parse message results: {error}",
            ErrorCode.DECODE_MALFORMED,
            original_error=error,
        )

    @classmethod
    def type_mismatch(cls, type_url: str, expected: str) -> "DecodeError":
        return cls(
            f"Message result of type {type_url} cannot be decoded into {expected}",
            ErrorCode.DECODE_TYPE_MISMATCH,
            type_url=type_url,
        )


class TransactionError(CosmosClientError):
    """
    Transaction pipeline errors

    Raised when:
    - Gas simulation fails
    - The transaction is not included before the deadline
    - The wait for inclusion is cancelled
    - A factory is not ready for signing
    - A quote is committed twice
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SIMULATION_FAILED,
        tx_hash: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash

    @classmethod
    def simulation_failed(cls, error: Exception) -> "TransactionError":
        return cls(
            f"Transaction simulation failed: {error}",
            ErrorCode.TX_SIMULATION_FAILED,
            original_error=error,
        )

    @classmethod
    def inclusion_timeout(cls, tx_hash: str, timeout_seconds: float) -> "TransactionError":
        # The tx may still land; callers can look it up by hash
        return cls(
            f"Transaction {tx_hash} not included after {timeout_seconds}s",
            ErrorCode.TX_INCLUSION_TIMEOUT,
            tx_hash=tx_hash,
            recoverable=True,
        )

    @classmethod
    def cancelled(cls, tx_hash: str) -> "TransactionError":
        return cls(
            f"Wait for inclusion of {tx_hash} was cancelled",
            ErrorCode.TX_CANCELLED,
            tx_hash=tx_hash,
        )

    @classmethod
    def not_ready(cls, missing: str) -> "TransactionError":
        return cls(
            f"Transaction factory is not ready for signing: {missing} is unset",
            ErrorCode.TX_NOT_READY,
        )

    @classmethod
    def already_committed(cls) -> "TransactionError":
        return cls(
            "Quote was already committed; request a new quote to broadcast again",
            ErrorCode.TX_ALREADY_COMMITTED,
        )


class SignerError(CosmosClientError):
    """
    Key storage and signing errors
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, code, recoverable=False, original_error=original_error)

    @classmethod
    def key_not_found(cls, name: str) -> "SignerError":
        return cls(f"Key {name!r} not found in keyring", ErrorCode.SIGNER_KEY_NOT_FOUND)

    @classmethod
    def invalid_key_name(cls, name: str) -> "SignerError":
        return cls(f"Invalid key name {name!r}", ErrorCode.SIGNER_INVALID_KEY_NAME)

    @classmethod
    def failed(cls, reason: str, error: Exception = None) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED, original_error=error)


class ConfigurationError(CosmosClientError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
