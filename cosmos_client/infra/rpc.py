"""
RPC Client for Tendermint/CometBFT nodes

Provides unified JSON-RPC interface with:
- Multiple endpoint fallback
- Retry logic
- Rate limit handling
- Request timeout management
- ABCI queries against the Cosmos SDK gRPC services (auth, bank, tx)
"""

from __future__ import annotations

import base64
import logging
import time
import threading
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import httpx
from google.protobuf.message import DecodeError as ProtoDecodeError

from cosmpy.protos.cosmos.auth.v1beta1.auth_pb2 import BaseAccount
from cosmpy.protos.cosmos.auth.v1beta1.query_pb2 import QueryAccountRequest, QueryAccountResponse
from cosmpy.protos.cosmos.bank.v1beta1.query_pb2 import QueryAllBalancesRequest, QueryAllBalancesResponse
from cosmpy.protos.cosmos.base.query.v1beta1.pagination_pb2 import PageRequest
from cosmpy.protos.cosmos.tx.v1beta1.service_pb2 import SimulateRequest, SimulateResponse

from ..errors import RpcError, ConfigurationError
from ..config import config as global_config
from ..types import Coin

logger = logging.getLogger(__name__)

ACCOUNT_QUERY_PATH = "/cosmos.auth.v1beta1.Query/Account"
ALL_BALANCES_QUERY_PATH = "/cosmos.bank.v1beta1.Query/AllBalances"
SIMULATE_QUERY_PATH = "/cosmos.tx.v1beta1.Service/Simulate"


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global
    config (cosmos_client.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds


class RpcClient:
    """
    Tendermint JSON-RPC client

    Supports:
    - Multiple RPC endpoints with automatic fallback
    - Retry logic for transient failures
    - Rate limit handling with backoff
    - Configurable timeouts

    Usage:
        rpc = RpcClient("http://localhost:26657")

        chain_id = rpc.chain_id()
        account = rpc.account("cosmos1...")
        gas_used = rpc.simulate(tx_bytes)
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback)
            config: RPC configuration options
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        if not self._endpoints:
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    def call(
        self,
        method: str,
        params: Union[List[Any], Dict[str, Any]],
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters (positional list or named dict)
            timeout: Optional timeout override
            max_retries: Optional retry override for this call

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        attempts = max_retries if max_retries is not None else self._config.max_retries
        attempts = max(attempts, 1)

        last_error: Optional[Exception] = None
        endpoints_tried = 0
        max_endpoints = len(self._endpoints)

        while endpoints_tried < max_endpoints:
            for attempt in range(attempts):
                timeout_val = timeout or self._config.timeout_seconds
                try:
                    response = client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        time.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    result = response.json()

                    if "error" in result:
                        error = result["error"]
                        error_msg = error.get("message", str(error))
                        error_data = error.get("data")
                        if error_data:
                            error_msg = f"{error_msg}: {error_data}"
                        rpc_error = RpcError(
                            f"RPC error: {error_msg}",
                            endpoint=self.endpoint,
                        )
                        # Preserve RPC error code in details for debugging
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error_data
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                except RpcError:
                    raise

                except ValueError as e:
                    # Body was not JSON
                    raise RpcError.invalid_response(self.endpoint, str(e))

                if attempt < attempts - 1:
                    time.sleep(self._config.retry_delay_seconds * (attempt + 1))

            # All retries failed, try next endpoint
            self._rotate_endpoint()
            endpoints_tried += 1

        raise last_error or RpcError("All RPC endpoints failed")

    def status(self) -> Dict[str, Any]:
        """Get node status (node info, sync info, validator info)"""
        return self.call("status", {})

    def chain_id(self) -> str:
        """Get the network (chain id) the node belongs to"""
        status = self.status()
        try:
            return status["node_info"]["network"]
        except (KeyError, TypeError):
            raise RpcError.invalid_response(self.endpoint, "status carries no node_info.network")

    def abci_query(self, path: str, data: bytes) -> bytes:
        """
        Run an ABCI query against the application

        Args:
            path: gRPC method path, e.g. "/cosmos.auth.v1beta1.Query/Account"
            data: Protobuf-encoded request

        Returns:
            Protobuf-encoded response value

        Raises:
            RpcError: On transport failure or non-zero query code
        """
        result = self.call(
            "abci_query",
            {"path": path, "data": data.hex(), "prove": False},
        )
        response = (result or {}).get("response")
        if response is None:
            raise RpcError.invalid_response(self.endpoint, f"abci_query {path} returned no response")

        query_code = int(response.get("code") or 0)
        if query_code != 0:
            raise RpcError.query_failed(path, query_code, response.get("log", ""), endpoint=self.endpoint)

        value = response.get("value")
        return base64.b64decode(value) if value else b""

    def account(self, address: str) -> BaseAccount:
        """
        Get account number and sequence for an address

        Raises:
            RpcError: If the query fails (log contains "not found" for unknown accounts)
        """
        raw = self.abci_query(
            ACCOUNT_QUERY_PATH,
            QueryAccountRequest(address=address).SerializeToString(),
        )
        try:
            response = QueryAccountResponse.FromString(raw)
        except ProtoDecodeError as e:
            raise RpcError.invalid_response(self.endpoint, f"cannot parse account response: {e}")

        account = BaseAccount()
        if not response.account.Unpack(account):
            raise RpcError.invalid_response(
                self.endpoint,
                f"unsupported account type {response.account.type_url}",
            )
        return account

    def all_balances(self, address: str) -> List[Coin]:
        """Get every balance of an address, following pagination"""
        balances: List[Coin] = []
        next_key = b""

        while True:
            request = QueryAllBalancesRequest(address=address)
            if next_key:
                request.pagination.CopyFrom(PageRequest(key=next_key))
            raw = self.abci_query(ALL_BALANCES_QUERY_PATH, request.SerializeToString())
            try:
                response = QueryAllBalancesResponse.FromString(raw)
            except ProtoDecodeError as e:
                raise RpcError.invalid_response(self.endpoint, f"cannot parse balances response: {e}")

            balances.extend(Coin(denom=c.denom, amount=int(c.amount)) for c in response.balances)

            next_key = response.pagination.next_key
            if not next_key:
                return balances

    def simulate(self, tx_bytes: bytes) -> int:
        """
        Simulate transaction execution without committing it

        Args:
            tx_bytes: Encoded transaction (signature may be empty)

        Returns:
            Gas used by the simulation
        """
        raw = self.abci_query(
            SIMULATE_QUERY_PATH,
            SimulateRequest(tx_bytes=tx_bytes).SerializeToString(),
        )
        try:
            response = SimulateResponse.FromString(raw)
        except ProtoDecodeError as e:
            raise RpcError.invalid_response(self.endpoint, f"cannot parse simulate response: {e}")
        return int(response.gas_info.gas_used)

    def broadcast_tx_sync(self, tx_bytes: bytes) -> Dict[str, Any]:
        """
        Submit a signed transaction and wait for CheckTx

        Not retried: a resubmission after an ambiguous transport failure is
        left to the caller.

        Returns:
            Dict with code, log, codespace, data and hash
        """
        tx_data = base64.b64encode(tx_bytes).decode("ascii")
        return self.call("broadcast_tx_sync", {"tx": tx_data}, max_retries=1)

    def tx(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """
        Look up an included transaction by hash

        Args:
            tx_hash: Hex transaction hash

        Returns:
            Dict with hash, height and tx_result, or None if not (yet) included
        """
        hash_data = base64.b64encode(bytes.fromhex(tx_hash)).decode("ascii")
        try:
            return self.call("tx", {"hash": hash_data, "prove": False})
        except RpcError as e:
            if "not found" in str(e).lower():
                return None
            raise

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
