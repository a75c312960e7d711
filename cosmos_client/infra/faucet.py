"""
Faucet auto-funding

Before a transaction is built, make sure the signer holds at least the
configured minimum of the faucet denom:

    CheckBalance -> sufficient: done
                 -> insufficient: RequestFunds (once) -> PollBalance
    PollBalance  -> sufficient: done
                 -> deadline elapsed: InsufficientBalanceError
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import httpx

from .rpc import RpcClient
from .retry import PollOutcome, log_with_correlation, poll_until
from ..config import config as global_config
from ..errors import FaucetRequestError, InsufficientBalanceError, RpcError
from ..types import FaucetTransferRequest, FaucetTransferResponse

logger = logging.getLogger(__name__)


class FaucetClient:
    """
    HTTP client for a token faucet

    Usage:
        faucet = FaucetClient("http://localhost:4500")
        response = faucet.transfer(FaucetTransferRequest(account_address="cosmos1..."))
    """

    def __init__(self, address: str, timeout: Optional[float] = None):
        self._address = address
        self._timeout = timeout if timeout is not None else global_config.faucet.timeout
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    @property
    def address(self) -> str:
        return self._address

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._timeout,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def transfer(self, request: FaucetTransferRequest) -> FaucetTransferResponse:
        """
        Request tokens for an account

        Raises:
            FaucetRequestError: Faucet unreachable or answered with a non-JSON body
        """
        try:
            response = self._get_client().post(self._address, json=request.to_json())
        except httpx.HTTPError as e:
            raise FaucetRequestError.unavailable(self._address, e)

        try:
            data = response.json()
        except ValueError as e:
            if response.is_error:
                raise FaucetRequestError.unavailable(
                    self._address,
                    httpx.HTTPStatusError(
                        f"HTTP error {response.status_code}",
                        request=response.request,
                        response=response,
                    ),
                )
            raise FaucetRequestError.unavailable(self._address, e)

        # Error responses still carry a TransferResponse body
        return FaucetTransferResponse.from_json(data or {}, recipient=request.account_address)

    def close(self):
        if self._client:
            self._client.close()
            self._client = None


@dataclass
class FaucetFunderConfig:
    """
    Faucet funder runtime configuration

    Pulls unset values from the global config (cosmos_client.config.FaucetConfig).
    """
    denom: str = None
    min_amount: int = None
    poll_interval: float = None
    ensure_timeout: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.denom is None:
            self.denom = global_config.faucet.denom
        if self.min_amount is None:
            self.min_amount = global_config.faucet.min_amount
        if self.poll_interval is None:
            self.poll_interval = global_config.faucet.poll_interval
        if self.ensure_timeout is None:
            self.ensure_timeout = global_config.faucet.ensure_timeout


class FaucetFunder:
    """
    Pre-flight funding routine

    Only the balance check is retried; the faucet request itself is sent
    once and any error it reports is terminal.
    """

    def __init__(
        self,
        rpc: RpcClient,
        faucet: FaucetClient,
        config: Optional[FaucetFunderConfig] = None,
    ):
        self._rpc = rpc
        self._faucet = faucet
        self._config = config or FaucetFunderConfig()

    @property
    def config(self) -> FaucetFunderConfig:
        return self._config

    def check_balance(self, address: str) -> bool:
        """True if address holds at least min_amount of the faucet denom"""
        for coin in self._rpc.all_balances(address):
            if coin.denom == self._config.denom and coin.amount >= self._config.min_amount:
                return True
        return False

    def request_funds(self, address: str) -> FaucetTransferResponse:
        """
        Ask the faucet once for funds

        Raises:
            FaucetRequestError: Service- or transfer-level error
        """
        response = self._faucet.transfer(FaucetTransferRequest(account_address=address))
        if response.error:
            raise FaucetRequestError.rejected(self._faucet.address, response.error)
        for transfer in response.transfers:
            if transfer.error:
                raise FaucetRequestError.transfer_failed(self._faucet.address, transfer.error)
        return response

    def _poll_check(self, address: str) -> bool:
        try:
            return self.check_balance(address)
        except RpcError as e:
            if not e.recoverable:
                raise
            log_with_correlation(logging.WARNING, f"Balance check failed: {e}", "faucet_poll")
            return False

    def ensure_funded(self, address: str) -> None:
        """
        Make sure address is funded, requesting and awaiting faucet funds if needed

        Raises:
            FaucetRequestError: Faucet refused or failed the transfer
            InsufficientBalanceError: Funds did not arrive before the deadline
        """
        if self.check_balance(address):
            return

        log_with_correlation(
            logging.INFO,
            f"{address} holds less than {self._config.min_amount}{self._config.denom}, requesting funds",
            "faucet",
        )
        self.request_funds(address)

        outcome = poll_until(
            lambda: self._poll_check(address),
            "faucet_poll",
            interval=self._config.poll_interval,
            timeout=self._config.ensure_timeout,
        )
        if outcome != PollOutcome.SUCCEEDED:
            raise InsufficientBalanceError.funding_timeout(
                address,
                self._config.denom,
                self._config.min_amount,
                self._config.ensure_timeout,
            )
        log_with_correlation(logging.INFO, f"{address} funded", "faucet")

    def close(self):
        self._faucet.close()
