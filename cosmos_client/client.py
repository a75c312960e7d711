"""
CosmosClient - Unified entry point for transaction submission

Turns messages into a signed, gas-provisioned transaction, submits it to a
Tendermint node and waits for inclusion, optionally topping up the signer
through a faucet first.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Union

from .config import config as global_config
from .errors import ConfigurationError
from .infra import (
    Account,
    AccountRetriever,
    Broadcaster,
    CorrelationContext,
    FaucetClient,
    FaucetFunder,
    FaucetFunderConfig,
    GasEstimator,
    KeyStore,
    Quote,
    RpcClient,
    RpcClientConfig,
    SequenceResolver,
    TxBuilder,
    create_keystore,
)
from .infra.address import address_prefix as use_address_prefix
from .infra.retry import log_with_correlation
from .types import BroadcastResponse, Coin, DecCoin, TxFactory

logger = logging.getLogger(__name__)


class CosmosClient:
    """
    Cosmos SDK chain client

    Pipeline per broadcast:
        faucet (optional) -> [address, sequence, gas] -> Quote
        -> quote.commit(): [build, sign] -> broadcast -> wait for inclusion

    Bracketed steps run under the process-wide address lock.

    Usage:
        client = CosmosClient(node_address="http://localhost:26657")

        # Quote, inspect, commit
        quote = client.broadcast_tx_with_provision("alice", msg)
        print(quote.gas, quote.fee)
        response = quote.commit(timeout=30)

        # Or in one step
        response = client.broadcast_tx("alice", msg)
        result = response.decode(MsgSendResponse)
    """

    def __init__(
        self,
        node_address: Optional[Union[str, List[str]]] = None,
        address_prefix: Optional[str] = None,
        home: Optional[str] = None,
        keyring_backend: Optional[str] = None,
        keyring_service_name: Optional[str] = None,
        use_faucet: Optional[bool] = None,
        faucet_address: Optional[str] = None,
        faucet_denom: Optional[str] = None,
        faucet_min_amount: Optional[int] = None,
        keystore: Optional[KeyStore] = None,
        rpc: Optional[RpcClient] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_factory: Optional[TxFactory] = None,
    ):
        """
        Initialize CosmosClient

        Args:
            node_address: Node RPC URL or list of URLs for fallback
            address_prefix: Bech32 account prefix (e.g. "cosmos")
            home: Data directory (defaults to ~/.<chain_id>)
            keyring_backend: "memory" or "test"
            keyring_service_name: Key namespace inside the keyring
            use_faucet: Top up signers through the faucet before broadcasting
            faucet_address: Faucet URL
            faucet_denom: Denom requested from the faucet
            faucet_min_amount: Balance below which the faucet is used
            keystore: Custom key store (skips keyring creation)
            rpc: Custom RPC client (skips node_address)
            rpc_config: Optional RPC configuration
            tx_factory: Default transaction factory (defaults from TxConfig)
        """
        self._rpc = rpc or RpcClient(node_address or global_config.node.address, config=rpc_config)
        self._address_prefix = address_prefix or global_config.node.address_prefix
        if not self._address_prefix:
            raise ConfigurationError.missing("address prefix")

        self._chain_id = self._rpc.chain_id()

        self._home = home or global_config.keyring.home or os.path.join(
            os.path.expanduser("~"), f".{self._chain_id}"
        )
        self._keystore = keystore or create_keystore(
            backend=keyring_backend,
            home=self._home,
            service_name=keyring_service_name,
        )

        self._factory = tx_factory or self._default_factory()

        self._builder = TxBuilder(self._keystore)
        self._broadcaster = Broadcaster(self._rpc)
        self._estimator = GasEstimator(self._rpc, self._builder, self._broadcaster)
        self._retriever = AccountRetriever(self._rpc)
        self._resolver = SequenceResolver(self._retriever)

        if use_faucet is None:
            use_faucet = global_config.faucet.enabled
        self._faucet: Optional[FaucetFunder] = None
        if use_faucet:
            self._faucet = FaucetFunder(
                self._rpc,
                FaucetClient(faucet_address or global_config.faucet.address),
                FaucetFunderConfig(denom=faucet_denom, min_amount=faucet_min_amount),
            )

        logger.info(f"Connected to chain {self._chain_id} at {self._rpc.endpoint}")

    def _default_factory(self) -> TxFactory:
        tx = global_config.tx
        gas_price = DecCoin.parse(tx.gas_prices) if tx.gas_prices else None
        return TxFactory(
            chain_id=self._chain_id,
            gas=tx.gas_limit,
            gas_adjustment=tx.gas_adjustment,
            sign_mode=tx.sign_mode,
            memo=tx.memo,
            gas_price=gas_price,
        )

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def keystore(self) -> KeyStore:
        """Access to key store"""
        return self._keystore

    @property
    def chain_id(self) -> str:
        return self._chain_id

    @property
    def home(self) -> str:
        return self._home

    @property
    def address_prefix(self) -> str:
        return self._address_prefix

    @property
    def factory(self) -> TxFactory:
        """Default transaction factory (never mutated by broadcasts)"""
        return self._factory

    @property
    def faucet(self) -> Optional[FaucetFunder]:
        return self._faucet

    def account(self, name: str) -> Account:
        """Get key store account by name"""
        return self._keystore.get(name)

    def address(self, name: str) -> str:
        """Bech32 address of a key under this client's prefix"""
        return self._keystore.address(name, self._address_prefix)

    def balances(self, name: str) -> List[Coin]:
        """All balances of a key's account"""
        return self._rpc.all_balances(self.address(name))

    def _ensure_funded(self, name: str) -> None:
        if self._faucet is None:
            return
        # The faucet wait runs outside the address lock
        self._faucet.ensure_funded(self.address(name))

    def _quote(self, name: str, msgs, create_account: bool) -> Quote:
        self._ensure_funded(name)

        with use_address_prefix(self._address_prefix):
            address = self._keystore.address(name, self._address_prefix)
            public_key = self._keystore.public_key(name)

            if create_account:
                factory = self._factory.with_unset_as_zero()
            else:
                factory = self._resolver.resolve(self._factory, address)

            quote = self._estimator.quote(
                factory,
                msgs,
                signer_name=name,
                signer_address=address,
                public_key=public_key,
                prefix=self._address_prefix,
            )

        log_with_correlation(logging.INFO, f"Quoted {quote}", "broadcast")
        return quote

    def broadcast_tx_with_provision(self, name: str, *msgs) -> Quote:
        """
        Prepare a transaction and return its quote without broadcasting

        Resolves the signer's address, account number and sequence and
        estimates gas. Nothing is signed or sent until quote.commit().

        Args:
            name: Signer key name
            *msgs: Msg instances or protobuf messages

        Returns:
            Quote exposing gas and fee, committed at most once

        Raises:
            FaucetRequestError: Faucet refused or failed the transfer
            InsufficientBalanceError: Faucet funds did not arrive in time
            AccountNotFoundError: Signer account unknown to the ledger
            TransactionError: Simulation failed
            RpcError: Node unreachable
        """
        with CorrelationContext("broadcast"):
            return self._quote(name, msgs, create_account=False)

    def broadcast_tx_with_provision_create_account(self, name: str, *msgs) -> Quote:
        """
        Prepare a transaction for an account the ledger may not know yet

        Account number and sequence are not queried; unset values become 0.
        """
        with CorrelationContext("broadcast"):
            return self._quote(name, msgs, create_account=True)

    def broadcast_tx(self, name: str, *msgs) -> BroadcastResponse:
        """
        Quote and commit in one step

        Returns:
            BroadcastResponse with code 0

        Raises:
            BroadcastRejectedError: Non-zero result code
            TransactionError: Simulation failure or inclusion timeout
        """
        with CorrelationContext("broadcast"):
            return self._quote(name, msgs, create_account=False).commit()

    def broadcast_tx_create_account(self, name: str, *msgs) -> BroadcastResponse:
        """Quote and commit for an account the ledger may not know yet"""
        with CorrelationContext("broadcast"):
            return self._quote(name, msgs, create_account=True).commit()

    def close(self):
        """Close client connections and release resources"""
        if self._faucet is not None:
            self._faucet.close()
        self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return (
            f"CosmosClient(chain_id={self._chain_id}, endpoint={self._rpc.endpoint}, "
            f"prefix={self._address_prefix})"
        )
