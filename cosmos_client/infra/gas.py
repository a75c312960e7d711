"""
Gas estimation and quotes

estimate() simulates the transaction on the node and pads the result:

    gas = int(gas_used * gas_adjustment) + margin

quote() bundles the estimate with everything needed to build, sign and
broadcast later, so the caller can inspect gas and fee before committing.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence, Tuple

from .address import address_prefix
from .broadcaster import Broadcaster
from .rpc import RpcClient
from .retry import log_with_correlation
from .tx_builder import TxBuilder
from ..config import config as global_config
from ..errors import ErrorCode, RpcError, TransactionError
from ..types import BroadcastResponse, Coin, TxFactory

logger = logging.getLogger(__name__)


class Quote:
    """
    Gas-provisioned transaction awaiting the caller's decision

    One-shot: commit() may run once. The factory already carries the
    resolved account number, sequence and gas.

    Usage:
        quote = estimator.quote(factory, msgs, "alice", address, public_key, "cosmos")
        if quote.gas < 500000:
            response = quote.commit(timeout=30)
    """

    def __init__(
        self,
        factory: TxFactory,
        msgs: Sequence,
        signer_name: str,
        signer_address: str,
        prefix: str,
        builder: TxBuilder,
        broadcaster: Broadcaster,
    ):
        self._factory = factory
        self._msgs = tuple(msgs)
        self._signer_name = signer_name
        self._signer_address = signer_address
        self._prefix = prefix
        self._builder = builder
        self._broadcaster = broadcaster
        self._committed = False
        self._lock = threading.Lock()

    @property
    def factory(self) -> TxFactory:
        return self._factory

    @property
    def gas(self) -> int:
        return self._factory.gas

    @property
    def fee(self) -> Tuple[Coin, ...]:
        return self._factory.fee()

    @property
    def signer_address(self) -> str:
        return self._signer_address

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(
        self,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BroadcastResponse:
        """
        Build, sign, encode and broadcast the quoted transaction

        Build and sign run under the process-wide address lock; the
        broadcast and inclusion wait do not.

        Args:
            timeout: Max seconds to wait for inclusion
            cancel: Optional event that aborts the inclusion wait

        Raises:
            TransactionError: Quote already committed, or inclusion timeout/cancel
            BroadcastRejectedError: Non-zero result code
            InsufficientBalanceError: Transport reported the account as not found
            RpcError: Node unreachable
        """
        with self._lock:
            if self._committed:
                raise TransactionError.already_committed()
            self._committed = True

        with address_prefix(self._prefix):
            unsigned = self._builder.build(self._factory, self._msgs)
            signed = self._builder.sign(self._factory, self._signer_name, unsigned)
            tx_bytes = self._builder.encode(signed)

        return self._broadcaster.submit(tx_bytes, timeout=timeout, cancel=cancel)

    def __repr__(self) -> str:
        return (
            f"Quote(signer={self._signer_address}, gas={self.gas}, "
            f"fee={[str(c) for c in self.fee]}, committed={self._committed})"
        )


class GasEstimator:
    """
    Simulation-based gas estimator

    Usage:
        estimator = GasEstimator(rpc, builder, broadcaster)
        gas = estimator.estimate(factory, msgs, public_key)
    """

    def __init__(
        self,
        rpc: RpcClient,
        builder: TxBuilder,
        broadcaster: Broadcaster,
        margin: Optional[int] = None,
    ):
        self._rpc = rpc
        self._builder = builder
        self._broadcaster = broadcaster
        self._margin = margin if margin is not None else global_config.tx.gas_margin

    @property
    def margin(self) -> int:
        return self._margin

    def estimate(self, factory: TxFactory, msgs: Sequence, public_key: bytes) -> int:
        """
        Simulate msgs and return the padded gas amount

        Raises:
            TransactionError: The node refused to simulate the transaction
            RpcError: Node unreachable
        """
        tx_bytes = self._builder.build_simulation(factory, msgs, public_key)
        try:
            gas_used = self._rpc.simulate(tx_bytes)
        except RpcError as e:
            if e.code != ErrorCode.RPC_QUERY_FAILED:
                raise
            raise TransactionError.simulation_failed(e)

        gas = int(gas_used * factory.gas_adjustment) + self._margin
        log_with_correlation(
            logging.DEBUG,
            f"Simulated gas_used={gas_used}, adjustment={factory.gas_adjustment}, gas={gas}",
            "estimate_gas",
        )
        return gas

    def quote(
        self,
        factory: TxFactory,
        msgs: Sequence,
        signer_name: str,
        signer_address: str,
        public_key: bytes,
        prefix: str,
    ) -> Quote:
        """Estimate gas for msgs and return a Quote ready to commit"""
        gas = self.estimate(factory, msgs, public_key)
        return Quote(
            factory=factory.with_gas(gas),
            msgs=msgs,
            signer_name=signer_name,
            signer_address=signer_address,
            prefix=prefix,
            builder=self._builder,
            broadcaster=self._broadcaster,
        )
