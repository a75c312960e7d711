"""
Account number / sequence resolution
"""

from __future__ import annotations

import logging
from typing import Tuple

from .rpc import RpcClient
from ..errors import AccountNotFoundError, RpcError
from ..types import TxFactory

logger = logging.getLogger(__name__)


class AccountRetriever:
    """Reads signer accounts from the node"""

    def __init__(self, rpc: RpcClient):
        self._rpc = rpc

    def _query(self, address: str):
        try:
            return self._rpc.account(address)
        except RpcError as e:
            if "not found" in str(e).lower():
                raise AccountNotFoundError.not_found(address, e)
            raise

    def ensure_exists(self, address: str) -> None:
        """
        Raises:
            AccountNotFoundError: If the ledger does not know the account
        """
        self._query(address)

    def get_account_number_sequence(self, address: str) -> Tuple[int, int]:
        account = self._query(address)
        return int(account.account_number), int(account.sequence)


class SequenceResolver:
    """
    Fills in account number and sequence on a factory copy

    Only unset (None) fields are queried; a caller-provided value, zero
    included, is kept. Each call reads the account from the node once.
    """

    def __init__(self, retriever: AccountRetriever):
        self._retriever = retriever

    def resolve(self, factory: TxFactory, address: str) -> TxFactory:
        if factory.is_resolved:
            self._retriever.ensure_exists(address)
            return factory

        # The number/sequence lookup doubles as the existence check
        number, sequence = self._retriever.get_account_number_sequence(address)
        if factory.account_number is None:
            factory = factory.with_account_number(number)
        if factory.sequence is None:
            factory = factory.with_sequence(sequence)

        logger.debug(
            f"Resolved {address}: account_number={factory.account_number} sequence={factory.sequence}"
        )
        return factory
