"""
Transaction broadcaster

Submits signed transaction bytes, waits for block inclusion and classifies
the outcome:
- transport failure: RpcError
- transport failure mentioning "not found": InsufficientBalanceError hint
- non-zero code (CheckTx or DeliverTx): BroadcastRejectedError
- code 0: the response is returned
"""

from __future__ import annotations

import base64
import logging
import threading
from typing import Any, Dict, Optional

from .rpc import RpcClient
from .retry import PollOutcome, log_with_correlation, poll_until
from .tx_builder import tx_hash as compute_tx_hash
from ..config import config as global_config
from ..errors import (
    BroadcastRejectedError,
    InsufficientBalanceError,
    RpcError,
    TransactionError,
)
from ..types import BroadcastResponse

logger = logging.getLogger(__name__)


def handle_broadcast_result(
    response: Optional[BroadcastResponse],
    error: Optional[Exception] = None,
) -> None:
    """
    Raise the error matching a broadcast outcome, if any

    Args:
        response: Response received from the node (None on transport failure)
        error: Transport error raised while broadcasting
    """
    if error is not None:
        # The transport reports several account problems as "not found"
        if "not found" in str(error).lower():
            raise InsufficientBalanceError.account_misconfigured(error)
        if isinstance(error, RpcError):
            raise error
        raise RpcError(f"Broadcast failed: {error}", original_error=error)

    if response is not None and response.code != 0:
        raise BroadcastRejectedError.from_response(response)


def _int(value: Any) -> int:
    return int(value) if value not in (None, "") else 0


def _decode_data(value: Optional[str]) -> bytes:
    return base64.b64decode(value) if value else b""


def _decode_hex(value: Optional[str], endpoint: str = "") -> bytes:
    # broadcast_tx_sync reports data as hex, tx lookups as base64
    if not value:
        return b""
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise RpcError.invalid_response(endpoint, f"check_tx data is not hex: {value!r}")


def response_from_check_tx(
    result: Dict[str, Any],
    fallback_hash: str = "",
    endpoint: str = "",
) -> BroadcastResponse:
    """Build a response from a broadcast_tx_sync result"""
    return BroadcastResponse(
        code=_int(result.get("code")),
        raw_log=result.get("log") or "",
        raw_data=_decode_hex(result.get("data"), endpoint),
        tx_hash=(result.get("hash") or fallback_hash).upper(),
        codespace=result.get("codespace") or "",
    )


def response_from_tx(result: Dict[str, Any]) -> BroadcastResponse:
    """Build a response from a tx lookup result"""
    tx_result = result.get("tx_result") or {}
    return BroadcastResponse(
        code=_int(tx_result.get("code")),
        raw_log=tx_result.get("log") or "",
        raw_data=_decode_data(tx_result.get("data")),
        tx_hash=(result.get("hash") or "").upper(),
        height=_int(result.get("height")),
        gas_wanted=_int(tx_result.get("gas_wanted")),
        gas_used=_int(tx_result.get("gas_used")),
        codespace=tx_result.get("codespace") or "",
    )


class Broadcaster:
    """
    Synchronous broadcaster with a bounded, cancellable inclusion wait

    Usage:
        broadcaster = Broadcaster(rpc)
        response = broadcaster.submit(tx_bytes, timeout=30)
    """

    def __init__(
        self,
        rpc: RpcClient,
        inclusion_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        self._rpc = rpc
        self._inclusion_timeout = (
            inclusion_timeout if inclusion_timeout is not None else global_config.tx.inclusion_timeout
        )
        self._poll_interval = (
            poll_interval if poll_interval is not None else global_config.tx.inclusion_poll_interval
        )

    def submit(
        self,
        tx_bytes: bytes,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BroadcastResponse:
        """
        Submit transaction bytes and block until the ledger includes them

        Args:
            tx_bytes: Encoded signed transaction
            timeout: Max seconds to wait for inclusion (defaults to config)
            cancel: Optional event that aborts the wait when set

        Returns:
            BroadcastResponse with code 0

        Raises:
            RpcError: Node unreachable or malformed transport response
            InsufficientBalanceError: Transport error reported "not found"
            BroadcastRejectedError: Non-zero code
            TransactionError: Inclusion timeout or cancellation
        """
        timeout = timeout if timeout is not None else self._inclusion_timeout
        local_hash = compute_tx_hash(tx_bytes)

        try:
            result = self._rpc.broadcast_tx_sync(tx_bytes)
        except RpcError as e:
            log_with_correlation(logging.WARNING, f"Broadcast of {local_hash} failed: {e}", "broadcast")
            handle_broadcast_result(None, e)
        if not isinstance(result, dict):
            raise RpcError.invalid_response(self._rpc.endpoint, "broadcast_tx_sync returned no result")

        checked = response_from_check_tx(result, fallback_hash=local_hash, endpoint=self._rpc.endpoint)
        handle_broadcast_result(checked)
        log_with_correlation(logging.INFO, f"Tx {checked.tx_hash} accepted into mempool", "broadcast")

        included: Dict[str, Any] = {}

        def is_included() -> bool:
            try:
                found = self._rpc.tx(checked.tx_hash)
            except RpcError as e:
                # CheckTx already accepted the tx, a lookup failure is "not yet"
                if not e.recoverable:
                    raise
                log_with_correlation(logging.WARNING, f"Lookup of {checked.tx_hash} failed: {e}", "broadcast")
                return False
            if found is None:
                return False
            included.update(found)
            return True

        outcome = poll_until(
            is_included,
            "wait_for_inclusion",
            interval=self._poll_interval,
            timeout=timeout,
            cancel=cancel,
        )
        if outcome == PollOutcome.CANCELLED:
            raise TransactionError.cancelled(checked.tx_hash)
        if outcome == PollOutcome.TIMED_OUT:
            raise TransactionError.inclusion_timeout(checked.tx_hash, timeout)

        response = response_from_tx(included)
        if not response.tx_hash:
            response.tx_hash = checked.tx_hash
        handle_broadcast_result(response)

        log_with_correlation(
            logging.INFO,
            f"Tx {response.tx_hash} included at height {response.height} (gas {response.gas_used}/{response.gas_wanted})",
            "broadcast",
        )
        return response
